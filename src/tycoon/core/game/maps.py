"""
Board catalog: the built-in classic board plus JSON boards from a directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from tycoon.core.game.board import Board
from tycoon.core.game.validator import validate_board
from tycoon.exceptions import InvalidBoardError

logger = logging.getLogger(__name__)


def _prop(index: int, name: str, group: str, price: int, *rent: int) -> Dict[str, Any]:
    return {"index": index, "type": "Property", "name": name, "group": group, "price": price, "rent": list(rent)}


def _railroad(index: int, name: str) -> Dict[str, Any]:
    return {"index": index, "type": "Railroad", "name": name, "price": 200, "rent": [25, 50, 100, 200]}


def _utility(index: int, name: str) -> Dict[str, Any]:
    return {"index": index, "type": "Utility", "name": name, "price": 150}


def _simple(index: int, space_type: str, name: str, amount: int = 0) -> Dict[str, Any]:
    space: Dict[str, Any] = {"index": index, "type": space_type, "name": name}
    if amount:
        space["amount"] = amount
    return space


CLASSIC_BOARD: Dict[str, Any] = {
    "id": "classic",
    "name": "Classic",
    "groups": {
        "brown": {"color": "#8b4513", "size": 2, "house_price": 50, "max_houses": 5},
        "light_blue": {"color": "#87ceeb", "size": 3, "house_price": 50, "max_houses": 5},
        "pink": {"color": "#ff69b4", "size": 3, "house_price": 100, "max_houses": 5},
        "orange": {"color": "#ffa500", "size": 3, "house_price": 100, "max_houses": 5},
        "red": {"color": "#ff0000", "size": 3, "house_price": 150, "max_houses": 5},
        "yellow": {"color": "#ffd700", "size": 3, "house_price": 150, "max_houses": 5},
        "green": {"color": "#008000", "size": 3, "house_price": 200, "max_houses": 5},
        "dark_blue": {"color": "#00008b", "size": 2, "house_price": 200, "max_houses": 5},
    },
    "spaces": [
        # Bottom row (0-10)
        _simple(0, "Start", "Start"),
        _prop(1, "Mediterranean Avenue", "brown", 60, 2, 10, 30, 90, 160, 250),
        _simple(2, "CommunityChest", "Treasure"),
        _prop(3, "Baltic Avenue", "brown", 60, 4, 20, 60, 180, 320, 450),
        _simple(4, "Tax", "Income Tax", 200),
        _railroad(5, "Reading Railroad"),
        _prop(6, "Oriental Avenue", "light_blue", 100, 6, 30, 90, 270, 400, 550),
        _simple(7, "Chance", "Surprise"),
        _prop(8, "Vermont Avenue", "light_blue", 100, 6, 30, 90, 270, 400, 550),
        _prop(9, "Connecticut Avenue", "light_blue", 120, 8, 40, 100, 300, 450, 600),
        _simple(10, "Jail", "Prison"),
        # Left side (11-20)
        _prop(11, "St. Charles Place", "pink", 140, 10, 50, 150, 450, 625, 750),
        _utility(12, "Electric Company"),
        _prop(13, "States Avenue", "pink", 140, 10, 50, 150, 450, 625, 750),
        _prop(14, "Virginia Avenue", "pink", 160, 12, 60, 180, 500, 700, 900),
        _railroad(15, "Pennsylvania Railroad"),
        _prop(16, "St. James Place", "orange", 180, 14, 70, 200, 550, 750, 950),
        _simple(17, "CommunityChest", "Treasure"),
        _prop(18, "Tennessee Avenue", "orange", 180, 14, 70, 200, 550, 750, 950),
        _prop(19, "New York Avenue", "orange", 200, 16, 80, 220, 600, 800, 1000),
        _simple(20, "FreeParking", "Vacation"),
        # Top row (21-30)
        _prop(21, "Kentucky Avenue", "red", 220, 18, 90, 250, 700, 875, 1050),
        _simple(22, "Chance", "Surprise"),
        _prop(23, "Indiana Avenue", "red", 220, 18, 90, 250, 700, 875, 1050),
        _prop(24, "Illinois Avenue", "red", 240, 20, 100, 300, 750, 925, 1100),
        _railroad(25, "B. & O. Railroad"),
        _prop(26, "Atlantic Avenue", "yellow", 260, 22, 110, 330, 800, 975, 1150),
        _prop(27, "Ventnor Avenue", "yellow", 260, 22, 110, 330, 800, 975, 1150),
        _utility(28, "Water Works"),
        _prop(29, "Marvin Gardens", "yellow", 280, 24, 120, 360, 850, 1025, 1200),
        _simple(30, "GoToJail", "Go to Prison"),
        # Right side (31-39)
        _prop(31, "Pacific Avenue", "green", 300, 26, 130, 390, 900, 1100, 1275),
        _prop(32, "North Carolina Avenue", "green", 300, 26, 130, 390, 900, 1100, 1275),
        _simple(33, "TaxRefund", "Tax Refund", 100),
        _prop(34, "Pennsylvania Avenue", "green", 320, 28, 150, 450, 1000, 1200, 1400),
        _railroad(35, "Short Line"),
        _simple(36, "Chance", "Surprise"),
        _prop(37, "Park Place", "dark_blue", 350, 35, 175, 500, 1100, 1300, 1500),
        _simple(38, "Tax", "Luxury Tax", 100),
        _prop(39, "Boardwalk", "dark_blue", 400, 50, 200, 600, 1400, 1700, 2000),
    ],
}


def load_board(data: Mapping[str, Any], source: Optional[str] = None) -> Board:
    """Validate a board definition and build it, raising InvalidBoardError on issues."""
    issues = validate_board(data)
    if issues:
        raise InvalidBoardError(issues, source=source)
    return Board.from_dict(data)


def load_board_catalog(directory: Optional[Union[str, Path]] = None) -> Dict[str, Board]:
    """
    Load the board catalog.

    The built-in classic board is always present; every *.json file in
    directory is validated and added (a file may replace the built-in by id).
    """
    catalog: Dict[str, Board] = {"classic": load_board(CLASSIC_BOARD, source="classic")}
    if directory is None:
        return catalog

    path = Path(directory)
    files: List[Path] = sorted(path.glob("*.json")) if path.is_dir() else []
    for file in files:
        data = json.loads(file.read_text(encoding="utf-8"))
        board = load_board(data, source=file.name)
        catalog[board.id] = board
        logger.info(f"Loaded board {board.id} from {file.name}")
    return catalog
