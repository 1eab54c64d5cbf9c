from tycoon.core.game.board import Board
from tycoon.core.game.config import PRESETS, RuleSet, get_rule_set
from tycoon.core.game.maps import load_board, load_board_catalog
from tycoon.core.game.player import Ownership, PlayerState
from tycoon.core.game.rules import (
    Action,
    ActionResult,
    ActionType,
    ErrorKind,
    apply_action,
    apply_timeout,
    post_chat,
)
from tycoon.core.game.state import GameState, create_game_state

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "Board",
    "ErrorKind",
    "GameState",
    "Ownership",
    "PRESETS",
    "PlayerState",
    "RuleSet",
    "apply_action",
    "apply_timeout",
    "create_game_state",
    "get_rule_set",
    "load_board",
    "load_board_catalog",
    "post_chat",
]
