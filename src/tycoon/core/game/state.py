"""
Mutable per-session game state.

A GameState is owned by exactly one session and is only mutated by the
engine functions in tycoon.core.game.rules while that session's lock is held.
"""

import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tycoon.core.game.board import Board
from tycoon.core.game.cards import DECKS, shuffle_deck
from tycoon.core.game.config import RuleSet
from tycoon.core.game.money import BankState, EventType, GameEvent
from tycoon.core.game.player import Ownership, PlayerState
from tycoon.core.game.spaces import SpaceType
from tycoon.core.game.trade import Trade

STATUS_ACTIVE = "active"
STATUS_FINISHED = "finished"


@dataclass
class TurnInfo:
    active_player_index: int = 0
    started_at: float = 0.0
    deadline_at: float = 0.0


@dataclass
class ChatEntry:
    player_id: str
    name: str
    text: str
    at: float

    def to_dict(self) -> Dict[str, Any]:
        return {"player_id": self.player_id, "name": self.name, "text": self.text, "at": self.at}


@dataclass
class GameState:
    """Complete state of one game session."""

    id: str
    board_id: str
    players: List[PlayerState]
    turn: TurnInfo = field(default_factory=TurnInfo)
    status: str = STATUS_ACTIVE
    winner: Optional[str] = None
    version: int = 1
    ownership: Dict[int, Ownership] = field(default_factory=dict)
    bank: BankState = field(default_factory=BankState)
    card_decks: Dict[str, List[int]] = field(default_factory=dict)
    pending_trades: Dict[int, Trade] = field(default_factory=dict)
    next_trade_id: int = 1
    log: List[GameEvent] = field(default_factory=list)
    chat: List[ChatEntry] = field(default_factory=list)
    created_at: float = 0.0

    @property
    def finished(self) -> bool:
        return self.status == STATUS_FINISHED

    def get_current_player(self) -> PlayerState:
        """Get the player whose turn it is."""
        return self.players[self.turn.active_player_index]

    def get_player(self, player_id: Optional[str]) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_active_players(self) -> List[PlayerState]:
        """Get all non-bankrupt players."""
        return [p for p in self.players if not p.bankrupt]

    def log_event(self, event_type: EventType, player_id: Optional[str], at: float, **details: Any) -> None:
        self.log.append(GameEvent(event_type, player_id, details, at))

    def owned_indexes(self, player_id: str) -> List[int]:
        return sorted(idx for idx, own in self.ownership.items() if own.owner_id == player_id)

    def count_owned_of_type(self, player_id: str, board: Board, space_type: SpaceType) -> int:
        return sum(
            1
            for idx in self.owned_indexes(player_id)
            if board.get_space(idx).space_type == space_type
        )

    def owns_full_group(self, player_id: str, board: Board, group_id: Optional[str]) -> bool:
        """Check if a player owns every property in a color group."""
        group = board.get_group(group_id)
        if group is None or not group.members:
            return False
        return all(
            idx in self.ownership and self.ownership[idx].owner_id == player_id
            for idx in group.members
        )


def create_game_state(
    players: Sequence[Tuple[str, str]],
    board: Board,
    rules: RuleSet,
    rng: random.Random,
    now: float,
    session_id: Optional[str] = None,
) -> GameState:
    """
    Create a fresh game for the given (player_id, name) pairs.

    The starting seat is drawn from rng and every card deck is shuffled.
    """
    if len(players) < 2:
        raise ValueError("A game needs at least two players")

    player_states = [
        PlayerState(id=pid, name=name, cash=rules.starting_cash, position=board.start_index)
        for pid, name in players
    ]
    first = rng.randrange(len(player_states))
    state = GameState(
        id=session_id or uuid.uuid4().hex,
        board_id=board.id,
        players=player_states,
        turn=TurnInfo(
            active_player_index=first,
            started_at=now,
            deadline_at=now + rules.turn_time_sec,
        ),
        card_decks={name: shuffle_deck(len(cards), rng) for name, cards in DECKS.items()},
        created_at=now,
    )
    state.log_event(
        EventType.GAME_START,
        None,
        now,
        players=[p.id for p in player_states],
        first_player=player_states[first].id,
        rules=rules.id,
    )
    return state
