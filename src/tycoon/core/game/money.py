"""
Bank pot and event logging.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    TURN_START = "turn_start"
    END_TURN = "end_turn"
    DICE_ROLL = "dice_roll"
    PASS_GO = "pass_go"

    PURCHASE = "purchase"
    RENT_PAYMENT = "rent_payment"
    UTILITY_ROLL = "utility_roll"
    TAX_PAYMENT = "tax_payment"
    TAX_REFUND = "tax_refund"
    VACATION_PAYOUT = "vacation_payout"

    CARD_DRAW = "card_draw"
    PARDON_RECEIVED = "pardon_received"
    EACH_PLAYER = "each_player"
    RENOVATION = "renovation"
    RANDOM_PROPERTY = "random_property"

    BUILD_HOUSE = "build_house"
    SELL_HOUSE = "sell_house"
    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ROLL = "jail_roll"
    JAIL_ESCAPE = "jail_escape"
    JAIL_FORCE_OUT = "jail_force_out"
    PAY_JAIL = "pay_jail"
    USE_PARDON = "use_pardon"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_CANCELLED = "trade_cancelled"

    TIMEOUT = "timeout"
    RESOLUTION_CAPPED = "resolution_capped"
    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "player_id": self.player_id,
            "details": dict(self.details),
            "at": self.at,
        }

    def __repr__(self) -> str:
        player_str = self.player_id if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.details}"


@dataclass
class BankState:
    """
    The bank has unlimited money; it only tracks the vacation pot,
    which collects taxes and levies and is paid out on the vacation space.
    """

    vacation_pot: int = 0

    def collect(self, amount: int) -> None:
        if amount > 0:
            self.vacation_pot += amount

    def pay_out(self) -> int:
        """Empty the pot, returning what it held."""
        amount = self.vacation_pot
        self.vacation_pot = 0
        return amount
