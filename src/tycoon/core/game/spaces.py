"""
Board space definitions and types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    START = "Start"
    PROPERTY = "Property"
    RAILROAD = "Railroad"
    UTILITY = "Utility"
    TAX = "Tax"
    TAX_REFUND = "TaxRefund"
    FREE_PARKING = "FreeParking"
    CHANCE = "Chance"
    COMMUNITY_CHEST = "CommunityChest"
    JAIL = "Jail"
    GO_TO_JAIL = "GoToJail"


OWNABLE_TYPES = frozenset({SpaceType.PROPERTY, SpaceType.RAILROAD, SpaceType.UTILITY})

# Card space -> deck name
DECK_FOR_SPACE = {
    SpaceType.CHANCE: "chance",
    SpaceType.COMMUNITY_CHEST: "community",
}


@dataclass(frozen=True)
class Space:
    """A single board space. Only the fields relevant to its type are set."""

    index: int
    space_type: SpaceType
    name: str
    group: Optional[str] = None
    price: int = 0
    rent: Tuple[int, ...] = ()
    amount: int = 0

    @property
    def is_ownable(self) -> bool:
        return self.space_type in OWNABLE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "index": self.index,
            "type": self.space_type.value,
            "name": self.name,
        }
        if self.group is not None:
            data["group"] = self.group
        if self.price:
            data["price"] = self.price
        if self.rent:
            data["rent"] = list(self.rent)
        if self.amount:
            data["amount"] = self.amount
        return data

    def __repr__(self) -> str:
        return f"Space(index={self.index}, type={self.space_type.value}, name='{self.name}')"


@dataclass(frozen=True)
class Group:
    """A color group of properties sharing a house price and cap."""

    id: str
    size: int
    house_price: int
    color: str = ""
    # Reaching max_houses means the property carries a hotel
    max_houses: int = 5
    members: Tuple[int, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "size": self.size,
            "house_price": self.house_price,
            "max_houses": self.max_houses,
        }
