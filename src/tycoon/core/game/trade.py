from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional


@dataclass(frozen=True)
class TradeBundle:
    """
    Represents items one side puts into a trade.
    """

    cash: int = 0
    properties: FrozenSet[int] = field(default_factory=frozenset)  # Board indexes
    pardon_cards: int = 0

    def is_empty(self) -> bool:
        """Check if bundle contains anything."""
        return self.cash == 0 and not self.properties and self.pardon_cards == 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TradeBundle":
        data = data or {}
        return cls(
            cash=int(data.get("cash", 0)),
            properties=frozenset(int(p) for p in data.get("properties", ())),
            pardon_cards=int(data.get("pardon_cards", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cash": self.cash,
            "properties": sorted(self.properties),
            "pardon_cards": self.pardon_cards,
        }

    def __repr__(self) -> str:
        items = []
        if self.cash > 0:
            items.append(f"${self.cash}")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        if self.pardon_cards > 0:
            items.append(f"{self.pardon_cards} pardon cards")
        return " + ".join(items) if items else "nothing"


@dataclass
class Trade:
    """
    A pending trade between two players.

    Trade flow:
    1. Proposer offers a bundle and requests a bundle from the recipient
    2. Recipient accepts or rejects; the proposer may cancel
    3. If accepted, both bundles are swapped atomically
    """

    id: int
    from_id: str
    to_id: str
    offer: TradeBundle
    request: TradeBundle
    message: Optional[str] = None
    created_at: float = 0.0

    def involves(self, player_id: str) -> bool:
        return player_id in (self.from_id, self.to_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "offer": self.offer.to_dict(),
            "request": self.request.to_dict(),
            "message": self.message,
            "created_at": self.created_at,
        }
