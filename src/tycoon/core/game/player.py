"""
Player state and property ownership.
"""

from dataclasses import dataclass


@dataclass
class PlayerState:
    """Represents the complete state of a player in the game."""

    id: str
    name: str
    cash: int
    position: int = 0
    in_jail: bool = False
    jail_turns: int = 0
    pardon_cards: int = 0
    timeout_count: int = 0
    bankrupt: bool = False

    def release_from_jail(self) -> None:
        self.in_jail = False
        self.jail_turns = 0

    def __repr__(self) -> str:
        return (
            f"PlayerState(id='{self.id}', name='{self.name}', "
            f"cash={self.cash}, position={self.position}, bankrupt={self.bankrupt})"
        )


@dataclass
class Ownership:
    """Tracks ownership state of an ownable space."""

    owner_id: str
    mortgaged: bool = False
    houses: int = 0
