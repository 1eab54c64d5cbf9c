"""
Rule parameters consumed verbatim by the engine.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from tycoon.exceptions import UnknownPresetError


@dataclass(frozen=True)
class RuleSet:
    """Immutable numeric configuration shared by every session."""

    id: str = "richup-v1"

    starting_cash: int = 2000
    go_salary: int = 200
    turn_time_sec: int = 40

    jail_fine: int = 50
    max_jail_turns: int = 3

    mortgage_ratio: float = 0.5
    unmortgage_interest: float = 0.10

    # Multiplier for 1, 2 and 3+ utilities owned
    utility_multipliers: Tuple[int, ...] = (4, 10, 20)

    double_rent_on_set: bool = True
    jail_blocks_rent: bool = True

    timeout_penalty_step: int = 50

    # Guard against card chains that relocate forever
    max_resolution_depth: int = 8

    def mortgage_value(self, price: int) -> int:
        """Cash credited when mortgaging a space with the given list price."""
        return int(price * self.mortgage_ratio)

    def unmortgage_cost(self, price: int) -> int:
        """Cash debited to lift a mortgage: mortgage value plus interest."""
        return int(self.mortgage_value(price) * (1 + self.unmortgage_interest))

    def utility_multiplier(self, utilities_owned: int) -> int:
        """Dice multiplier for an owner holding the given number of utilities."""
        tier = min(max(utilities_owned, 1), len(self.utility_multipliers))
        return self.utility_multipliers[tier - 1]


RICHUP = RuleSet()

CLASSIC = RuleSet(
    id="classic-v1",
    starting_cash=1500,
    turn_time_sec=60,
    utility_multipliers=(4, 10),
    jail_blocks_rent=False,
)

PRESETS: Dict[str, RuleSet] = {
    "richup": RICHUP,
    "classic": CLASSIC,
}


def get_rule_set(name: str, turn_time_sec: Optional[int] = None) -> RuleSet:
    """Look up a preset by name, optionally overriding the turn duration."""
    try:
        rules = PRESETS[name]
    except KeyError:
        raise UnknownPresetError(f"Unknown rules preset: {name}") from None
    if turn_time_sec is not None:
        rules = replace(rules, turn_time_sec=turn_time_sec)
    return rules
