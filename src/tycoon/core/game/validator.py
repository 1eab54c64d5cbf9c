"""
Structural validation of board definitions.

Runs once when a board is loaded; the engine treats a validated board as
trusted input and never re-checks it.
"""

from collections import Counter
from typing import Any, Dict, List, Mapping

from tycoon.core.game.spaces import SpaceType

REQUIRED_SINGLETONS = (SpaceType.START, SpaceType.JAIL, SpaceType.GO_TO_JAIL)

_KNOWN_TYPES = {t.value for t in SpaceType}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_board(data: Mapping[str, Any]) -> List[str]:
    """
    Check a board's JSON shape against the structural rules.

    Returns:
        List of human-readable issues; empty when the board is valid.
    """
    if not isinstance(data, Mapping) or not data.get("id") or not data.get("name"):
        return ["Board must include id, name, and spaces array"]
    spaces = data.get("spaces")
    if not isinstance(spaces, list) or not spaces or not all(isinstance(s, Mapping) for s in spaces):
        return ["Board must include id, name, and spaces array"]
    groups = data.get("groups") or {}
    if not isinstance(groups, Mapping) or not all(isinstance(g, Mapping) for g in groups.values()):
        return ["Board groups must be an object of group definitions"]

    issues: List[str] = []

    unknown = [s.get("type") for s in spaces if s.get("type") not in _KNOWN_TYPES]
    if unknown:
        issues.append(f"Unknown space types: {', '.join(map(str, unknown))}")
        return issues

    indexes = [s.get("index") for s in spaces]
    if not all(_is_int(i) for i in indexes):
        issues.append("Space indexes must be integers")
        return issues
    if len(set(indexes)) != len(indexes):
        issues.append("Space indexes must be unique")
    for i in range(len(spaces)):
        if i not in indexes:
            issues.append(f"Space index {i} is unreachable/missing")

    type_counts = Counter(s["type"] for s in spaces)
    for singleton in REQUIRED_SINGLETONS:
        if type_counts[singleton.value] != 1:
            issues.append(f"Board must contain exactly one {singleton.value} space")

    group_counts: Counter = Counter()
    for space in spaces:
        name = space.get("name", f"#{space.get('index')}")
        space_type = space["type"]
        price = space.get("price")

        if space_type == SpaceType.PROPERTY.value:
            group_id = space.get("group")
            if not group_id:
                issues.append(f"{name} missing group")
            elif group_id not in groups:
                issues.append(f"{name} references undeclared group {group_id}")
            if not _is_int(price) or price <= 0:
                issues.append(f"{name} has invalid price")
            rent = space.get("rent")
            if not isinstance(rent, list) or not rent:
                issues.append(f"{name} rent table missing")
            elif not all(_is_int(v) for v in rent):
                issues.append(f"{name} rent tiers must be integers")
            else:
                if any(i > 0 and v <= rent[i - 1] for i, v in enumerate(rent)):
                    issues.append(f"{name} rent tiers must strictly increase")
                max_houses = groups.get(group_id, {}).get("max_houses", 5)
                if _is_int(max_houses) and len(rent) > max_houses + 1:
                    issues.append(f"{name} has more rent tiers than its group allows")
            group_counts[group_id] += 1

        elif space_type in (SpaceType.RAILROAD.value, SpaceType.UTILITY.value):
            if not _is_int(price) or price <= 0:
                issues.append(f"{name} has invalid price")
            if space_type == SpaceType.RAILROAD.value:
                rent = space.get("rent")
                if not isinstance(rent, list) or not rent:
                    issues.append(f"{name} rent table missing")
                elif not all(_is_int(v) for v in rent):
                    issues.append(f"{name} rent tiers must be integers")

        elif space_type in (SpaceType.TAX.value, SpaceType.TAX_REFUND.value):
            amount = space.get("amount", 0)
            if not _is_int(amount) or amount < 0:
                issues.append(f"{name} amount must be non-negative")

    for group_id, config in groups.items():
        size = config.get("size")
        if not _is_int(size) or group_counts[group_id] != size:
            issues.append(f"Group {group_id} expected {size} properties, got {group_counts[group_id]}")
        house_price = config.get("house_price", 0)
        if not _is_int(house_price) or house_price <= 0:
            issues.append(f"Group {group_id} has invalid house price")
        max_houses = config.get("max_houses", 5)
        if not _is_int(max_houses) or max_houses < 1:
            issues.append(f"Group {group_id} must allow at least one house")

    if len([g for g in group_counts if g]) < 2:
        issues.append("Balanced property distribution requires at least two groups")

    return issues
