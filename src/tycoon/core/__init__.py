"""
Core domain layer for Tycoon.

Exposes the board schema, rule presets and the pure game engine.
"""

from tycoon.core.game import (
    Action,
    ActionResult,
    Board,
    GameState,
    RuleSet,
    apply_action,
    apply_timeout,
    create_game_state,
)

__all__ = [
    "Action",
    "ActionResult",
    "Board",
    "GameState",
    "RuleSet",
    "apply_action",
    "apply_timeout",
    "create_game_state",
]
