"""Shared test fixtures for Tycoon tests."""

import random
from dataclasses import replace
from typing import Iterable, Optional

import pytest

from tycoon.core.game.config import RICHUP, RuleSet
from tycoon.core.game.maps import CLASSIC_BOARD, load_board
from tycoon.core.game.player import Ownership
from tycoon.core.game.rules import Action, ActionResult, ActionType, apply_action
from tycoon.core.game.state import create_game_state

NOW = 1_000.0

PLAYERS = [("p1", "Alice"), ("p2", "Bob"), ("p3", "Carol"), ("p4", "Dave")]


class ScriptedRandom(random.Random):
    """Random whose randint calls return scripted values first (dice control)."""

    def __init__(self, rolls: Iterable[int] = ()):
        super().__init__(7)
        self.rolls = list(rolls)

    def script(self, *rolls: int) -> None:
        self.rolls.extend(rolls)

    def randint(self, a: int, b: int) -> int:
        if self.rolls:
            return self.rolls.pop(0)
        return super().randint(a, b)


class Table:
    """A game in progress with fixed time, scripted dice and Alice to move."""

    def __init__(self, board, rules: RuleSet, players: int = 2):
        self.board = board
        self.rules = rules
        self.rng = ScriptedRandom()
        self.now = NOW
        self.state = create_game_state(PLAYERS[:players], board, rules, self.rng, NOW)
        self.state.turn.active_player_index = 0

    @property
    def current(self):
        return self.state.get_current_player()

    def player(self, player_id: str):
        return self.state.get_player(player_id)

    def give(self, player_id: str, *indexes: int, houses: int = 0, mortgaged: bool = False) -> None:
        for index in indexes:
            self.state.ownership[index] = Ownership(owner_id=player_id, houses=houses, mortgaged=mortgaged)

    def act(self, action_type: str, player_id: Optional[str] = None, **params) -> ActionResult:
        action = Action(ActionType(action_type), player_id, **params)
        return apply_action(self.state, action, self.board, self.rules, self.rng, now=self.now)

    def roll(self, d1: int, d2: int, player_id: Optional[str] = None) -> ActionResult:
        self.rng.script(d1, d2)
        return self.act("roll", player_id)


@pytest.fixture
def board():
    """The built-in 40-space board."""
    return load_board(CLASSIC_BOARD, source="classic")


@pytest.fixture
def rules():
    return RICHUP


@pytest.fixture
def table(board, rules):
    """Two-player game: Alice (p1) to move, 2000 cash each."""
    return Table(board, rules)


@pytest.fixture
def make_table(board, rules):
    """Factory for games with custom rules or more players."""

    def _make(players: int = 2, **overrides) -> Table:
        return Table(board, replace(rules, **overrides) if overrides else rules, players=players)

    return _make
