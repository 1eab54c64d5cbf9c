"""
Tests specifically for jail mechanics.
"""

from tycoon.core.game.rules import ErrorKind


def jail(table, player_id="p1", turns=0):
    player = table.player(player_id)
    player.in_jail = True
    player.jail_turns = turns
    player.position = table.board.jail_index
    return player


def test_landing_on_go_to_jail(table):
    table.player("p1").position = 25

    table.roll(2, 3)

    alice = table.player("p1")
    assert alice.in_jail
    assert alice.position == 10
    assert alice.jail_turns == 0
    assert table.current.id == "p2"


def test_doubles_release_from_jail(table):
    """Rolling doubles always clears jail state and moves from the jail space."""
    alice = jail(table, turns=1)

    result = table.roll(3, 3)

    assert result.accepted
    assert result.payload["jail_escape"] is True
    assert not alice.in_jail
    assert alice.jail_turns == 0
    assert alice.position == 16
    assert alice.cash == 2000
    assert table.current.id == "p2"


def test_failed_jail_roll_forfeits_turn(table):
    alice = jail(table)

    result = table.roll(1, 2)

    assert result.accepted
    assert result.payload["stayed_in_jail"] is True
    assert alice.in_jail
    assert alice.jail_turns == 1
    assert alice.position == 10
    assert table.current.id == "p2"
    assert table.state.version == 2


def test_third_failed_roll_forces_release_with_fine(table):
    alice = jail(table, turns=2)

    result = table.roll(1, 2)

    assert result.payload["jail_force_out"] is True
    assert not alice.in_jail
    assert alice.jail_turns == 0
    assert alice.cash == 2000 - 50
    assert alice.position == 13
    assert table.current.id == "p2"


def test_three_consecutive_failures(table):
    alice = jail(table)

    for _ in range(3):
        assert table.current.id == "p1"
        table.roll(1, 2)
        table.act("end_turn")  # Bob passes

    assert not alice.in_jail
    assert alice.cash == 1950


def test_pay_jail_keeps_turn(table):
    """Paying the fine clears jail and leaves the same player to act."""
    alice = jail(table)
    alice.cash = 500

    result = table.act("pay_jail")

    assert result.accepted
    assert alice.cash == 450
    assert not alice.in_jail
    assert table.state.turn.active_player_index == 0
    assert table.state.version == 2


def test_pay_jail_requires_jail(table):
    result = table.act("pay_jail")

    assert not result.accepted
    assert result.reason == "Not in jail"
    assert result.error == ErrorKind.VALIDATION


def test_pay_jail_into_bankruptcy_finishes_game(table):
    alice = jail(table)
    alice.cash = 20

    table.act("pay_jail")

    assert alice.bankrupt
    assert alice.cash == 0
    assert table.state.status == "finished"
    assert table.state.winner == "p2"


def test_pay_jail_into_bankruptcy_advances_turn(make_table):
    t = make_table(players=3)
    alice = jail(t)
    alice.cash = 20

    t.act("pay_jail")

    assert alice.bankrupt
    assert t.state.status == "active"
    assert t.current.id == "p2"


def test_use_pardon(table):
    alice = jail(table)
    alice.pardon_cards = 1

    result = table.act("use_pardon")

    assert result.accepted
    assert alice.pardon_cards == 0
    assert not alice.in_jail
    assert alice.cash == 2000
    assert table.current.id == "p1"


def test_use_pardon_without_card(table):
    jail(table)

    result = table.act("use_pardon")

    assert not result.accepted
    assert result.reason == "No Pardon card"
    assert table.state.version == 1


def test_jailed_owner_collects_no_rent(table):
    jail(table, "p2")
    table.give("p2", 3)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000


def test_jailed_owner_collects_rent_under_classic_rules(make_table):
    t = make_table(jail_blocks_rent=False)
    jail(t, "p2")
    t.give("p2", 3)

    t.roll(1, 2)

    assert t.player("p1").cash == 2000 - 4
    assert t.player("p2").cash == 2000 + 4
