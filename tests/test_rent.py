"""
Tests for rent calculation on properties, railroads and utilities.
"""

import pytest


def test_base_property_rent(table):
    table.give("p2", 3)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000 - 4
    assert table.player("p2").cash == 2000 + 4


def test_full_group_doubles_unimproved_rent(table):
    """Full color group with zero houses pays exactly double the table value."""
    table.give("p2", 1, 3)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000 - 8


def test_full_group_doubling_can_be_disabled(make_table):
    t = make_table(double_rent_on_set=False)
    t.give("p2", 1, 3)

    t.roll(1, 2)

    assert t.player("p1").cash == 2000 - 4


def test_houses_use_rent_table_without_doubling(table):
    table.give("p2", 1)
    table.give("p2", 3, houses=2)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000 - 60


def test_hotel_rent(table):
    table.give("p2", 1)
    table.give("p2", 3, houses=5)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000 - 450


def test_no_rent_on_own_space(table):
    table.give("p1", 3)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000


def test_no_rent_on_mortgaged_space(table):
    table.give("p2", 3, mortgaged=True)

    table.roll(1, 2)

    assert table.player("p1").cash == 2000
    assert table.player("p2").cash == 2000


@pytest.mark.parametrize("owned, expected", [(1, 25), (2, 50), (3, 100), (4, 200)])
def test_railroad_rent_scales_with_count(table, owned, expected):
    table.give("p2", *[5, 15, 25, 35][:owned])

    table.roll(2, 3)

    assert table.player("p1").cash == 2000 - expected


def test_utility_rent_uses_fresh_roll(table):
    table.give("p2", 12)
    table.player("p1").position = 9

    table.rng.script(1, 2, 4, 5)  # move 3, then utility dice 9
    table.act("roll")

    assert table.player("p1").position == 12
    assert table.player("p1").cash == 2000 - 9 * 4


def test_both_utilities_multiplier(table):
    table.give("p2", 12, 28)
    table.player("p1").position = 9

    table.rng.script(1, 2, 4, 5)
    table.act("roll")

    assert table.player("p1").cash == 2000 - 9 * 10


def test_rent_is_logged(table):
    table.give("p2", 3)

    table.roll(1, 2)

    event = [e for e in table.state.log if e.event_type.value == "rent_payment"][-1]
    assert event.player_id == "p1"
    assert event.details == {"owner_id": "p2", "space": 3, "amount": 4}
