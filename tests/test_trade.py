"""
Tests for the trading system.
"""

import pytest


@pytest.fixture
def holdings(table):
    """Alice holds Mediterranean, Bob holds a mortgaged Boardwalk and a pardon card."""
    table.give("p1", 1)
    table.give("p2", 39, mortgaged=True)
    table.player("p2").pardon_cards = 1
    return table


def offer(table, from_id="p1", to_id="p2", give=None, want=None, **extra):
    return table.act("trade_offer", player_id=from_id, to_id=to_id, offer=give or {}, request=want or {}, **extra)


def test_offer_creates_pending_trade(holdings):
    result = offer(holdings, give={"cash": 100, "properties": [1]}, want={"properties": [39]}, message="deal?")

    assert result.accepted
    assert result.payload == {"trade_id": 1}
    trade = holdings.state.pending_trades[1]
    assert trade.from_id == "p1"
    assert trade.to_id == "p2"
    assert trade.offer.cash == 100
    assert trade.request.properties == frozenset({39})
    assert trade.message == "deal?"
    assert trade.created_at == holdings.now
    assert holdings.state.version == 2


def test_accept_swaps_bundles(holdings):
    offer(holdings, give={"cash": 100, "properties": [1]}, want={"properties": [39], "pardon_cards": 1})

    result = holdings.act("trade_accept", player_id="p2", trade_id=1)

    assert result.accepted
    assert result.payload == {"trade_id": 1, "accepted": True}
    state = holdings.state
    assert state.ownership[1].owner_id == "p2"
    assert state.ownership[39].owner_id == "p1"
    assert state.ownership[39].mortgaged
    assert holdings.player("p1").cash == 1900
    assert holdings.player("p2").cash == 2100
    assert holdings.player("p1").pardon_cards == 1
    assert holdings.player("p2").pardon_cards == 0
    assert state.pending_trades == {}


def test_only_recipient_may_accept_or_reject(holdings):
    offer(holdings, give={"cash": 10})

    assert holdings.act("trade_accept", player_id="p1", trade_id=1).reason == (
        "Only the recipient can accept this trade"
    )
    assert holdings.act("trade_reject", player_id="p1", trade_id=1).reason == (
        "Only the recipient can reject this trade"
    )
    assert 1 in holdings.state.pending_trades


def test_only_proposer_may_cancel(holdings):
    offer(holdings, give={"cash": 10})

    rejected = holdings.act("trade_cancel", player_id="p2", trade_id=1)
    result = holdings.act("trade_cancel", player_id="p1", trade_id=1)

    assert rejected.reason == "Only the proposer can cancel this trade"
    assert result.accepted
    assert result.payload["cancelled"] is True
    assert holdings.state.pending_trades == {}


def test_reject_removes_trade(holdings):
    offer(holdings, give={"cash": 10})

    result = holdings.act("trade_reject", player_id="p2", trade_id=1)

    assert result.accepted
    assert holdings.state.pending_trades == {}
    assert holdings.player("p1").cash == 2000


@pytest.mark.parametrize(
    "to_id, give, want, reason",
    [
        ("p9", {"cash": 10}, {}, "Unknown trade recipient"),
        ("p1", {"cash": 10}, {}, "Cannot trade with yourself"),
        ("p2", {}, {}, "Trade must include something"),
        ("p2", {"cash": "lots"}, {}, "Malformed trade bundle"),
        ("p2", {"cash": -5}, {}, "Trade amounts must be non-negative"),
        ("p2", {"cash": 5000}, {}, "Alice does not have $5000"),
        ("p2", {"properties": [3]}, {}, "Alice does not own space 3"),
        ("p2", {}, {"properties": [1]}, "Bob does not own space 1"),
        ("p2", {}, {"pardon_cards": 2}, "Bob does not have 2 pardon cards"),
    ],
)
def test_offer_validation(holdings, to_id, give, want, reason):
    result = offer(holdings, to_id=to_id, give=give, want=want)

    assert not result.accepted
    assert result.reason == reason
    assert holdings.state.pending_trades == {}
    assert holdings.state.version == 1


def test_cannot_trade_improved_property(holdings):
    holdings.state.ownership[1].houses = 1

    result = offer(holdings, give={"properties": [1]})

    assert result.reason == "Sell houses on space 1 before trading it"


def test_offer_to_bankrupt_player_rejected(make_table):
    t = make_table(players=3)
    t.player("p3").bankrupt = True

    result = offer(t, to_id="p3", give={"cash": 10})

    assert result.reason == "Recipient is bankrupt"


def test_accept_revalidates_holdings(holdings):
    offer(holdings, give={"cash": 100, "properties": [1]}, want={"properties": [39]})
    holdings.player("p1").cash = 50

    result = holdings.act("trade_accept", player_id="p2", trade_id=1)

    assert not result.accepted
    assert result.reason == "Alice does not have $100"
    assert holdings.state.ownership[1].owner_id == "p1"
    assert 1 in holdings.state.pending_trades


def test_unknown_trade(holdings):
    assert holdings.act("trade_accept", player_id="p2", trade_id=42).reason == "Trade not found"
    assert holdings.act("trade_accept", player_id="p2").reason == "Missing or invalid trade_id"


def test_trades_ignore_turn_order(holdings):
    """Bob can propose while Alice is the active player."""
    result = offer(holdings, from_id="p2", to_id="p1", give={"cash": 20})

    assert result.accepted
    assert holdings.current.id == "p1"


def test_message_is_truncated(holdings):
    offer(holdings, give={"cash": 10}, message="x" * 500)

    assert holdings.state.pending_trades[1].message == "x" * 140


def test_trade_ids_increase(holdings):
    offer(holdings, give={"cash": 10})
    offer(holdings, give={"cash": 20})
    holdings.act("trade_cancel", player_id="p1", trade_id=1)
    result = offer(holdings, give={"cash": 30})

    assert result.payload["trade_id"] == 3
    assert sorted(holdings.state.pending_trades) == [2, 3]


def test_bankrupt_player_cannot_trade(make_table):
    t = make_table(players=3)
    t.player("p3").bankrupt = True

    result = offer(t, from_id="p3", to_id="p1", give={"cash": 0}, want={"cash": 10})

    assert result.reason == "Bankrupt players cannot trade"
