"""
Tests for rolling, turn advancement, versioning and action gating.
"""

import copy

from tycoon.core.game.rules import Action, ActionType, ErrorKind, apply_action, apply_timeout, post_chat
from tycoon.core.game.state import create_game_state
from tycoon.core.snapshot import state_to_dict

from conftest import NOW, PLAYERS, ScriptedRandom


def test_new_game_starts_at_version_one(board, rules):
    state = create_game_state(PLAYERS[:2], board, rules, ScriptedRandom(), NOW)

    assert state.version == 1
    assert state.status == "active"
    assert all(p.cash == 2000 and p.position == 0 for p in state.players)
    assert state.turn.deadline_at == NOW + rules.turn_time_sec
    assert sorted(state.card_decks["chance"]) == list(range(17))
    assert sorted(state.card_decks["community"]) == list(range(17))
    assert state.log[0].event_type.value == "game_start"


def test_roll_moves_and_advances_turn(table):
    result = table.roll(2, 3)

    assert result.accepted
    assert table.player("p1").position == 5
    assert table.current.id == "p2"
    assert table.state.version == 2
    assert result.payload["d1"] == 2
    assert result.payload["d2"] == 3
    assert result.payload["total"] == 5
    assert result.payload["doubles"] is False
    assert result.payload["space"]["name"] == "Reading Railroad"


def test_passing_start_pays_salary(table):
    """Cash is exactly starting cash + salary when the move wraps past Start."""
    table.player("p1").position = 38

    table.roll(1, 2)

    alice = table.player("p1")
    assert alice.position == 1
    assert alice.cash == 2000 + 200


def test_landing_on_start_pays_salary(table):
    table.player("p1").position = 37

    table.roll(1, 2)

    assert table.player("p1").position == 0
    assert table.player("p1").cash == 2200


def test_no_salary_without_crossing_start(table):
    table.roll(2, 3)
    assert table.player("p1").cash == 2000


def test_doubles_do_not_grant_extra_turn(table):
    result = table.roll(3, 3)

    assert result.payload["doubles"] is True
    assert table.current.id == "p2"


def test_end_turn_advances(table):
    result = table.act("end_turn")

    assert result.accepted
    assert table.current.id == "p2"
    assert table.state.turn.deadline_at == NOW + table.rules.turn_time_sec


def test_turn_skips_bankrupt_players(make_table):
    t = make_table(players=3)
    t.player("p2").bankrupt = True

    t.act("end_turn")

    assert t.current.id == "p3"


def test_version_counts_accepted_actions_only(table):
    table.player("p1").position = 1
    assert table.act("buy").accepted
    assert not table.act("buy").accepted
    assert not table.act("pay_jail").accepted
    assert table.roll(2, 2).accepted
    assert table.act("end_turn").accepted

    assert table.state.version == 1 + 3


def test_rejected_action_leaves_state_untouched(table):
    before = copy.deepcopy(state_to_dict(table.state))

    result = table.act("unmortgage", position=1)

    assert not result.accepted
    assert result.error == ErrorKind.VALIDATION
    assert state_to_dict(table.state) == before


def test_not_your_turn(table):
    result = table.roll(1, 2, player_id="p2")

    assert not result.accepted
    assert result.error == ErrorKind.NOT_YOUR_TURN
    assert table.state.version == 1


def test_unsupported_action(table):
    action = Action.from_payload({"type": "dance"})
    result = apply_action(table.state, action, table.board, table.rules, table.rng, now=NOW)

    assert not result.accepted
    assert result.reason == "Unsupported action"


def test_action_type_is_case_insensitive():
    action = Action.from_payload({"type": "ROLL", "player_id": "p1"})

    assert action.action_type == ActionType.ROLL
    assert action.player_id == "p1"
    assert action.is_turn_gated


def test_action_params_come_from_payload():
    action = Action.from_payload({"type": "build_house", "position": 3})

    assert action.params == {"position": 3}


def test_finished_game_rejects_everything(table):
    table.state.status = "finished"
    table.state.winner = "p2"

    result = table.roll(1, 2)

    assert not result.accepted
    assert result.error == ErrorKind.GAME_FINISHED
    assert table.state.version == 1


# ---- Timeouts ----


def test_timeout_penalizes_and_advances(table):
    result = apply_timeout(table.state, table.rules, now=NOW + 41)

    alice = table.player("p1")
    assert result.accepted
    assert alice.timeout_count == 1
    assert alice.cash == 2000 - 50
    assert table.current.id == "p2"
    assert table.state.version == 2
    assert table.state.turn.deadline_at == NOW + 41 + table.rules.turn_time_sec


def test_timeout_penalty_grows(table):
    apply_timeout(table.state, table.rules, now=NOW)
    apply_timeout(table.state, table.rules, now=NOW)
    apply_timeout(table.state, table.rules, now=NOW)

    # Alice timed out twice (50 + 100), Bob once
    assert table.player("p1").cash == 2000 - 150
    assert table.player("p1").timeout_count == 2
    assert table.player("p2").cash == 2000 - 50


def test_timeout_can_bankrupt_and_finish(table):
    table.player("p1").cash = 30

    apply_timeout(table.state, table.rules, now=NOW)

    assert table.player("p1").bankrupt
    assert table.state.status == "finished"
    assert table.state.winner == "p2"
    assert table.state.version == 2


# ---- Chat ----


def test_chat_does_not_bump_version(table):
    result = post_chat(table.state, "p2", "  good luck  ", now=NOW)

    assert result.accepted
    assert table.state.version == 1
    assert table.state.chat[-1].text == "good luck"
    assert table.state.chat[-1].name == "Bob"


def test_chat_is_truncated_and_bounded(table):
    for i in range(5):
        post_chat(table.state, "p1", f"message {i}" + "x" * 50, now=NOW, history_limit=3, max_length=10)

    assert len(table.state.chat) == 3
    assert table.state.chat[0].text == "message 2x"
    assert all(len(c.text) == 10 for c in table.state.chat)


def test_chat_rejects_strangers_and_blank_text(table):
    assert not post_chat(table.state, "nobody", "hi", now=NOW).accepted
    assert not post_chat(table.state, "p1", "   ", now=NOW).accepted
    assert table.state.chat == []
