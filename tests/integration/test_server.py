import time
from typing import Tuple

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from server.app import create_app
from tycoon.settings import ServerSettings


@pytest.fixture
def client():
    settings = ServerSettings(tick_interval_seconds=60, ws_heartbeat_seconds=60)
    with TestClient(create_app(settings)) as client:
        yield client


def _enqueue(client: TestClient, name: str) -> dict:
    resp = client.post("/api/queue", json={"name": name})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _start_session(client: TestClient) -> Tuple[str, str, str]:
    """Returns (session_id, active player id, waiting player id)."""
    alice = _enqueue(client, "Alice")["player"]
    bob = _enqueue(client, "Bob")["player"]
    sid = bob["session_id"]
    snap = client.get(f"/api/sessions/{sid}").json()
    active = snap["turn"]["active_player_id"]
    waiting = bob["player_id"] if active == alice["player_id"] else alice["player_id"]
    return sid, active, waiting


def _act(client: TestClient, sid: str, action: dict, version=None, player_id=None):
    return client.post(
        f"/api/sessions/{sid}/action",
        json={"action": action, "expected_version": version, "player_id": player_id},
    )


def test_health_and_maps(client):
    assert client.get("/api/health").json()["ok"] is True

    maps = client.get("/api/maps").json()["maps"]
    assert [m["id"] for m in maps] == ["classic"]
    assert len(maps[0]["spaces"]) == 40


def test_queue_and_status(client):
    first = _enqueue(client, "Alice")
    assert first["player"]["session_id"] is None
    pid = first["player"]["player_id"]

    status = client.get(f"/api/queue/{pid}").json()
    assert status["status"] == "queued"
    assert status["position"] == 1

    second = _enqueue(client, "Bob")
    assert second["player"]["session_id"] is not None
    assert second["sessions"][0]["players"] == ["Alice", "Bob"]
    assert client.get(f"/api/queue/{pid}").json()["status"] == "matched"
    assert client.get("/api/queue/unknown").status_code == 404


def test_snapshot_and_listing(client):
    sid, _, _ = _start_session(client)

    snap = client.get(f"/api/sessions/{sid}").json()
    assert snap["id"] == sid
    assert snap["version"] == 1
    assert "card_decks" not in snap

    sessions = client.get("/api/sessions").json()["sessions"]
    assert [s["session_id"] for s in sessions] == [sid]


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/nope").status_code == 404
    assert _act(client, "nope", {"type": "roll"}, 1, "p1").status_code == 404


def test_action_flow(client):
    sid, active, waiting = _start_session(client)

    resp = _act(client, sid, {"type": "ROLL"}, 1, active)
    assert resp.status_code == 200
    body = resp.json()
    assert body["accepted"] is True
    assert body["version"] == 2
    assert {"d1", "d2", "total", "position"} <= set(body["payload"])

    stale = _act(client, sid, {"type": "end_turn"}, 1, waiting).json()
    assert stale["accepted"] is False
    assert stale["error"] == "version_conflict"

    unsupported = _act(client, sid, {"type": "teleport"}, 2, waiting).json()
    assert unsupported["accepted"] is False
    assert unsupported["reason"] == "Unsupported action"


def test_not_your_turn(client):
    sid, _, waiting = _start_session(client)

    body = _act(client, sid, {"type": "roll"}, 1, waiting).json()

    assert body["error"] == "not_your_turn"
    assert body["version"] == 1


def test_trade_without_version(client):
    sid, active, waiting = _start_session(client)

    body = _act(client, sid, {"type": "trade_offer", "to_id": active, "offer": {"cash": 25}}, None, waiting).json()

    assert body["accepted"] is True
    trades = client.get(f"/api/sessions/{sid}").json()["pending_trades"]
    assert trades[0]["offer"]["cash"] == 25


def test_chat(client):
    sid, active, _ = _start_session(client)

    resp = client.post(f"/api/sessions/{sid}/chat", json={"player_id": active, "text": "hello"})

    assert resp.json()["accepted"] is True
    assert resp.json()["version"] == 1
    chat = client.get(f"/api/sessions/{sid}").json()["chat"]
    assert chat[-1]["text"] == "hello"


def test_websocket_receives_state_updates(client):
    sid, active, _ = _start_session(client)

    with client.websocket_connect(f"/ws/sessions/{sid}") as ws:
        initial = ws.receive_json()
        assert initial["type"] == "state"
        assert initial["version"] == 1

        assert _act(client, sid, {"type": "end_turn"}, 1, active).json()["accepted"]

        update = ws.receive_json()
        assert update["version"] == 2
        assert update["state"]["turn"]["active_player_id"] != active


def test_websocket_unknown_session(client):
    with client.websocket_connect("/ws/sessions/nope") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()

    assert exc_info.value.code == 4404


def _observers(client: TestClient, sid: str) -> int:
    sessions = client.get("/api/sessions").json()["sessions"]
    return next(s["observers"] for s in sessions if s["session_id"] == sid)


def test_websocket_disconnect_releases_observer(client):
    sid, _, _ = _start_session(client)

    with client.websocket_connect(f"/ws/sessions/{sid}") as ws:
        assert ws.receive_json()["type"] == "state"
        assert _observers(client, sid) == 1

    # the handler cleans up on the server loop after the client side closes
    for _ in range(100):
        if _observers(client, sid) == 0:
            break
        time.sleep(0.01)
    assert _observers(client, sid) == 0
