"""
Snapshot serialization of GameState.

state_to_dict produces the complete, persistable record and
state_from_dict restores it. serialize_snapshot produces the public,
observer-facing view without hidden information (deck order).
"""

from __future__ import annotations

from typing import Any, Dict, List

from tycoon.core.game.money import BankState, EventType, GameEvent
from tycoon.core.game.player import Ownership, PlayerState
from tycoon.core.game.state import ChatEntry, GameState, TurnInfo
from tycoon.core.game.trade import Trade, TradeBundle

PUBLIC_LOG_TAIL = 50


def _player_dict(player: PlayerState) -> Dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "cash": player.cash,
        "position": player.position,
        "in_jail": player.in_jail,
        "jail_turns": player.jail_turns,
        "pardon_cards": player.pardon_cards,
        "timeout_count": player.timeout_count,
        "bankrupt": player.bankrupt,
    }


def _common(state: GameState) -> Dict[str, Any]:
    current = state.get_current_player()
    return {
        "id": state.id,
        "board_id": state.board_id,
        "status": state.status,
        "winner": state.winner,
        "version": state.version,
        "created_at": state.created_at,
        "turn": {
            "active_player_index": state.turn.active_player_index,
            "active_player_id": current.id,
            "started_at": state.turn.started_at,
            "deadline_at": state.turn.deadline_at,
        },
        "players": [_player_dict(p) for p in state.players],
        # JSON object keys are strings
        "ownership": {
            str(idx): {"owner_id": own.owner_id, "mortgaged": own.mortgaged, "houses": own.houses}
            for idx, own in sorted(state.ownership.items())
        },
        "bank": {"vacation_pot": state.bank.vacation_pot},
        "pending_trades": [t.to_dict() for _, t in sorted(state.pending_trades.items())],
        "chat": [c.to_dict() for c in state.chat],
    }


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Serialize the complete GameState, including deck order and the full log."""
    data = _common(state)
    data["card_decks"] = {name: list(queue) for name, queue in state.card_decks.items()}
    data["next_trade_id"] = state.next_trade_id
    data["log"] = [e.to_dict() for e in state.log]
    return data


def serialize_snapshot(state: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    Deck contents are reduced to remaining-card counts and the log to its
    most recent entries.
    """
    data = _common(state)
    data["decks"] = {name: {"cards_remaining": len(queue)} for name, queue in state.card_decks.items()}
    data["log"] = [e.to_dict() for e in state.log[-PUBLIC_LOG_TAIL:]]
    return data


def public_view(full: Dict[str, Any]) -> Dict[str, Any]:
    """Derive the public view from a stored full record without rebuilding the state."""
    data = {k: v for k, v in full.items() if k not in ("card_decks", "next_trade_id", "log")}
    data["decks"] = {name: {"cards_remaining": len(queue)} for name, queue in full.get("card_decks", {}).items()}
    data["log"] = list(full.get("log", []))[-PUBLIC_LOG_TAIL:]
    return data


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from state_to_dict output."""
    players: List[PlayerState] = [PlayerState(**p) for p in data["players"]]
    trades = {}
    for raw in data.get("pending_trades", []):
        trade = Trade(
            id=int(raw["id"]),
            from_id=raw["from_id"],
            to_id=raw["to_id"],
            offer=TradeBundle.from_dict(raw.get("offer")),
            request=TradeBundle.from_dict(raw.get("request")),
            message=raw.get("message"),
            created_at=raw.get("created_at", 0.0),
        )
        trades[trade.id] = trade

    turn = data["turn"]
    return GameState(
        id=data["id"],
        board_id=data["board_id"],
        players=players,
        turn=TurnInfo(
            active_player_index=turn["active_player_index"],
            started_at=turn["started_at"],
            deadline_at=turn["deadline_at"],
        ),
        status=data["status"],
        winner=data.get("winner"),
        version=data["version"],
        ownership={int(idx): Ownership(**own) for idx, own in data.get("ownership", {}).items()},
        bank=BankState(vacation_pot=data.get("bank", {}).get("vacation_pot", 0)),
        card_decks={name: list(queue) for name, queue in data.get("card_decks", {}).items()},
        pending_trades=trades,
        next_trade_id=data.get("next_trade_id", max(trades, default=0) + 1),
        log=[
            GameEvent(EventType(e["type"]), e.get("player_id"), dict(e.get("details", {})), e.get("at", 0.0))
            for e in data.get("log", [])
        ],
        chat=[ChatEntry(**c) for c in data.get("chat", [])],
        created_at=data.get("created_at", 0.0),
    )
