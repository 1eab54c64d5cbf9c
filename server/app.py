from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from tycoon import __version__
from tycoon.core.game.config import get_rule_set
from tycoon.core.game.maps import load_board_catalog
from tycoon.core.game.rules import Action, ActionResult, ErrorKind
from tycoon.data.store import create_store
from tycoon.exceptions import PersistenceError, SessionNotFoundError
from tycoon.settings import ServerSettings, get_server_settings

from server.clock import TimeoutClock
from server.coordinator import SessionCoordinator
from server.schemas import (
    ActionRequest,
    ActionResponse,
    ChatRequest,
    MapListResponse,
    QueueRequest,
    QueueResponse,
    QueueStatusResponse,
    SessionListResponse,
)

logger = logging.getLogger(__name__)


def build_coordinator(settings: ServerSettings) -> SessionCoordinator:
    """Wire the board catalog, rule preset and store selected by settings."""
    boards = load_board_catalog(settings.maps_dir)
    rules = get_rule_set(settings.rules_preset, turn_time_sec=settings.turn_time_sec)
    store = create_store(settings.store.value)
    logger.info(
        f"Loaded {len(boards)} board(s); rules {rules.id}; store {settings.store.value}"
    )
    return SessionCoordinator(
        boards,
        rules,
        store,
        board_id=settings.board_id,
        match_size=settings.match_size,
        subscriber_queue_size=settings.subscriber_queue_size,
        chat_history_limit=settings.chat_history_limit,
        chat_message_max_length=settings.chat_message_max_length,
        player_name_max_length=settings.player_name_max_length,
    )


def get_coordinator(request: Request) -> SessionCoordinator:
    return request.app.state.coordinator


def _to_response(result: ActionResult, coordinator: SessionCoordinator, session_id: str) -> ActionResponse:
    if result.error == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail=result.reason)
    session = coordinator.get_session(session_id)
    return ActionResponse(
        accepted=result.accepted,
        reason=result.reason,
        error=result.error.value if result.error else None,
        version=session.state.version if session else None,
        payload=result.payload,
    )


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    settings = settings or get_server_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    coordinator = build_coordinator(settings)
    clock = TimeoutClock(coordinator, interval=settings.tick_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle - startup and shutdown."""
        logger.info("Starting Tycoon Arena server")
        await coordinator.store.open()
        clock.start()

        yield

        logger.info("Shutting down server")
        await clock.stop()
        await coordinator.store.close()

    app = FastAPI(title="Tycoon Arena Server", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.coordinator = coordinator
    app.state.clock = clock

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found(request: Request, exc: SessionNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_failed(request: Request, exc: PersistenceError):
        logger.error(f"Store unavailable: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Session store unavailable"})

    @app.get("/api/health")
    async def health():
        return {"ok": True, "version": __version__}

    @app.get("/api/maps", response_model=MapListResponse)
    async def list_maps(coordinator: SessionCoordinator = Depends(get_coordinator)):
        return MapListResponse(maps=[b.to_dict() for b in coordinator.boards.values()])

    @app.get("/api/sessions", response_model=SessionListResponse)
    async def list_sessions(coordinator: SessionCoordinator = Depends(get_coordinator)):
        return SessionListResponse(sessions=coordinator.list_sessions())

    @app.post("/api/queue", response_model=QueueResponse)
    async def enqueue(req: QueueRequest, coordinator: SessionCoordinator = Depends(get_coordinator)):
        player = await coordinator.enqueue(req.name)
        return QueueResponse(player=player.to_dict(), sessions=coordinator.list_sessions())

    @app.get("/api/queue/{player_id}", response_model=QueueStatusResponse)
    async def queue_status(player_id: str, coordinator: SessionCoordinator = Depends(get_coordinator)):
        status = coordinator.queue_status(player_id)
        if status is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return status

    @app.get("/api/sessions/{session_id}")
    async def get_snapshot(session_id: str, coordinator: SessionCoordinator = Depends(get_coordinator)):
        return await coordinator.get_snapshot(session_id)

    @app.post("/api/sessions/{session_id}/action", response_model=ActionResponse)
    async def act(
        session_id: str,
        req: ActionRequest,
        coordinator: SessionCoordinator = Depends(get_coordinator),
    ):
        action = Action.from_payload(req.action)
        result = await coordinator.act(session_id, action, req.expected_version, req.player_id)
        return _to_response(result, coordinator, session_id)

    @app.post("/api/sessions/{session_id}/chat", response_model=ActionResponse)
    async def chat(
        session_id: str,
        req: ChatRequest,
        coordinator: SessionCoordinator = Depends(get_coordinator),
    ):
        result = await coordinator.chat(session_id, req.player_id, req.text)
        return _to_response(result, coordinator, session_id)

    @app.websocket("/ws/sessions/{session_id}")
    async def ws_session(websocket: WebSocket, session_id: str):
        await websocket.accept()
        session = await coordinator.load_session(session_id)
        if session is None:
            await websocket.close(code=4404)
            return
        queue = coordinator.subscribe(session_id)

        async def sender():
            while True:
                msg = await queue.get()
                await websocket.send_json(msg)

        async def heartbeat():
            # Also closes the socket once the observer was pruned for falling behind
            while True:
                await asyncio.sleep(settings.ws_heartbeat_seconds)
                if not session.is_subscribed(queue):
                    await websocket.close(code=1013)
                    return
                await websocket.send_json({"type": "heartbeat"})

        sender_task = asyncio.create_task(sender())
        hb_task = asyncio.create_task(heartbeat())
        try:
            # Inbound messages are ignored; actions go through HTTP
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            coordinator.unsubscribe(session_id, queue)
            sender_task.cancel()
            hb_task.cancel()
            await asyncio.gather(sender_task, hb_task, return_exceptions=True)

    return app


app = create_app()

