from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from tycoon.core.game.board import Board
from tycoon.core.game.config import RuleSet
from tycoon.core.game.rules import Action, ActionResult, ErrorKind, apply_action, apply_timeout, post_chat
from tycoon.core.game.state import create_game_state
from tycoon.core.snapshot import public_view, state_from_dict
from tycoon.data.store import SessionStore
from tycoon.exceptions import SessionNotFoundError, UnknownPresetError

from server.session import GameSession, QueuedPlayer

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """In-memory registry of running sessions plus the matchmaking queue.

    Every mutation of a session goes through that session's lock. The queue
    and the registry share a separate lock, so matchmaking never blocks play.
    """

    def __init__(
        self,
        boards: Mapping[str, Board],
        rules: RuleSet,
        store: SessionStore,
        *,
        board_id: str = "classic",
        match_size: int = 2,
        subscriber_queue_size: int = 100,
        chat_history_limit: int = 50,
        chat_message_max_length: int = 200,
        player_name_max_length: int = 16,
        rng_factory: Callable[[], random.Random] = random.Random,
        clock: Callable[[], float] = time.time,
    ):
        if board_id not in boards:
            raise UnknownPresetError(f"Unknown board: {board_id}")
        self.boards = dict(boards)
        self.rules = rules
        self.store = store
        self.board_id = board_id
        self.match_size = match_size
        self.subscriber_queue_size = subscriber_queue_size
        self.chat_history_limit = chat_history_limit
        self.chat_message_max_length = chat_message_max_length
        self.player_name_max_length = player_name_max_length
        self._rng_factory = rng_factory
        self._clock = clock

        self._sessions: Dict[str, GameSession] = {}
        self._queue: List[QueuedPlayer] = []
        self._players: Dict[str, QueuedPlayer] = {}  # waiting players only
        self._lock = asyncio.Lock()

    # ---- Matchmaking ----

    async def enqueue(self, name: Optional[str]) -> QueuedPlayer:
        """Add a player to the queue, starting a session once enough are waiting."""
        name = (name or "").strip()[: self.player_name_max_length] or "Guest"
        player = QueuedPlayer(id=uuid.uuid4().hex, name=name, joined_at=self._clock())

        session: Optional[GameSession] = None
        async with self._lock:
            self._players[player.id] = player
            self._queue.append(player)
            if len(self._queue) >= self.match_size:
                matched = self._queue[: self.match_size]
                del self._queue[: self.match_size]
                session = self._start_session(matched)
                self._sessions[session.id] = session
                for p in matched:
                    p.session_id = session.id
                    del self._players[p.id]

        if session is not None:
            names = ", ".join(p.name for p in session.state.players)
            logger.info(f"Matched {names} into session {session.id}")
            async with session.lock:
                await self._persist(session)
        return player

    def _start_session(self, players: Sequence[QueuedPlayer]) -> GameSession:
        board = self.boards[self.board_id]
        rng = self._rng_factory()
        state = create_game_state(
            [(p.id, p.name) for p in players],
            board,
            self.rules,
            rng,
            now=self._clock(),
        )
        logger.info(f"Created session {state.id} on board {board.id} with rules {self.rules.id}")
        return GameSession(state, board, self.rules, rng, queue_size=self.subscriber_queue_size, seats=players)

    def queue_status(self, player_id: str) -> Optional[Dict[str, Any]]:
        """Queue position (1-based) for a waiting player, or its session once matched."""
        player = self._players.get(player_id)
        if player is not None:
            queue = list(self._queue)
            position = next((i + 1 for i, p in enumerate(queue) if p.id == player_id), None)
            return {**player.to_dict(), "status": "queued", "position": position}
        for session in list(self._sessions.values()):
            seat = session.seats.get(player_id)
            if seat is not None:
                return {**seat.to_dict(), "status": "matched", "position": None}
        return None

    def list_queue(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in list(self._queue)]

    # ---- Session lookup ----

    def get_session(self, session_id: str) -> Optional[GameSession]:
        return self._sessions.get(session_id)

    def list_sessions(self) -> List[Dict[str, Any]]:
        sessions = list(self._sessions.values())
        return [
            {
                "session_id": s.id,
                "board_id": s.state.board_id,
                "players": [p.name for p in s.state.players],
                "version": s.state.version,
                "status": s.state.status,
                "winner": s.state.winner,
                "observers": s.subscriber_count,
            }
            for s in sessions
        ]

    async def load_session(self, session_id: str) -> Optional[GameSession]:
        """
        Running session for an id, restoring it from the store if needed.

        A restored session keeps its persisted state and version but gets a
        fresh rng; its seats are rebuilt from the saved players.
        """
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        record = await self.store.load(session_id)
        if record is None:
            return None
        board = self.boards.get(record.get("board_id"))
        if board is None:
            logger.warning(f"Cannot restore session {session_id}: unknown board {record.get('board_id')}")
            return None

        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                state = state_from_dict(record)
                seats = [QueuedPlayer(p.id, p.name, state.created_at, state.id) for p in state.players]
                session = GameSession(
                    state,
                    board,
                    self.rules,
                    self._rng_factory(),
                    queue_size=self.subscriber_queue_size,
                    seats=seats,
                )
                self._sessions[session_id] = session
                logger.info(f"Restored session {session_id} at v{state.version} from store")
        return session

    async def get_snapshot(self, session_id: str) -> Dict[str, Any]:
        """
        Public snapshot of a session.

        Sessions no longer held in memory are read back from the store.

        Raises:
            SessionNotFoundError: If neither memory nor the store knows the id
        """
        session = self._sessions.get(session_id)
        if session is not None:
            return session.snapshot()
        record = await self.store.load(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        return public_view(record)

    # ---- Mutations ----

    async def act(
        self,
        session_id: str,
        action: Action,
        expected_version: Optional[int],
        actor_id: Optional[str],
    ) -> ActionResult:
        """
        Apply a player action to a session.

        Turn-gated actions must match the current version and come from the
        active player. Trade actions skip the version check (they reference
        their own trade id) but still run under the session lock.
        """
        session = await self.load_session(session_id)
        if session is None:
            return ActionResult.reject(f"Session not found: {session_id}", ErrorKind.NOT_FOUND)

        async with session.lock:
            state = session.state
            if state.finished:
                return ActionResult.reject("Game is already finished", ErrorKind.GAME_FINISHED)

            if action.is_turn_gated:
                if expected_version != state.version:
                    logger.debug(
                        f"Session {session_id}: version conflict "
                        f"(expected {expected_version}, current {state.version})"
                    )
                    return ActionResult.reject(
                        f"Version conflict: expected {expected_version}, current is {state.version}",
                        ErrorKind.VERSION_CONFLICT,
                    )
                if actor_id != state.get_current_player().id:
                    return ActionResult.reject("Not your turn", ErrorKind.NOT_YOUR_TURN)

            action.player_id = actor_id
            result = apply_action(state, action, session.board, session.rules, session.rng, now=self._clock())
            if not result.accepted:
                return result

            await self._persist(session)
            session.publish()
            if state.finished:
                logger.info(f"Session {session_id} finished, winner {state.winner}")
            return result

    async def chat(self, session_id: str, player_id: str, text: str) -> ActionResult:
        session = await self.load_session(session_id)
        if session is None:
            return ActionResult.reject(f"Session not found: {session_id}", ErrorKind.NOT_FOUND)

        async with session.lock:
            result = post_chat(
                session.state,
                player_id,
                text,
                now=self._clock(),
                history_limit=self.chat_history_limit,
                max_length=self.chat_message_max_length,
            )
            if result.accepted:
                await self._persist(session)
                session.publish()
            return result

    async def expire_turns(self, now: Optional[float] = None) -> int:
        """
        Apply a timeout to every active session whose turn deadline has been exceeded.

        Sessions are processed concurrently; each re-checks its deadline under
        its own lock because a player action may have won the race.

        Returns:
            Number of sessions that timed out
        """
        now = self._clock() if now is None else now
        due = [
            s
            for s in list(self._sessions.values())
            if not s.state.finished and now > s.state.turn.deadline_at
        ]
        if not due:
            return 0
        expired = await asyncio.gather(*(self._expire(s, now) for s in due))
        return sum(expired)

    async def _expire(self, session: GameSession, now: float) -> int:
        async with session.lock:
            state = session.state
            if state.finished or now <= state.turn.deadline_at:
                return 0
            result = apply_timeout(state, session.rules, now=now)
            if not result.accepted:
                return 0
            logger.info(
                f"Session {session.id}: turn timeout for {result.payload['player_id']} "
                f"(penalty {result.payload['penalty']})"
            )
            await self._persist(session)
            session.publish()
            return 1

    # ---- Observers ----

    def subscribe(self, session_id: str) -> asyncio.Queue:
        """
        Register an observer queue; the current snapshot is delivered first.

        Raises:
            SessionNotFoundError: If the session is not running in memory
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.subscribe()

    def unsubscribe(self, session_id: str, q: asyncio.Queue) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.unsubscribe(q)

    # ---- Persistence ----

    async def _persist(self, session: GameSession) -> None:
        """Save the session; failures are logged and never reach the caller."""
        try:
            await self.store.save(session.record())
        except Exception:
            logger.exception(f"Failed to persist session {session.id} v{session.state.version}")
