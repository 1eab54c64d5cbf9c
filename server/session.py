from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Set

from tycoon.core.game.board import Board
from tycoon.core.game.config import RuleSet
from tycoon.core.game.state import GameState
from tycoon.core.snapshot import serialize_snapshot, state_to_dict

logger = logging.getLogger(__name__)


@dataclass
class QueuedPlayer:
    id: str
    name: str
    joined_at: float
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.id,
            "name": self.name,
            "joined_at": self.joined_at,
            "session_id": self.session_id,
        }


class GameSession:
    """Owns a single GameState and the observers watching it.

    Responsibilities:
    - Serialize every mutation of the state through one asyncio.Lock
    - Keep the rng used for this session's dice and cards
    - Fan out state messages to subscribed observer queues
    """

    def __init__(
        self,
        state: GameState,
        board: Board,
        rules: RuleSet,
        rng: random.Random,
        queue_size: int = 100,
        seats: Optional[Iterable[QueuedPlayer]] = None,
    ):
        self.state = state
        self.board = board
        self.rules = rules
        self.rng = rng
        self.lock = asyncio.Lock()
        self.seats: Dict[str, QueuedPlayer] = {p.id: p for p in seats or ()}
        self._queue_size = queue_size
        self._clients: Set[asyncio.Queue] = set()  # each observer gets a queue of outbound messages

    @property
    def id(self) -> str:
        return self.state.id

    @property
    def subscriber_count(self) -> int:
        return len(self._clients)

    def snapshot(self) -> Dict[str, Any]:
        return serialize_snapshot(self.state)

    def record(self) -> Dict[str, Any]:
        """Full persistable record of the current state."""
        return state_to_dict(self.state)

    def message(self) -> Dict[str, Any]:
        return {
            "type": "state",
            "session_id": self.id,
            "version": self.state.version,
            "state": self.snapshot(),
        }

    # Subscription management for WS
    def subscribe(self) -> asyncio.Queue:
        """Register an observer; the current snapshot is its first message."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        q.put_nowait(self.message())
        self._clients.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._clients.discard(q)

    def is_subscribed(self, q: asyncio.Queue) -> bool:
        return q in self._clients

    def publish(self) -> int:
        """
        Deliver the current state to every observer without awaiting.

        Returns:
            Number of observers pruned because their queue was full
        """
        if not self._clients:
            return 0
        payload = self.message()
        pruned = 0
        for q in list(self._clients):
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                # Drop observer if it cannot keep up
                self._clients.discard(q)
                pruned += 1
        if pruned:
            logger.warning(f"Session {self.id}: pruned {pruned} slow observer(s)")
        return pruned
