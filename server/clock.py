from __future__ import annotations

import asyncio
import logging
from typing import Optional

from server.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


class TimeoutClock:
    """Background task that expires overdue turns at a fixed interval."""

    def __init__(self, coordinator: SessionCoordinator, interval: float = 1.0):
        self.coordinator = coordinator
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Timeout clock started (interval {self.interval}s)")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
            logger.info("Timeout clock stopped")

    async def tick(self) -> int:
        """Run one expiry pass; errors are logged and swallowed so the loop survives."""
        try:
            return await self.coordinator.expire_turns()
        except Exception:
            logger.exception("Timeout clock tick failed")
            return 0

    async def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                await self.tick()
