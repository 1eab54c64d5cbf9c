"""
Repository for game session rows.

Encapsulates the queries the session store needs behind a small interface.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tycoon.data.models import SessionRecord

logger = logging.getLogger(__name__)


class SessionRepository:
    """Database operations on SessionRecord rows."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with a database session.

        Args:
            session: Active async SQLAlchemy session
        """
        self.session = session

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        return await self.session.get(SessionRecord, session_id)

    async def upsert(
        self,
        session_id: str,
        board_id: str,
        status: str,
        version: int,
        winner_id: Optional[str],
        state: Dict[str, Any],
    ) -> SessionRecord:
        """
        Insert a session row or overwrite the stored state.

        Older versions never overwrite newer ones, so out-of-order saves
        cannot roll a session back.
        """
        record = await self.get(session_id)
        if record is None:
            record = SessionRecord(
                id=session_id,
                board_id=board_id,
                status=status,
                version=version,
                winner_id=winner_id,
                state=state,
            )
            self.session.add(record)
            await self.session.flush()
            logger.debug(f"Inserted session {session_id} v{version}")
            return record

        if version < record.version:
            logger.debug(f"Ignoring stale save of session {session_id} v{version} < v{record.version}")
            return record

        record.board_id = board_id
        record.status = status
        record.version = version
        record.winner_id = winner_id
        record.state = state
        await self.session.flush()
        return record

