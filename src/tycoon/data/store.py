"""
Session persistence collaborators.

The coordinator saves the full state record of a session after every
accepted mutation and reads it back for sessions no longer held in memory.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from tycoon.data.repository import SessionRepository
from tycoon.data.session import close_db, create_tables, init_db, session_scope
from tycoon.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Anything that can save and load full session records."""

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def save(self, record: Dict[str, Any]) -> None: ...

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]: ...


class MemoryStore:
    """Process-local store; records are deep-copied in and out."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def save(self, record: Dict[str, Any]) -> None:
        current = self._records.get(record["id"])
        if current is not None and current["version"] > record["version"]:
            return
        self._records[record["id"]] = copy.deepcopy(record)

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(session_id)
        return copy.deepcopy(record) if record is not None else None

    def __len__(self) -> int:
        return len(self._records)


class SqlSessionStore:
    """
    Store backed by the game_sessions table.

    Works with PostgreSQL (asyncpg) and SQLite (aiosqlite). SQLAlchemy errors
    are wrapped in PersistenceError.
    """

    def __init__(self, url: Optional[str] = None, create_schema: bool = True):
        self.url = url
        self.create_schema = create_schema

    async def open(self) -> None:
        await init_db(self.url)
        if self.create_schema:
            await create_tables()

    async def close(self) -> None:
        await close_db()

    async def save(self, record: Dict[str, Any]) -> None:
        try:
            async with session_scope() as session:
                repo = SessionRepository(session)
                await repo.upsert(
                    session_id=record["id"],
                    board_id=record["board_id"],
                    status=record["status"],
                    version=record["version"],
                    winner_id=record.get("winner"),
                    state=record,
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save session {record['id']}: {exc}") from exc

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with session_scope() as session:
                row = await SessionRepository(session).get(session_id)
                return dict(row.state) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load session {session_id}: {exc}") from exc


def create_store(kind: str, database_url: Optional[str] = None) -> SessionStore:
    """Build the store selected by configuration ("memory" or "database")."""
    if kind == "memory":
        return MemoryStore()
    if kind == "database":
        return SqlSessionStore(database_url)
    raise ValueError(f"Unknown store kind: {kind}")
