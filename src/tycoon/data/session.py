"""
Async session management for SQLAlchemy.

Provides:
- Async engine and session factory
- Lifecycle management (init_db, close_db)
- A transactional session_scope context manager
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tycoon.data.config import DatabaseSettings, get_settings
from tycoon.data.models import Base

logger = logging.getLogger(__name__)

# Global engine and session factory (initialized once)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get the global async engine.

    Raises:
        RuntimeError: If engine not initialized (call init_db first)
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_db() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the global async session factory.

    Raises:
        RuntimeError: If session factory not initialized
    """
    if _async_session_factory is None:
        raise RuntimeError("Session factory not initialized. Call init_db() first.")
    return _async_session_factory


async def init_db(url: Optional[str] = None) -> None:
    """
    Initialize the database engine and session factory.

    Args:
        url: Overrides DATABASE_URL, mainly for tests
    """
    global _engine, _async_session_factory

    settings = DatabaseSettings(database_url=url) if url else get_settings()
    logger.info(f"Initializing database connection: {settings.database_url.split('@')[-1]}")

    _engine = create_async_engine(settings.database_url, **settings.get_engine_kwargs())
    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Dispose the engine at application shutdown."""
    global _engine, _async_session_factory

    if _engine is not None:
        logger.info("Closing database connection")
        await _engine.dispose()
        _engine = None
        _async_session_factory = None


async def create_tables() -> None:
    """Create all tables defined in Base.metadata if they are missing."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created successfully")


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.

    Usage:
        async with session_scope() as session:
            record = await session.get(SessionRecord, session_id)
            ...

    Auto-commits on success, rolls back on exception.
    """
    factory = get_session_factory()

    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
