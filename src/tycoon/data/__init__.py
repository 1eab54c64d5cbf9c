from tycoon.data.config import DatabaseSettings, get_settings
from tycoon.data.models import Base, SessionRecord
from tycoon.data.repository import SessionRepository
from tycoon.data.session import (
    close_db,
    create_tables,
    get_engine,
    init_db,
    session_scope,
)
from tycoon.data.store import MemoryStore, SessionStore, SqlSessionStore, create_store

__all__ = [
    "DatabaseSettings",
    "get_settings",
    "Base",
    "SessionRecord",
    "SessionRepository",
    "close_db",
    "create_tables",
    "get_engine",
    "init_db",
    "session_scope",
    "MemoryStore",
    "SessionStore",
    "SqlSessionStore",
    "create_store",
]
