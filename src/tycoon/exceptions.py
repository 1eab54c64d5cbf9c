"""
Custom exception hierarchy for the Tycoon engine, coordinator and API layer.

Game-rule failures are never raised: the engine and coordinator report them
as rejected ActionResult values. Exceptions are reserved for lookups,
load-time schema problems and persistence failures.
"""

from typing import List, Optional


class TycoonError(Exception):
    """Base exception for all game-related errors."""


class SessionNotFoundError(TycoonError):
    """Session does not exist in memory or in the store."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidBoardError(TycoonError):
    """Board definition failed structural validation."""

    def __init__(self, issues: List[str], source: Optional[str] = None):
        prefix = f"Invalid board {source}" if source else "Invalid board"
        super().__init__(f"{prefix}: {'; '.join(issues)}")
        self.issues = issues
        self.source = source


class UnknownPresetError(TycoonError):
    """Requested rule preset or board id is not registered."""


class PersistenceError(TycoonError):
    """Database operation failed."""
