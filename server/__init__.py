"""
Server package exposing the FastAPI app factory and the session coordinator.
"""

from .app import create_app  # noqa: F401
from .coordinator import SessionCoordinator  # noqa: F401
