"""
Central application configuration using pydantic-settings.

This module provides typed access to environment-based configuration for
the game server: transport, matchmaking, turn clock, chat and storage.

Database configuration lives in `tycoon.data.config.DatabaseSettings`.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tycoon.core.game.config import PRESETS


class StoreKind(str, Enum):
    """Supported persistence backends."""

    MEMORY = "memory"
    DATABASE = "database"


class ServerSettings(BaseSettings):
    """
    Configuration for the game server.

    Environment variables (prefix: TYCOON_):
        TYCOON_HOST                    - Bind host (default: 0.0.0.0)
        TYCOON_PORT                    - Bind port (default: 8000)
        TYCOON_LOG_LEVEL               - Logging level (default: INFO)
        TYCOON_STORE                   - memory | database (default: memory)
        TYCOON_MAPS_DIR                - Directory of extra *.json boards
        TYCOON_BOARD_ID                - Board new sessions play on (default: classic)
        TYCOON_RULES_PRESET            - richup | classic (default: richup)
        TYCOON_TURN_TIME_SEC           - Override the preset's turn duration
        TYCOON_MATCH_SIZE              - Players per match (default: 2)
        TYCOON_TICK_INTERVAL_SECONDS   - Timeout clock interval (default: 1.0)
        TYCOON_SUBSCRIBER_QUEUE_SIZE   - Per-observer buffered updates (default: 100)
        TYCOON_WS_HEARTBEAT_SECONDS    - Idle WebSocket heartbeat (default: 15)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="TYCOON_",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    store: StoreKind = Field(default=StoreKind.MEMORY, description="Persistence backend.")
    maps_dir: Optional[str] = Field(default=None, description="Directory with extra board JSON files.")
    board_id: str = Field(default="classic")
    rules_preset: str = Field(default="richup")
    turn_time_sec: Optional[int] = Field(default=None, gt=0)

    match_size: int = Field(default=2, ge=2, le=8)
    tick_interval_seconds: float = Field(default=1.0, gt=0)
    subscriber_queue_size: int = Field(default=100, ge=1)
    ws_heartbeat_seconds: float = Field(default=15.0, gt=0)

    chat_history_limit: int = Field(default=50, ge=1)
    chat_message_max_length: int = Field(default=200, ge=1)
    player_name_max_length: int = Field(default=16, ge=1)

    @field_validator("rules_preset")
    @classmethod
    def validate_preset(cls, value: str) -> str:
        if value not in PRESETS:
            raise ValueError(f"rules_preset must be one of: {', '.join(sorted(PRESETS))}")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_server_settings() -> ServerSettings:
    """Return cached server settings instance."""
    return ServerSettings()
