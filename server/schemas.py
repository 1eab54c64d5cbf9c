from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueueRequest(BaseModel):
    name: Optional[str] = Field(default=None, description="Display name; blank becomes 'Guest'")


class QueuedPlayerDTO(BaseModel):
    player_id: str
    name: str
    joined_at: float
    session_id: Optional[str] = None


class SessionSummary(BaseModel):
    session_id: str
    board_id: str
    players: List[str]
    version: int
    status: str
    winner: Optional[str] = None
    observers: int = 0


class QueueResponse(BaseModel):
    queued: bool = True
    player: QueuedPlayerDTO
    sessions: List[SessionSummary] = Field(default_factory=list)


class QueueStatusResponse(QueuedPlayerDTO):
    status: str
    position: Optional[int] = None


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]


class ActionRequest(BaseModel):
    action: Dict[str, Any] = Field(description='Action payload, e.g. {"type": "roll"}')
    expected_version: Optional[int] = None
    player_id: Optional[str] = None


class ChatRequest(BaseModel):
    player_id: str
    text: str


class ActionResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    error: Optional[str] = None
    version: Optional[int] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class MapListResponse(BaseModel):
    maps: List[Dict[str, Any]]
