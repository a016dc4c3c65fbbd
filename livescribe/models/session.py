"""Session-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """States of the session controller."""
    IDLE = "idle"
    LISTENING_ACTIVE = "listening_active"
    LISTENING_PAUSED = "listening_paused"
    ERROR_HALTED = "error_halted"


class StopReason(Enum):
    """Why the engine is being stopped; read by the next termination event."""
    USER = "user"
    PAUSED = "paused"
    AUTO = "auto"


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of the controller, as consumed by the UI."""
    state: SessionState
    listening: bool
    paused: bool
    speaking_active: bool
    live_text: str
    final_text: str
    error: Optional[str]
    supported: bool
    language: str
