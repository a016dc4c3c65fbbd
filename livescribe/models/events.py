"""Event models for pub/sub session publication."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

# Pub/sub topics
SNAPSHOT_TOPIC = "transcript.snapshot"   # kwarg: snapshot=SessionSnapshot
SESSION_EVENT_TOPIC = "session.event"    # kwarg: event=SessionEvent


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_id: str
    event_type: str  # "started", "paused", "resumed", "stopped", "restarted", "error", "finished"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
