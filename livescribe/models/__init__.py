"""Data models for the LiveScribe application."""

from .transcription import ResultSlot, ResultBatch, TranscriptBuffer
from .session import SessionState, StopReason, SessionSnapshot
from .history import Transcript
from .events import SessionEvent, SNAPSHOT_TOPIC, SESSION_EVENT_TOPIC
from .audio import AudioStats

__all__ = [
    "ResultSlot",
    "ResultBatch",
    "TranscriptBuffer",
    "SessionState",
    "StopReason",
    "SessionSnapshot",
    "Transcript",
    "SessionEvent",
    "SNAPSHOT_TOPIC",
    "SESSION_EVENT_TOPIC",
    "AudioStats",
]
