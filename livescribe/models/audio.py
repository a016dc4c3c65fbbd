"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Microphone capture statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0
