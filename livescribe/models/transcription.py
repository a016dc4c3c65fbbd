"""Transcription-related data models."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ResultSlot:
    """One recognition result slot with its alternative hypotheses (best first)."""
    alternatives: List[str] = field(default_factory=list)
    is_final: bool = False

    @property
    def transcript(self) -> str:
        """Text of the best alternative, or an empty string."""
        return self.alternatives[0] if self.alternatives else ""


@dataclass
class ResultBatch:
    """A batch of result slots delivered by the engine.

    ``slots[i]`` is the slot at position ``result_index + i`` of the
    current engine stream.
    """
    result_index: int
    slots: List[ResultSlot] = field(default_factory=list)

    @classmethod
    def of(cls, result_index: int, *slots: tuple) -> "ResultBatch":
        """Build a batch from ``(text, is_final)`` pairs."""
        return cls(
            result_index=result_index,
            slots=[ResultSlot(alternatives=[text], is_final=is_final) for text, is_final in slots],
        )


@dataclass
class TranscriptBuffer:
    """Confirmed text plus the live view (confirmed text and current interim)."""
    final_text: str = ""
    live_text: str = ""

    def reset(self, baseline: str = "") -> None:
        self.final_text = baseline
        self.live_text = baseline
