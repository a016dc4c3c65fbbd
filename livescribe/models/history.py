"""History-related data models."""

from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass(frozen=True)
class Transcript:
    """A saved transcription session."""
    id: int
    date: str      # Human-readable creation timestamp
    content: str   # Trimmed final text

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transcript":
        """Build an entry from its persisted form.

        Raises:
            KeyError, TypeError, ValueError: if the data is malformed
        """
        return cls(id=int(data["id"]), date=str(data["date"]), content=str(data["content"]))
