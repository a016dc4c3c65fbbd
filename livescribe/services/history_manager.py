"""History manager for completed transcription sessions."""

import json
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ..models.history import Transcript
from ..storage.store import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

HISTORY_KEY = "transcript_history"
DEFAULT_DATE_FORMAT = "%d/%m/%Y, %H:%M:%S"


class HistoryManager:
    """Deduplicated, most-recent-first list of saved transcripts.

    Every mutation rewrites the whole persisted list. Persistence failures are
    logged and the in-memory list stays authoritative for the current run.
    """

    def __init__(self,
                 store: KeyValueStore,
                 date_format: str = DEFAULT_DATE_FORMAT,
                 now: Callable[[], datetime] = datetime.now):
        """Initialize history manager and load persisted entries.

        Args:
            store: Key-value store holding the serialized history
            date_format: strftime format for the entry date
            now: Clock used for entry ids and dates
        """
        self.store = store
        self.date_format = date_format
        self.now = now
        self._lock = threading.Lock()
        self._entries: List[Transcript] = self._load()
        logger.info(f"HistoryManager initialized with {len(self._entries)} entries")

    def list(self) -> List[Transcript]:
        """All entries, most recent first."""
        with self._lock:
            return list(self._entries)

    def get(self, transcript_id: int) -> Optional[Transcript]:
        with self._lock:
            for entry in self._entries:
                if entry.id == transcript_id:
                    return entry
            return None

    def save(self, content: str) -> Optional[Transcript]:
        """Append ``content`` as a new entry unless it is empty or already saved.

        Returns:
            The new entry, or None when nothing was added
        """
        trimmed = content.strip()
        if not trimmed:
            logger.debug("Not saving empty transcript")
            return None

        with self._lock:
            if any(entry.content.strip() == trimmed for entry in self._entries):
                logger.debug("Transcript already in history, not saving")
                return None

            created = self.now()
            entry = Transcript(
                id=self._next_id(created),
                date=created.strftime(self.date_format),
                content=trimmed,
            )
            self._entries.insert(0, entry)
            self._persist()

        logger.info(f"Saved transcript {entry.id} ({len(trimmed)} chars)")
        return entry

    def delete(self, transcript_id: int) -> bool:
        """Delete one entry by id.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            remaining = [entry for entry in self._entries if entry.id != transcript_id]
            if len(remaining) == len(self._entries):
                logger.debug(f"No transcript with id {transcript_id}")
                return False
            self._entries = remaining
            self._persist()

        logger.info(f"Deleted transcript {transcript_id}")
        return True

    def clear_all(self) -> None:
        """Empty the history and drop its persisted copy."""
        with self._lock:
            self._entries = []
            try:
                self.store.remove(HISTORY_KEY)
            except StoreError as e:
                logger.error(f"Error clearing persisted history: {e}")
        logger.info("History cleared")

    def _next_id(self, created: datetime) -> int:
        candidate = int(created.timestamp() * 1000)
        if self._entries:
            candidate = max(candidate, max(entry.id for entry in self._entries) + 1)
        return candidate

    def _persist(self) -> None:
        payload = json.dumps([entry.to_dict() for entry in self._entries], ensure_ascii=False)
        try:
            self.store.set(HISTORY_KEY, payload)
        except StoreError as e:
            logger.error(f"Error saving history: {e}")

    def _load(self) -> List[Transcript]:
        try:
            raw = self.store.get(HISTORY_KEY)
        except StoreError as e:
            logger.error(f"Failed to load history: {e}")
            return []
        if not raw:
            return []

        try:
            items = json.loads(raw)
        except ValueError as e:
            logger.error(f"Persisted history is not valid JSON: {e}")
            return []
        if not isinstance(items, list):
            logger.error("Persisted history is not a list")
            return []

        entries = []
        for item in items:
            try:
                entries.append(Transcript.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed history entry {item!r}: {e}")
        return entries
