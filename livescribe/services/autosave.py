"""Editable document with debounced autosave."""

import logging
import threading
from typing import Optional

from ..storage.store import KeyValueStore, StoreError
from ..utils.timers import RestartableTimer, TimerFactory

logger = logging.getLogger(__name__)

DOCUMENT_KEY = "autosaved_transcript"
DEFAULT_DEBOUNCE_SECONDS = 0.5


class EditableDocument:
    """The user-editable text, persisted after a quiet period.

    Each change re-arms the debounce timer; on expiry the latest text is
    written, or the persisted copy removed when the text is empty.
    """

    def __init__(self,
                 store: KeyValueStore,
                 debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
                 timer_factory: Optional[TimerFactory] = None):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._text = ""
        factory = timer_factory or RestartableTimer
        self._timer = factory(debounce_seconds, self.flush)

    @property
    def text(self) -> str:
        with self._lock:
            return self._text

    def set_text(self, text: str) -> None:
        """Replace the document text and schedule a save."""
        with self._lock:
            self._text = text
        self._timer.restart()

    def restore(self) -> str:
        """Load the persisted document, if any, without scheduling a save.

        Returns:
            The restored text ("" when nothing was persisted)
        """
        try:
            saved = self.store.get(DOCUMENT_KEY)
        except StoreError as e:
            logger.error(f"Failed to restore document: {e}")
            return self.text

        if saved:
            with self._lock:
                self._text = saved
            logger.info(f"Restored autosaved document ({len(saved)} chars)")
        return self.text

    def flush(self) -> None:
        """Persist the current text now."""
        text = self.text
        try:
            if text:
                self.store.set(DOCUMENT_KEY, text)
                logger.debug(f"Autosaved document ({len(text)} chars)")
            else:
                self.store.remove(DOCUMENT_KEY)
                logger.debug("Removed autosaved document")
        except StoreError as e:
            logger.error(f"Error autosaving document: {e}")

    def flush_now(self) -> None:
        """Cancel any pending save and persist immediately."""
        self._timer.cancel()
        self.flush()
