"""Workspace: wires the session controller to the editable document and history."""

import logging
from typing import List, Optional

from pubsub import pub

from ..config import LiveScribeConfig
from ..models.audio import AudioStats
from ..models.events import SessionEvent, SESSION_EVENT_TOPIC
from ..models.history import Transcript
from ..models.session import SessionSnapshot
from ..recognition.base import AbstractRecognitionEngine
from ..storage.store import JsonFileStore, KeyValueStore
from ..transcription.publisher import SessionPublisher
from ..utils.timers import TimerFactory
from .autosave import EditableDocument
from .history_manager import HistoryManager
from .session_controller import SessionController

logger = logging.getLogger(__name__)


class Workspace:
    """Application shell around one recognition session at a time.

    When a session finishes with text, that text replaces the editable
    document and is appended to the history.
    """

    def __init__(self,
                 config: LiveScribeConfig,
                 engine: Optional[AbstractRecognitionEngine],
                 store: Optional[KeyValueStore] = None,
                 timer_factory: Optional[TimerFactory] = None):
        """Initialize workspace.

        Args:
            config: Application configuration
            engine: Recognition engine, or None when none is available
            store: Persistence store (defaults to a JSON file in the data directory)
            timer_factory: Factory for debounce and activity timers
        """
        self.config = config
        self.store = store or JsonFileStore(config.get_data_directory())

        self.publisher = SessionPublisher()
        self.controller = SessionController(
            engine,
            default_language=config.get('recognition.default_language', 'pt-BR'),
            activity_window=config.get('session.speaking_indicator_seconds', 0.5),
            max_restarts=config.get('session.max_restarts', 10),
            restart_window_seconds=config.get('session.restart_window_seconds', 5.0),
            publisher=self.publisher,
            timer_factory=timer_factory,
        )
        self.history = HistoryManager(
            self.store,
            date_format=config.get('history.date_format', "%d/%m/%Y, %H:%M:%S"),
        )
        self.document = EditableDocument(
            self.store,
            debounce_seconds=config.get('storage.autosave_debounce_seconds', 0.5),
            timer_factory=timer_factory,
        )
        self.document.restore()

        pub.subscribe(self._on_session_event, self.publisher.event_topic)
        logger.info("Workspace initialized")

    @property
    def languages(self) -> List[str]:
        return list(self.config.get('recognition.languages', []))

    def snapshot(self) -> SessionSnapshot:
        return self.controller.snapshot()

    def start_session(self, language: Optional[str] = None) -> None:
        """Start listening and clear the document.

        The document is only cleared once the session has started, after any
        previous unconfirmed session was finished into it and the history.

        Raises:
            EngineUnsupportedError: if no usable engine is available
        """
        self.controller.start(language)
        self.document.set_text("")

    def toggle_recording(self, language: Optional[str] = None) -> None:
        """Stop when listening, otherwise start a new session."""
        if self.controller.snapshot().listening:
            self.controller.stop()
        else:
            self.start_session(language)

    def toggle_pause(self) -> None:
        """Pause when actively listening, resume when paused."""
        snapshot = self.controller.snapshot()
        if not snapshot.listening:
            return
        if snapshot.paused:
            self.controller.resume()
        else:
            self.controller.pause()

    def edit_document(self, text: str) -> None:
        """Replace the document with user-edited text."""
        self.document.set_text(text)
        logger.info(f"Document edited ({len(text)} chars)")

    def audio_stats(self) -> Optional[AudioStats]:
        engine = self.controller.engine
        return engine.audio_stats() if engine is not None else None

    def list_history(self) -> List[Transcript]:
        return self.history.list()

    def view_history_item(self, transcript_id: int) -> bool:
        """Load a history entry into the editable document.

        Returns:
            False if no entry has that id
        """
        entry = self.history.get(transcript_id)
        if entry is None:
            logger.warning(f"No history entry with id {transcript_id}")
            return False
        self.document.set_text(entry.content)
        logger.info(f"Loaded history entry {transcript_id} into the document")
        return True

    def delete_history_item(self, transcript_id: int) -> bool:
        return self.history.delete(transcript_id)

    def clear_history(self) -> None:
        self.history.clear_all()

    def shutdown(self) -> None:
        """Stop listening, persist the document and release the engine."""
        try:
            pub.unsubscribe(self._on_session_event, self.publisher.event_topic)
        except Exception as e:
            logger.error(f"Error unsubscribing workspace: {e}")
        self.controller.shutdown()
        self.document.flush_now()
        logger.info("Workspace shut down")

    def _on_session_event(self, event: SessionEvent) -> None:
        if event.event_type != "finished":
            return

        content = event.metadata.get("content", "")
        if not content:
            logger.debug("Session finished without text")
            return

        self.document.set_text(content)
        self.history.save(content)
