"""Abstract base class for streaming recognition engines."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging

from ..models.audio import AudioStats
from ..models.transcription import ResultBatch

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ResultBatch], None]
EndCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


class AbstractRecognitionEngine(ABC):
    """Continuous streaming speech recognizer.

    Once started, an engine emits result batches at its own pace and finally
    exactly one ``on_end``. Errors are reported through ``on_error`` with a raw
    code (e.g. ``"network"``, ``"aborted"``) before that ``on_end``. Callbacks
    may be invoked from threads owned by the engine.
    """

    def __init__(self, language: str = "pt-BR"):
        """Initialize engine with language preference."""
        self.language = language
        self._on_result: Optional[ResultCallback] = None
        self._on_end: Optional[EndCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    def set_callbacks(self,
                      on_result: ResultCallback,
                      on_end: EndCallback,
                      on_error: ErrorCallback) -> None:
        """Register the event handlers (replaces any previous ones)."""
        self._on_result = on_result
        self._on_end = on_end
        self._on_error = on_error

    def configure(self, language: str) -> None:
        """Set the recognition language used by the next ``start()``."""
        self.language = language

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize engine resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the host can run this engine at all."""
        pass

    @abstractmethod
    def start(self) -> None:
        """Open a new recognition stream."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Ask the running stream to finish; ``on_end`` follows asynchronously."""
        pass

    def audio_stats(self) -> Optional[AudioStats]:
        """Microphone statistics for the running stream, if the engine captures audio itself."""
        return None

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up engine resources."""
        pass

    def _emit_result(self, batch: ResultBatch) -> None:
        if self._on_result:
            self._on_result(batch)

    def _emit_end(self) -> None:
        if self._on_end:
            self._on_end()

    def _emit_error(self, code: str) -> None:
        logger.debug(f"Engine error emitted: {code}")
        if self._on_error:
            self._on_error(code)
