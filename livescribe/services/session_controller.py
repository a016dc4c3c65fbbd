"""Session controller: the state machine driving a continuous recognition engine.

The engine's termination callback carries no cause, so every engine stop is
preceded by setting a stop reason (user stop, pause, or none/auto). The next
termination event consumes that reason exactly once: an unexplained end while
actively listening is a spontaneous end and the engine is restarted, anything
else finalizes the transcript.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..models.session import SessionSnapshot, SessionState, StopReason
from ..models.transcription import ResultBatch, TranscriptBuffer
from ..recognition.base import AbstractRecognitionEngine
from ..recognition.errors import (
    ERROR_MESSAGES,
    EngineUnsupportedError,
    RecognitionError,
    RecognitionErrorKind,
    classify_error,
)
from ..transcription.assembler import DEFAULT_ACTIVITY_WINDOW_SECONDS, TranscriptAssembler
from ..transcription.publisher import SessionPublisher
from ..utils.timers import TimerFactory

logger = logging.getLogger(__name__)

LISTENING_STATES = (SessionState.LISTENING_ACTIVE, SessionState.LISTENING_PAUSED)


class SessionController:
    """Owns the single engine connection and the start/stop/pause/resume lifecycle.

    All public operations, engine callbacks and timer expiries run under one
    re-entrant lock, so each is processed to completion before the next.
    """

    def __init__(self,
                 engine: Optional[AbstractRecognitionEngine],
                 default_language: str = "pt-BR",
                 activity_window: float = DEFAULT_ACTIVITY_WINDOW_SECONDS,
                 max_restarts: int = 10,
                 restart_window_seconds: float = 5.0,
                 publisher: Optional[SessionPublisher] = None,
                 timer_factory: Optional[TimerFactory] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize session controller.

        Args:
            engine: Recognition engine, or None when the host provides none
            default_language: Language used when start() is called without one
            activity_window: Seconds the speaking indicator stays on after a result
            max_restarts: Auto-restarts allowed per restart window (<= 0 for unlimited)
            restart_window_seconds: Sliding window for the restart bound
            publisher: Publisher for snapshots and lifecycle events
            timer_factory: Factory for the activity timer
            clock: Monotonic clock used by the restart bound
        """
        self.engine = engine
        self.max_restarts = max_restarts
        self.restart_window_seconds = restart_window_seconds
        self.publisher = publisher or SessionPublisher()
        self.clock = clock

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._stop_reason = StopReason.AUTO
        self._buffer = TranscriptBuffer()
        self._language = default_language
        self._error: Optional[RecognitionError] = None
        self._speaking = False
        self._engine_running = False
        self._pending_restart = False
        self._session_open = False
        self._restart_times: Deque[float] = deque()

        self.assembler = TranscriptAssembler(
            on_activity=self._on_activity,
            activity_window=activity_window,
            timer_factory=timer_factory,
        )

        self.supported = engine is not None and engine.is_available()
        if engine is not None:
            engine.set_callbacks(self._on_engine_result, self._on_engine_end, self._on_engine_error)
        if not self.supported:
            logger.warning("No usable recognition engine; sessions cannot be started")
        logger.info(f"SessionController initialized (supported={self.supported}, language={default_language})")

    # ------------------------------------------------------------------
    # Caller-facing operations
    # ------------------------------------------------------------------

    def start(self, language: Optional[str] = None) -> None:
        """Start a new session, discarding any previous one.

        Raises:
            EngineUnsupportedError: if no usable engine is available
        """
        with self._lock:
            if not self.supported:
                self._error = RecognitionError(
                    kind=RecognitionErrorKind.UNSUPPORTED,
                    code=RecognitionErrorKind.UNSUPPORTED.value,
                    message=ERROR_MESSAGES[RecognitionErrorKind.UNSUPPORTED],
                )
                self._publish_snapshot()
                raise EngineUnsupportedError(self._error.message)

            # A stopped session still awaiting its termination event is closed out first
            if self._session_open and self._state not in LISTENING_STATES:
                self._finalize()

            self._language = language or self._language
            self._buffer.reset()
            self._error = None
            self._stop_reason = StopReason.AUTO
            self._state = SessionState.LISTENING_ACTIVE
            self._session_open = True
            self._restart_times.clear()

            if self._engine_running:
                logger.info("Engine still running; replacing its connection")
                self._pending_restart = True
                self.engine.stop()
            else:
                self._start_engine()

            logger.info(f"Session started (language={self._language})")
            self.publisher.publish_event("started", {"language": self._language})
            self._publish_snapshot()

    def stop(self) -> None:
        """Stop listening. Finalization happens when the engine confirms the end."""
        with self._lock:
            if self._state not in LISTENING_STATES:
                logger.debug(f"stop() ignored in state {self._state.value}")
                return

            self._stop_reason = StopReason.USER
            self._state = SessionState.IDLE
            logger.info("Session stopped by user")
            self.publisher.publish_event("stopped")

            if self._engine_running:
                self.engine.stop()
            else:
                self._finalize()
            self._publish_snapshot()

    def pause(self) -> None:
        """Pause listening; the text is trimmed and frozen once the engine ends."""
        with self._lock:
            if self._state is not SessionState.LISTENING_ACTIVE:
                logger.debug(f"pause() ignored in state {self._state.value}")
                return

            self._stop_reason = StopReason.PAUSED
            self._state = SessionState.LISTENING_PAUSED
            logger.info("Session paused")
            self.publisher.publish_event("paused")

            if self._engine_running:
                self.engine.stop()
            else:
                self._finalize()
            self._publish_snapshot()

    def resume(self) -> None:
        """Resume a paused session, continuing after the paused text."""
        with self._lock:
            if self._state is not SessionState.LISTENING_PAUSED:
                logger.debug(f"resume() ignored in state {self._state.value}")
                return

            trimmed = self._buffer.live_text.strip()
            self._buffer.reset(trimmed + " " if trimmed else "")
            self._stop_reason = StopReason.AUTO
            self._state = SessionState.LISTENING_ACTIVE
            self._restart_times.clear()
            logger.info("Session resumed")
            self.publisher.publish_event("resumed")

            # If the pause is still unconfirmed, its end now reads as spontaneous and restarts
            if not self._engine_running:
                self._start_engine()
            self._publish_snapshot()

    def snapshot(self) -> SessionSnapshot:
        """Current state as seen by the UI."""
        with self._lock:
            return SessionSnapshot(
                state=self._state,
                listening=self._state in LISTENING_STATES,
                paused=self._state is SessionState.LISTENING_PAUSED,
                speaking_active=self._speaking,
                live_text=self._buffer.live_text,
                final_text=self._buffer.final_text,
                error=self._error.message if self._error else None,
                supported=self.supported,
                language=self._language,
            )

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def last_error(self) -> Optional[RecognitionError]:
        with self._lock:
            return self._error

    def shutdown(self) -> None:
        """Stop the engine and release its resources."""
        with self._lock:
            self.assembler.cancel_activity()
            if self._state in LISTENING_STATES:
                self._stop_reason = StopReason.USER
                self._state = SessionState.IDLE
            if self._engine_running:
                self.engine.stop()

        # Outside the lock: cleanup may wait for engine threads that call back into us
        if self.engine is not None:
            self.engine.cleanup()
        logger.info("SessionController shut down")

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def _on_engine_result(self, batch: ResultBatch) -> None:
        with self._lock:
            if self._pending_restart:
                logger.debug("Dropping result from replaced engine connection")
                return
            if self._state is SessionState.ERROR_HALTED:
                logger.debug("Dropping result after error")
                return

            final, live = self.assembler.ingest(batch, self._buffer.final_text)
            self._buffer.final_text = final
            self._buffer.live_text = live
            self._publish_snapshot()

    def _on_engine_end(self) -> None:
        with self._lock:
            self._engine_running = False
            self.assembler.cancel_activity()
            self._speaking = False

            if self._pending_restart:
                self._pending_restart = False
                self._start_engine()
                self._publish_snapshot()
                return

            if self._stop_reason is StopReason.AUTO:
                if self._state is SessionState.LISTENING_ACTIVE:
                    self._auto_restart()
                else:
                    logger.debug(f"Termination ignored in state {self._state.value}")
                self._publish_snapshot()
                return

            self._finalize()
            self._publish_snapshot()

    def _on_engine_error(self, code: str) -> None:
        with self._lock:
            error = classify_error(code)
            if error is None:
                logger.warning("Speech recognition service aborted.")
                return

            logger.error(f"Speech recognition error: {code}")
            self._halt(error)

    # ------------------------------------------------------------------
    # Internals (called with the lock held)
    # ------------------------------------------------------------------

    def _start_engine(self) -> None:
        self.engine.configure(self._language)
        self._engine_running = True
        self.engine.start()

    def _auto_restart(self) -> None:
        if not self._restart_allowed():
            logger.error(f"Engine ended {self.max_restarts} times within "
                         f"{self.restart_window_seconds}s; halting session")
            self._halt(classify_error(RecognitionErrorKind.RESTART_LIMIT.value))
            return

        logger.info("Engine ended on its own; restarting")
        self.publisher.publish_event("restarted")
        self._start_engine()

    def _restart_allowed(self) -> bool:
        if self.max_restarts <= 0:
            return True
        now = self.clock()
        while self._restart_times and now - self._restart_times[0] > self.restart_window_seconds:
            self._restart_times.popleft()
        if len(self._restart_times) >= self.max_restarts:
            return False
        self._restart_times.append(now)
        return True

    def _halt(self, error: RecognitionError) -> None:
        self._error = error
        self._stop_reason = StopReason.USER
        self._state = SessionState.ERROR_HALTED
        self._pending_restart = False
        self.assembler.cancel_activity()
        self._speaking = False
        self.publisher.publish_event("error", {"code": error.code, "message": error.message})

        if not self._engine_running:
            self._finalize()
        self._publish_snapshot()

    def _finalize(self) -> None:
        """Trim and freeze the text, consuming the stop reason."""
        trimmed = self._buffer.live_text.strip()
        self._buffer.reset(trimmed)
        self._stop_reason = StopReason.AUTO

        if self._session_open and self._state not in LISTENING_STATES:
            self._session_open = False
            logger.info(f"Session finished with {len(trimmed)} chars")
            self.publisher.publish_event("finished", {"content": trimmed, "language": self._language})

    def _on_activity(self, active: bool) -> None:
        with self._lock:
            # An expiry that waited on the lock while a newer result re-armed the window is stale
            if not active and self.assembler.activity_pending:
                return
            if self._speaking == active:
                return
            self._speaking = active
            self._publish_snapshot()

    def _publish_snapshot(self) -> None:
        self.publisher.publish_snapshot(self.snapshot())
