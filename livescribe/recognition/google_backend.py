"""Google Speech-to-Text streaming recognition engine."""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import speech
from google.oauth2 import service_account

from .base import AbstractRecognitionEngine
from ..models.audio import AudioStats
from ..models.transcription import ResultBatch, ResultSlot

logger = logging.getLogger(__name__)


def _error_code(error: gax_exceptions.GoogleAPICallError) -> str:
    """Raw engine code for an API error without a dedicated classification."""
    status = getattr(error, "grpc_status_code", None)
    if status is not None:
        return status.name.lower()
    return type(error).__name__


class GoogleStreamingEngine(AbstractRecognitionEngine):
    """Continuous recognizer backed by Google Cloud ``streaming_recognize``.

    Each ``start()`` opens one streaming call on a daemon thread, fed by a
    microphone stream. The call ends when ``stop()`` closes the microphone,
    when the service closes the stream on its own (a spontaneous end), or on
    error. In every case ``on_end`` is emitted exactly once, after any error.
    """

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "pt-BR",
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 model: str = "latest_long",
                 capture_factory: Optional[Callable[[], object]] = None):
        """Initialize Google streaming engine.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'pt-BR', 'en-US')
            sample_rate: Microphone sample rate in Hz
            chunk_size: Samples per microphone chunk
            channels: Number of audio channels
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            model: Recognition model name
            capture_factory: Builds the microphone stream for each session
                (defaults to a PyAudio ``MicrophoneStream``)
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.model = model
        self.capture_factory = capture_factory
        self.client = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"

        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._capture = None
        self._carry_separator = False

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        self.client = speech.SpeechClient(credentials=credentials)

        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        logger.info("Google Speech-to-Text engine initialized successfully")
        return True

    def is_available(self) -> bool:
        if not self.credentials_path or not Path(self.credentials_path).is_file():
            logger.warning(f"Google credentials not found: {self.credentials_path}")
            return False
        if self.capture_factory is not None:
            return True
        try:
            from ..audio.capture import MicrophoneStream
        except ImportError as e:
            logger.warning(f"Microphone capture unavailable (install the 'audio' extra): {e}")
            return False
        return MicrophoneStream.has_input_device()

    def start(self) -> None:
        """Open a new streaming recognition call for the configured language."""
        stop_event = threading.Event()
        capture = self._create_capture()
        carry_separator = self._carry_separator
        self._carry_separator = False

        self._stop_event = stop_event
        self._capture = capture
        self._thread = threading.Thread(
            target=self._run_stream,
            args=(capture, stop_event, carry_separator),
            daemon=True,
        )
        self._thread.name = "GoogleStreamingThread"
        self._thread.start()
        logger.info(f"Streaming recognition started (language={self.language})")

    def stop(self) -> None:
        """Close the microphone; the service then flushes its last results and ends the call."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._capture is not None:
            self._capture.stop()

    def audio_stats(self) -> Optional[AudioStats]:
        capture = self._capture
        if capture is None or not getattr(capture, "is_recording", False):
            return None
        return capture.get_recording_stats()

    def cleanup(self) -> None:
        """Stop any running stream and wait briefly for its thread."""
        self.stop()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Streaming thread did not stop cleanly")
        self._thread = None

    def _create_capture(self):
        if self.capture_factory is not None:
            return self.capture_factory()
        from ..audio.capture import MicrophoneStream
        return MicrophoneStream(
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
        )

    def _streaming_config(self) -> speech.StreamingRecognitionConfig:
        return speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=self.sample_rate,
                audio_channel_count=self.channels,
                language_code=self.language,
                use_enhanced=self.use_enhanced,
                enable_automatic_punctuation=self.enable_automatic_punctuation,
                model=self.model,
            ),
            interim_results=True,
        )

    def _run_stream(self, capture, stop_event: threading.Event, carry_separator: bool) -> None:
        """Thread body: one streaming call from microphone open to ``on_end``."""
        error_code: Optional[str] = None
        spontaneous = False
        finalized = 0

        if self.client is None:
            try:
                self.initialize()
            except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
                logger.error(f"Google credentials rejected: {e}")
                self._emit_error("not-allowed")
                self._emit_end()
                return

        try:
            if stop_event.is_set():
                logger.info("Stream stopped before the microphone opened")
                return
            capture.start()
            # A stop() that raced the microphone opening found nothing to close
            if stop_event.is_set():
                capture.stop()

            requests = (speech.StreamingRecognizeRequest(audio_content=chunk)
                        for chunk in capture.chunks())
            responses = self.client.streaming_recognize(
                config=self._streaming_config(),
                requests=requests,
            )

            for response in responses:
                if not response.results:
                    continue
                batch = self._to_batch(response, finalized, carry_separator)
                finalized += sum(1 for slot in batch.slots if slot.is_final)
                self._emit_result(batch)

            if capture.error is not None:
                error_code = "audio-capture"
            elif not stop_event.is_set():
                logger.info("Service closed the stream")
                spontaneous = True
        except (gax_exceptions.PermissionDenied, gax_exceptions.Unauthenticated) as e:
            logger.error(f"Google STT permission error: {e}")
            error_code = "not-allowed"
        except (gax_exceptions.ServiceUnavailable, gax_exceptions.DeadlineExceeded) as e:
            logger.error(f"Google STT network error: {e}")
            error_code = "network"
        except gax_exceptions.OutOfRange as e:
            logger.info(f"Stream duration limit reached: {e}")
            spontaneous = True
        except gax_exceptions.Cancelled as e:
            if stop_event.is_set():
                error_code = "aborted"
            else:
                logger.error(f"Google STT call cancelled: {e}")
                error_code = _error_code(e)
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            error_code = _error_code(e)
        except OSError as e:
            logger.error(f"Microphone could not be opened: {e}")
            error_code = "audio-capture"
        finally:
            capture.stop()
            # The next stream continues this one's text only after a spontaneous end
            self._carry_separator = spontaneous and (finalized > 0 or carry_separator)
            if error_code is not None:
                self._emit_error(error_code)
            self._emit_end()

    @staticmethod
    def _to_batch(response, finalized: int, carry_separator: bool) -> ResultBatch:
        """Convert a streaming response into a batch starting at ``finalized``."""
        slots = []
        for offset, result in enumerate(response.results):
            needs_space = finalized + offset > 0 or carry_separator
            alternatives = []
            for alternative in result.alternatives:
                text = alternative.transcript
                if needs_space and text and not text[0].isspace():
                    text = " " + text
                alternatives.append(text)
            slots.append(ResultSlot(alternatives=alternatives, is_final=result.is_final))

        logger.debug(f"Response at index {finalized}: {len(slots)} slots, "
                     f"final={[slot.is_final for slot in slots]}")
        return ResultBatch(result_index=finalized, slots=slots)
