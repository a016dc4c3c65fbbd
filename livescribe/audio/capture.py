"""Microphone capture feeding a streaming recognizer."""

import logging
import queue
import threading
from datetime import datetime
from typing import Iterator, Optional

import numpy as np
import pyaudio

from ..models.audio import AudioStats

logger = logging.getLogger(__name__)


class MicrophoneStream:
    """Continuous microphone capture exposed as a blocking chunk generator.

    A background thread reads fixed-size chunks from PyAudio into a queue;
    ``chunks()`` yields them until ``stop()`` is called or the device fails.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone capture with specified parameters.

        Args:
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.is_recording = False
        self.error: Optional[OSError] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self._queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._stream = None

    @staticmethod
    def has_input_device() -> bool:
        """Whether PyAudio reports a default input device."""
        instance = pyaudio.PyAudio()
        try:
            instance.get_default_input_device_info()
            return True
        except (IOError, OSError) as e:
            logger.warning(f"No audio input device available: {e}")
            return False
        finally:
            instance.terminate()

    def start(self) -> None:
        """Open the input device and start reading in a background thread.

        Raises:
            OSError: if the input device cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting microphone capture")
        self.stop_event.clear()
        self.error = None
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0
        self._queue = queue.Queue()

        self._stream = self.__open_audio_stream()
        self.is_recording = True

        self.recording_thread = threading.Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "MicrophoneStreamThread"
        self.recording_thread.start()

    def stop(self) -> None:
        """Signal the reader thread to finish; does not wait for it."""
        if not self.is_recording:
            return
        logger.info("Stopping microphone capture")
        self.stop_event.set()
        self.is_recording = False

    def chunks(self) -> Iterator[bytes]:
        """Yield captured chunks until capture stops."""
        while True:
            chunk = self._queue.get()
            if chunk is None:
                return
            yield chunk

    def __open_audio_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (IOError, OSError):
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            raise
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = self._stream
        try:
            while not self.stop_event.is_set():
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                self.total_chunks += 1
                self.peak_level = self._measure_peak(audio_chunk)
                self._queue.put(audio_chunk)
        except (IOError, OSError) as e:
            logger.error(f"Microphone read failed: {e}")
            self.error = e
        finally:
            try:
                stream.stop_stream()
                stream.close()
                if self.pyaudio_instance:
                    self.pyaudio_instance.terminate()
                    self.pyaudio_instance = None
            finally:
                self.is_recording = False
                # Sentinel goes last so a drained generator implies released resources
                self._queue.put(None)
            logger.info(f"Microphone capture ended. Total chunks: {self.total_chunks}")

    @staticmethod
    def _measure_peak(audio_chunk: bytes) -> float:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size == 0:
            return 0.0
        return float(np.abs(samples.astype(np.int32)).max()) / 32768.0

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )
