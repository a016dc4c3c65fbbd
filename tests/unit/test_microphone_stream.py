"""Unit tests for MicrophoneStream (PyAudio mocked)."""

import pytest
from unittest.mock import Mock, patch
import numpy as np

pytest.importorskip("pyaudio")

from livescribe.audio.capture import MicrophoneStream  # noqa: E402


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def tone_chunk(peak: int) -> bytes:
    return np.array([0, peak // 2, -peak, 0], dtype=np.int16).tobytes()


@pytest.mark.unit
class TestMicrophoneStream:
    """Test cases for MicrophoneStream."""

    def test_initialization(self):
        mic = MicrophoneStream()

        assert mic.sample_rate == 16000
        assert mic.chunk_size == 1024
        assert mic.channels == 1
        assert mic.is_recording is False
        assert mic.total_chunks == 0

    def test_chunks_until_device_error(self, mock_pyaudio):
        first, second = tone_chunk(1000), tone_chunk(32768 - 1)
        mock_pyaudio['stream'].read.side_effect = [first, second, OSError("device unplugged")]
        mic = MicrophoneStream()

        mic.start()
        received = list(mic.chunks())

        assert received == [first, second]
        assert isinstance(mic.error, OSError)
        assert mic.total_chunks == 2
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_stop_ends_chunk_generator(self, mock_pyaudio):
        mic = MicrophoneStream()
        mic.start()
        chunks = mic.chunks()

        assert next(chunks) == b'\x00' * 2048
        mic.stop()
        remaining = list(chunks)

        assert all(chunk == b'\x00' * 2048 for chunk in remaining)
        assert mic.error is None
        assert mic.is_recording is False

    def test_open_failure_raises(self, mock_pyaudio):
        mock_pyaudio['instance'].open.side_effect = OSError("Invalid input device")
        mic = MicrophoneStream()

        with pytest.raises(OSError):
            mic.start()
        assert mic.is_recording is False
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_peak_level(self):
        assert MicrophoneStream._measure_peak(tone_chunk(16384)) == pytest.approx(0.5)
        assert MicrophoneStream._measure_peak(b"") == 0.0

    def test_recording_stats(self, mock_pyaudio):
        mock_pyaudio['stream'].read.side_effect = [tone_chunk(16384), OSError("gone")]
        mic = MicrophoneStream(sample_rate=44100, chunk_size=512)
        mic.start()
        list(mic.chunks())

        stats = mic.get_recording_stats()

        assert stats.sample_rate == 44100
        assert stats.chunk_size == 512
        assert stats.total_chunks == 1
        assert stats.peak_level == pytest.approx(0.5)
        assert stats.duration_seconds >= 0.0

    def test_has_input_device(self, mock_pyaudio):
        assert MicrophoneStream.has_input_device() is True

        mock_pyaudio['instance'].get_default_input_device_info.side_effect = IOError("No Default Input Device")
        assert MicrophoneStream.has_input_device() is False
        assert mock_pyaudio['instance'].terminate.call_count == 2
