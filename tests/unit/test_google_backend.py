"""Unit tests for GoogleStreamingEngine with a mocked client and microphone."""

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as gax_exceptions

from livescribe.models.audio import AudioStats
from livescribe.recognition.google_backend import GoogleStreamingEngine


class FakeCapture:
    """Stands in for MicrophoneStream."""

    def __init__(self, start_error=None, error=None):
        self.start_error = start_error
        self.error = error
        self.started = False
        self.stopped = False
        self.is_recording = False

    def start(self):
        if self.start_error:
            raise self.start_error
        self.started = True
        self.is_recording = True

    def stop(self):
        self.stopped = True
        self.is_recording = False

    def get_recording_stats(self):
        return AudioStats(is_recording=self.is_recording, duration_seconds=0.5, sample_rate=16000,
                          chunk_size=1024, total_chunks=8, peak_level=0.4)

    def chunks(self):
        yield b'\x00' * 2048


def response(*results):
    """Build a streaming response from ``(transcript, is_final)`` pairs."""
    return SimpleNamespace(results=[
        SimpleNamespace(alternatives=[SimpleNamespace(transcript=text)], is_final=is_final)
        for text, is_final in results
    ])


class Listener:
    """Collects engine callbacks in order."""

    def __init__(self, engine):
        self.batches = []
        self.errors = []
        self.order = []
        self.ended = threading.Event()
        self.end_count = 0
        engine.set_callbacks(self.on_result, self.on_end, self.on_error)

    def on_result(self, batch):
        self.batches.append(batch)
        self.order.append("result")

    def on_end(self):
        self.end_count += 1
        self.order.append("end")
        self.ended.set()

    def on_error(self, code):
        self.errors.append(code)
        self.order.append("error")

    def wait(self):
        assert self.ended.wait(5.0), "engine never ended"
        self.ended.clear()

    def texts(self):
        return [[(slot.transcript, slot.is_final) for slot in batch.slots] for batch in self.batches]


@pytest.fixture
def credentials_file(temp_data_dir):
    path = f"{temp_data_dir}/key.json"
    with open(path, "w", encoding="utf-8") as f:
        f.write("{}")
    return path


@pytest.fixture
def capture():
    return FakeCapture()


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def engine(credentials_file, capture, client):
    engine = GoogleStreamingEngine(credentials_path=credentials_file, capture_factory=lambda: capture)
    engine.client = client
    yield engine
    engine.cleanup()


@pytest.mark.unit
class TestStreaming:
    """Result conversion and stream lifecycle."""

    def test_results_become_batches_with_separators(self, engine, client):
        client.streaming_recognize.return_value = iter([
            response(("hello", False)),
            response(("hello world", True)),
            response(("how", False)),
            response(("how are you", True)),
        ])
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.texts() == [
            [("hello", False)],
            [("hello world", True)],
            [(" how", False)],
            [(" how are you", True)],
        ]
        assert [batch.result_index for batch in listener.batches] == [0, 0, 1, 1]
        assert listener.errors == []
        assert listener.end_count == 1

    def test_stream_after_spontaneous_end_continues_with_space(self, engine, client):
        client.streaming_recognize.side_effect = [
            iter([response(("first", True))]),
            iter([response(("second", True))]),
        ]
        listener = Listener(engine)

        engine.start()
        listener.wait()
        engine.start()
        listener.wait()

        assert listener.texts() == [[("first", True)], [(" second", True)]]

    def test_requested_stop_does_not_carry_separator(self, engine, client, capture):
        def stopped_stream():
            yield response(("first", True))
            engine.stop()

        client.streaming_recognize.side_effect = [
            stopped_stream(),
            iter([response(("fresh", True))]),
        ]
        listener = Listener(engine)

        engine.start()
        listener.wait()
        assert capture.stopped is True
        engine.start()
        listener.wait()

        assert listener.texts() == [[("first", True)], [("fresh", True)]]
        assert listener.errors == []

    def test_uses_configured_language(self, engine, client):
        client.streaming_recognize.return_value = iter([])
        listener = Listener(engine)

        engine.configure("en-US")
        engine.start()
        listener.wait()

        streaming_config = client.streaming_recognize.call_args.kwargs["config"]
        assert streaming_config.config.language_code == "en-US"
        assert streaming_config.interim_results is True

    def test_empty_responses_are_skipped(self, engine, client):
        client.streaming_recognize.return_value = iter([response(), response(("ok", True))])
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.texts() == [[("ok", True)]]


@pytest.mark.unit
class TestErrorMapping:
    """Google exceptions map to engine error codes, always before on_end."""

    @pytest.mark.parametrize("exception, code", [
        (gax_exceptions.PermissionDenied("denied"), "not-allowed"),
        (gax_exceptions.Unauthenticated("bad token"), "not-allowed"),
        (gax_exceptions.ServiceUnavailable("offline"), "network"),
        (gax_exceptions.DeadlineExceeded("slow"), "network"),
        (gax_exceptions.InvalidArgument("bad config"), "invalid_argument"),
    ])
    def test_api_errors(self, engine, client, exception, code):
        client.streaming_recognize.side_effect = exception
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.errors == [code]
        assert listener.order == ["error", "end"]

    def test_duration_limit_is_a_spontaneous_end(self, engine, client):
        client.streaming_recognize.side_effect = [
            gax_exceptions.OutOfRange("stream too long"),
            iter([response(("next", True))]),
        ]
        listener = Listener(engine)

        engine.start()
        listener.wait()
        assert listener.errors == []

        engine.start()
        listener.wait()
        # Nothing was finalized before the limit, so no separator is carried
        assert listener.texts() == [[("next", True)]]

    def test_cancel_after_stop_reports_abort(self, engine, client):
        def cancelled_stream():
            engine.stop()
            raise gax_exceptions.Cancelled("cancelled")
            yield  # pragma: no cover

        client.streaming_recognize.return_value = cancelled_stream()
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.errors == ["aborted"]

    def test_cancel_without_stop_is_unclassified(self, engine, client):
        client.streaming_recognize.side_effect = gax_exceptions.Cancelled("cancelled")
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.errors == ["cancelled"]

    def test_microphone_open_failure(self, credentials_file, client):
        engine = GoogleStreamingEngine(credentials_path=credentials_file,
                                       capture_factory=lambda: FakeCapture(start_error=OSError("busy")))
        engine.client = client
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.errors == ["audio-capture"]
        client.streaming_recognize.assert_not_called()

    def test_microphone_read_failure(self, credentials_file, client):
        engine = GoogleStreamingEngine(credentials_path=credentials_file,
                                       capture_factory=lambda: FakeCapture(error=OSError("unplugged")))
        engine.client = client
        client.streaming_recognize.return_value = iter([response(("cut", False))])
        listener = Listener(engine)

        engine.start()
        listener.wait()

        assert listener.errors == ["audio-capture"]
        assert listener.order == ["result", "error", "end"]

    def test_rejected_credentials(self, credentials_file, capture):
        engine = GoogleStreamingEngine(credentials_path=credentials_file, capture_factory=lambda: capture)
        listener = Listener(engine)

        with patch("livescribe.recognition.google_backend.service_account.Credentials"
                   ".from_service_account_file", side_effect=ValueError("not a key")):
            engine.start()
            listener.wait()

        assert listener.errors == ["not-allowed"]
        assert listener.end_count == 1
        assert capture.started is False


@pytest.mark.unit
class TestAvailability:
    """is_available checks."""

    def test_without_credentials(self, capture):
        engine = GoogleStreamingEngine(credentials_path=None, capture_factory=lambda: capture)

        assert engine.is_available() is False

    def test_missing_credentials_file(self, temp_data_dir, capture):
        engine = GoogleStreamingEngine(credentials_path=f"{temp_data_dir}/missing.json",
                                       capture_factory=lambda: capture)

        assert engine.is_available() is False

    def test_with_credentials_and_capture(self, credentials_file, capture):
        engine = GoogleStreamingEngine(credentials_path=credentials_file, capture_factory=lambda: capture)

        assert engine.is_available() is True

    def test_initialize_builds_client(self, credentials_file):
        credentials = MagicMock(project_id="demo-project")
        with patch("livescribe.recognition.google_backend.service_account.Credentials"
                   ".from_service_account_file", return_value=credentials), \
                patch("livescribe.recognition.google_backend.speech.SpeechClient") as client_class:
            engine = GoogleStreamingEngine(credentials_path=credentials_file)

            assert engine.initialize() is True

        client_class.assert_called_once_with(credentials=credentials)
        assert engine.project_id == "demo-project"


@pytest.mark.unit
class TestAudioStats:
    """Microphone statistics are exposed only while the stream captures."""

    def test_stats_while_streaming(self, engine, client):
        seen = []

        def stream():
            seen.append(engine.audio_stats())
            yield response(("level", True))

        client.streaming_recognize.return_value = stream()
        listener = Listener(engine)

        assert engine.audio_stats() is None
        engine.start()
        listener.wait()

        assert seen[0].peak_level == pytest.approx(0.4)
        assert seen[0].total_chunks == 8
        assert engine.audio_stats() is None
