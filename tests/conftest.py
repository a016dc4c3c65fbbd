"""Pytest configuration and fixtures for LiveScribe tests."""

import pytest
import tempfile
import logging
from typing import Callable, List

from pubsub import pub

from livescribe.models.events import SNAPSHOT_TOPIC, SESSION_EVENT_TOPIC
from livescribe.models.transcription import ResultBatch
from livescribe.recognition.base import AbstractRecognitionEngine
from livescribe.storage.store import MemoryStore


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond temp dirs")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every pubsub listener after each test."""
    yield
    pub.unsubAll()


class FakeEngine(AbstractRecognitionEngine):
    """Scripted engine: records calls; tests emit events explicitly."""

    def __init__(self, available: bool = True):
        super().__init__()
        self.available = available
        self.calls: List[str] = []
        self.started_languages: List[str] = []
        self.cleaned_up = False

    def initialize(self) -> bool:
        return True

    def is_available(self) -> bool:
        return self.available

    def start(self) -> None:
        self.calls.append("start")
        self.started_languages.append(self.language)

    def stop(self) -> None:
        self.calls.append("stop")

    def cleanup(self) -> None:
        self.cleaned_up = True

    @property
    def start_count(self) -> int:
        return self.calls.count("start")

    @property
    def stop_count(self) -> int:
        return self.calls.count("stop")

    def emit_result(self, result_index: int, *slots) -> None:
        self._emit_result(ResultBatch.of(result_index, *slots))

    def emit_end(self) -> None:
        self._emit_end()

    def emit_error(self, code: str) -> None:
        self._emit_error(code)


class ManualTimer:
    """Restartable timer driven by the test instead of the clock."""

    def __init__(self, interval: float, function: Callable[[], None]):
        self.interval = interval
        self.function = function
        self.is_pending = False
        self.restarts = 0

    def restart(self) -> None:
        self.is_pending = True
        self.restarts += 1

    def cancel(self) -> None:
        self.is_pending = False

    def fire(self) -> None:
        """Expire the timer if it is armed."""
        if self.is_pending:
            self.is_pending = False
            self.function()


class ManualTimerFactory:
    """Timer factory keeping every timer it creates."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in self.timers:
            timer.fire()


class EventRecorder:
    """Collects published snapshots and session events."""

    def __init__(self):
        self.snapshots = []
        self.events = []
        pub.subscribe(self.on_snapshot, SNAPSHOT_TOPIC)
        pub.subscribe(self.on_event, SESSION_EVENT_TOPIC)

    def on_snapshot(self, snapshot):
        self.snapshots.append(snapshot)

    def on_event(self, event):
        self.events.append(event)

    def event_types(self) -> List[str]:
        return [event.event_type for event in self.events]

    def of_type(self, event_type: str):
        return [event for event in self.events if event.event_type == event_type]


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def timer_factory():
    return ManualTimerFactory()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def recorder():
    return EventRecorder()
