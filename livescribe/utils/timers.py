"""Restartable single-shot timer used for debouncing and activity pulses."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RestartableTimer:
    """Single-shot timer that can be re-armed; only the latest arming fires.

    Each ``restart()`` cancels the pending shot and schedules a new one after
    ``interval`` seconds. A shot that was superseded or cancelled never runs
    its callback, even if its thread had already woken up.
    """

    def __init__(self, interval: float, function: Callable[[], None], name: str = "RestartableTimer"):
        self.interval = interval
        self.function = function
        self.name = name
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    def restart(self) -> None:
        """(Re)arm the timer."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
            self._generation += 1
            self._timer = threading.Timer(self.interval, self._fire, args=(self._generation,))
            self._timer.name = self.name
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Disarm the timer; a no-op if nothing is pending."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    @property
    def is_pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        try:
            self.function()
        except Exception as e:
            logger.error(f"Error in timer callback '{self.name}': {e}", exc_info=True)


TimerFactory = Callable[[float, Callable[[], None]], RestartableTimer]
