"""Single-key terminal input for the LiveScribe screen."""

import sys
import threading
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

KeyCallback = Callable[[str], bool]


class KeyboardInputHandler:
    """Reads single keypresses on a background thread.

    The callback receives each key (lower-cased) and returns False to stop
    reading.
    """

    def __init__(self, callback: KeyCallback, poll_interval: float = 0.1):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key and returns True to continue, False to quit
            poll_interval: Seconds to wait for a key before checking for shutdown
        """
        self.callback = callback
        self.poll_interval = poll_interval
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def start(self) -> None:
        if self.running:
            return

        self.running = True
        self.finished.clear()
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        try:
            while self.running:
                key = self._get_key()
                if not key:
                    continue
                logger.debug(f"Key detected: {key!r}")
                if not self.callback(key):
                    logger.info("Callback requested quit, ending input loop")
                    break
        except Exception as e:
            logger.error(f"Input loop error: {e}", exc_info=True)
        finally:
            self.running = False
            self.finished.set()

    def _get_key(self) -> Optional[str]:
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()

    def _get_key_windows(self) -> Optional[str]:
        import msvcrt
        import time

        if msvcrt.kbhit():
            return msvcrt.getwch().lower()
        time.sleep(self.poll_interval)
        return None

    def _get_key_unix(self) -> Optional[str]:
        import select
        import termios
        import tty

        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            # cbreak keeps Ctrl+C working, unlike raw mode
            tty.setcbreak(fd)
            if select.select([sys.stdin], [], [], self.poll_interval)[0]:
                return sys.stdin.read(1).lower()
            return None
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
