"""Transcript assembler: merges partial/final result batches into running text.

Final slots are appended to the confirmed text exactly as delivered; interim
slots only ever reach the live view. Every batch also pulses a short-lived
"speech activity" indicator used for UI feedback.
"""

import logging
from typing import Callable, Optional, Tuple

from ..models.transcription import ResultBatch
from ..utils.timers import RestartableTimer, TimerFactory

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_WINDOW_SECONDS = 0.5


def merge_results(batch: ResultBatch, prior_final: str) -> Tuple[str, str]:
    """Merge one batch into previously confirmed text.

    Args:
        batch: Slots starting at ``batch.result_index``, in ascending index order
        prior_final: Confirmed text before this batch

    Returns:
        Tuple of (new final text, new live text)
    """
    final = prior_final
    interim = ""
    for slot in batch.slots:
        if slot.is_final:
            final += slot.transcript
        else:
            interim += slot.transcript
    return final, final + interim


class TranscriptAssembler:
    """Applies result batches and drives the speech activity pulse."""

    def __init__(self,
                 on_activity: Callable[[bool], None],
                 activity_window: float = DEFAULT_ACTIVITY_WINDOW_SECONDS,
                 timer_factory: Optional[TimerFactory] = None):
        """Initialize transcript assembler.

        Args:
            on_activity: Called with True on each batch and False once the window expires
            activity_window: Seconds of quiet after which activity is reported as over
            timer_factory: Factory for the restartable activity timer
        """
        self.on_activity = on_activity
        self.activity_window = activity_window
        factory = timer_factory or RestartableTimer
        self._activity_timer = factory(activity_window, self._expire_activity)

    def ingest(self, batch: ResultBatch, prior_final: str) -> Tuple[str, str]:
        """Pulse activity and merge ``batch`` onto ``prior_final``."""
        self.on_activity(True)
        self._activity_timer.restart()

        final, live = merge_results(batch, prior_final)
        logger.debug(f"Merged batch at index {batch.result_index}: "
                     f"{len(batch.slots)} slots, final={len(final)} chars, live={len(live)} chars")
        return final, live

    @property
    def activity_pending(self) -> bool:
        """Whether the activity window is currently armed."""
        return self._activity_timer.is_pending

    def cancel_activity(self) -> None:
        """Stop the activity pulse without reporting expiry."""
        self._activity_timer.cancel()

    def _expire_activity(self) -> None:
        self.on_activity(False)
