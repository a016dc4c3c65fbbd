"""Unit tests for transcript assembly."""

import pytest

from livescribe.models.transcription import ResultBatch, ResultSlot
from livescribe.transcription.assembler import TranscriptAssembler, merge_results


@pytest.mark.unit
class TestMergeResults:
    """Test cases for merge_results."""

    def test_final_slot_appends_to_final_text(self):
        final, live = merge_results(ResultBatch.of(0, ("hello", True)), "")

        assert final == "hello"
        assert live == "hello"

    def test_interim_slot_only_reaches_live_text(self):
        final, live = merge_results(ResultBatch.of(1, (" wor", False)), "hello")

        assert final == "hello"
        assert live == "hello wor"

    def test_mixed_batch_in_index_order(self):
        batch = ResultBatch.of(2, (" one", True), (" two", True), (" thr", False))

        final, live = merge_results(batch, "zero")

        assert final == "zero one two"
        assert live == "zero one two thr"

    def test_best_alternative_is_used(self):
        batch = ResultBatch(result_index=0, slots=[
            ResultSlot(alternatives=["best guess", "second guess"], is_final=True),
        ])

        final, _ = merge_results(batch, "")

        assert final == "best guess"

    def test_slot_without_alternatives_contributes_nothing(self):
        batch = ResultBatch(result_index=0, slots=[ResultSlot(alternatives=[], is_final=True)])

        assert merge_results(batch, "kept") == ("kept", "kept")

    def test_prior_final_text_is_never_rewritten(self):
        prior = "already confirmed"
        final, live = merge_results(ResultBatch.of(3, ("", False)), prior)

        assert final.startswith(prior)
        assert live.startswith(prior)


@pytest.mark.unit
class TestTranscriptAssembler:
    """Test cases for the activity pulse."""

    def test_ingest_pulses_activity(self, timer_factory):
        activity = []
        assembler = TranscriptAssembler(on_activity=activity.append, timer_factory=timer_factory)

        result = assembler.ingest(ResultBatch.of(0, ("hi", False)), "")

        assert result == ("", "hi")
        assert activity == [True]
        assert timer_factory.timers[0].is_pending
        assert timer_factory.timers[0].interval == 0.5

    def test_each_batch_rearms_the_window(self, timer_factory):
        activity = []
        assembler = TranscriptAssembler(on_activity=activity.append, timer_factory=timer_factory)

        assembler.ingest(ResultBatch.of(0, ("a", False)), "")
        assembler.ingest(ResultBatch.of(0, ("ab", False)), "")
        timer_factory.fire_all()

        assert timer_factory.timers[0].restarts == 2
        assert activity == [True, True, False]

    def test_cancel_activity_suppresses_expiry(self, timer_factory):
        activity = []
        assembler = TranscriptAssembler(on_activity=activity.append, timer_factory=timer_factory)

        assembler.ingest(ResultBatch.of(0, ("a", False)), "")
        assembler.cancel_activity()
        timer_factory.fire_all()

        assert activity == [True]

    def test_activity_pending_follows_the_window(self, timer_factory):
        assembler = TranscriptAssembler(on_activity=lambda active: None, timer_factory=timer_factory)
        assert assembler.activity_pending is False

        assembler.ingest(ResultBatch.of(0, ("a", False)), "")
        assert assembler.activity_pending is True

        assembler.cancel_activity()
        assert assembler.activity_pending is False
