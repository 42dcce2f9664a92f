"""Tests for job progress reporting."""
import pytest

from narration.progress import STAGES, ProgressEvent, ProgressReporter


class TestProgressReporter:

    @pytest.mark.parametrize("stage", STAGES)
    def test_known_stages_are_delivered(self, stage):
        events = []
        ProgressReporter("tts-1", events.append).emit("msg", 0.5, stage)
        assert events == [ProgressEvent("tts-1", "msg", 0.5, stage)]

    def test_unknown_stage_rejected(self):
        reporter = ProgressReporter("tts-1", lambda event: None)
        with pytest.raises(ValueError, match="rendering"):
            reporter.emit("msg", 0.5, "rendering")

    def test_unknown_stage_rejected_without_listener(self):
        with pytest.raises(ValueError):
            ProgressReporter("tts-1").emit("msg", 0.5, "done")

    def test_no_listener_is_a_no_op(self):
        ProgressReporter("tts-1").emit("msg", 0.5, "generate")

    def test_listener_errors_swallowed(self):
        def explode(event):
            raise RuntimeError("ui closed")

        ProgressReporter("tts-1", explode).emit("msg", 1.0, "complete")
