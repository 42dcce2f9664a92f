"""Job progress events - fire and forget.

A listener that raises never affects the job; its error is logged at debug
level and dropped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

log = logging.getLogger("progress")

STAGES = ("start", "download", "generate", "write", "complete")


@dataclass(frozen=True)
class ProgressEvent:
    """One progress update for a job. `progress` is a ratio in [0, 1]."""
    job_id: str
    message: str
    progress: float
    stage: str


ProgressListener = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Sends ProgressEvents for one job to an optional listener."""

    def __init__(self, job_id: str, listener: Optional[ProgressListener] = None):
        self.job_id = job_id
        self.listener = listener

    def emit(self, message: str, progress: float, stage: str) -> None:
        if stage not in STAGES:
            raise ValueError(f"Unknown progress stage {stage!r} (expected one of {STAGES})")
        if self.listener is None:
            return
        event = ProgressEvent(self.job_id, message, float(progress), stage)
        try:
            self.listener(event)
        except Exception as e:
            log.debug("Progress listener failed for %s: %s", self.job_id, e)
