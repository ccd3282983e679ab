"""Structured transform progress reporting.

This module emits periodic progress events while documents are written,
plus a final event for a trailing partial interval.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from core.constants import DEFAULT_PROGRESS_INTERVAL
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class TransformProgressTracker:
    """Track and emit progress events for one transformation run."""

    transformation: str
    event_name: str = "documents_transformed"
    interval: int = DEFAULT_PROGRESS_INTERVAL
    started_at: float = field(default_factory=time.monotonic)
    reported_counts: list[int] = field(default_factory=list)

    def log_progress(self, count: int) -> None:
        """Log an event when ``count`` completes an interval."""
        if count > 0 and count % self.interval == 0:
            self._emit(count)

    def log_final(self, count: int) -> None:
        """Log the remainder when the total is not a whole interval."""
        if count % self.interval != 0:
            self._emit(count)

    def _emit(self, count: int) -> None:
        self.reported_counts.append(count)
        _LOGGER.info(
            self.event_name,
            transformation=self.transformation,
            count=count,
            elapsed_seconds=round(time.monotonic() - self.started_at, 3),
        )
