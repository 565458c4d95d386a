"""Progress sinks for distance-matrix computations."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NullProgressSink:
    def update(self, completed: int, total: int, message: str) -> None:
        return None


class LoggingProgressSink:
    """Logs progress every ``every`` pairs and on completion."""

    def __init__(self, every: int = 25, log: logging.Logger | None = None) -> None:
        self.every = max(1, every)
        self._logger = log or logger

    def update(self, completed: int, total: int, message: str) -> None:
        if completed == total or completed % self.every == 0:
            self._logger.info(f"Progress: {message}")
