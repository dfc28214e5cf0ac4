"""Exceptions raised by run-reporter."""

from typing import Any


class ConfigurationError(ValueError):
    """Raised for invalid retry policies or report locations."""


class SummaryFinalizedError(RuntimeError):
    """Raised when a finalized run summary is mutated."""


class ArtifactWriteError(OSError):
    """Raised when a report artifact cannot be written."""


class NotificationError(RuntimeError):
    """Raised when a notification webhook rejects a message."""


class PredicateTimeoutError(TimeoutError):
    """Raised when a poll exhausts its attempts without meeting its condition.

    The last observed result is kept for diagnostics.
    """

    def __init__(self, attempts: int, last_result: Any = None) -> None:
        super().__init__(f"Condition not met after {attempts} attempt(s)")
        self.attempts = attempts
        self.last_result = last_result
