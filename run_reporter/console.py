"""Console sinks for live run output."""

import logging
from typing import Protocol

log = logging.getLogger("run_reporter")


class Console(Protocol):
    """Destination for progress and summary lines."""

    def info(self, line: str) -> None:
        """Write an informational line."""

    def error(self, line: str) -> None:
        """Write an error line."""


class LoggingConsole:
    """Console that forwards lines to the ``run_reporter`` logger."""

    def __init__(self, logger: logging.Logger = log) -> None:
        self.logger = logger

    def info(self, line: str) -> None:
        """Log at INFO level."""
        self.logger.info("%s", line)

    def error(self, line: str) -> None:
        """Log at ERROR level."""
        self.logger.error("%s", line)
