"""Abstract base class for webhook notifiers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from run_reporter.errors import NotificationError
from run_reporter.models.summary import RunReport
from run_reporter.notifiers.config import WebhookConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Notifier(ABC):
    """Posts a summary of a finished run to a chat webhook.

    Subclasses only build the message; delivery and the failure-only filter
    are shared.
    """

    name: str = field(init=False, default="notifier")
    config: WebhookConfig
    session: aiohttp.ClientSession = field(repr=False)

    @abstractmethod
    def build_message(self, report: RunReport) -> Mapping[str, Any]:
        """Build the webhook payload for a report.

        Args:
            report: Finished run report

        Returns:
            JSON-serializable message body

        """

    def should_notify(self, report: RunReport) -> bool:
        """Whether a message is sent for this report."""
        return report.has_failures or not self.config.only_on_failure

    async def notify(self, report: RunReport) -> bool:
        """Send the run summary.

        Returns:
            True if a message was sent, False if it was filtered out

        Raises:
            NotificationError: If the webhook answers with a non-2xx status

        """
        if not self.should_notify(report):
            log.info("Skipping %s notification for passing run", self.name)
            return False

        url = self.config.webhook_url.get_secret_value()
        async with self.session.post(url, json=self.build_message(report)) as response:
            if not 200 <= response.status < 300:
                text = await response.text()
                raise NotificationError(
                    f"{self.name} notification failed: {response.status} {text}"
                )

        log.info("Sent %s notification", self.name)
        return True


def run_outcome(report: RunReport) -> str:
    """Return ``failed`` or ``passed`` for message titles."""
    return "failed" if report.has_failures else "passed"


def format_duration(report: RunReport) -> str:
    """Format the run duration in seconds."""
    return f"{report.duration / 1000:.2f}s"
