"""Slack notifier implementation."""

import time
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from run_reporter.models.summary import RunReport
from run_reporter.notifiers.base import Notifier, format_duration, run_outcome
from run_reporter.notifiers.slack.config import SlackConfig


@dataclass(frozen=True, kw_only=True)
class SlackNotifier(Notifier):
    """Sends run summaries as Slack attachment messages."""

    name: str = field(init=False, default="Slack")
    config: SlackConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: SlackConfig
    ) -> AsyncGenerator["SlackNotifier", None]:
        """Create notifier with managed session lifecycle."""
        async with aiohttp.ClientSession() as session:
            yield cls(config=config, session=session)

    def build_message(self, report: RunReport) -> Mapping[str, Any]:
        """Build an attachment message with run totals."""
        outcome = run_outcome(report)
        passed = outcome == "passed"

        def fact(title: str, value: object) -> dict[str, Any]:
            return {"title": title, "value": str(value), "short": True}

        message: dict[str, Any] = {
            "username": self.config.username,
            "icon_emoji": ":white_check_mark:" if passed else ":x:",
            "attachments": [
                {
                    "color": "good" if passed else "danger",
                    "title": f"Test Run {outcome.capitalize()}",
                    "fields": [
                        fact("Total Tests", report.total_tests),
                        fact("Passed", report.passed),
                        fact("Failed", report.failed),
                        fact("Skipped", report.skipped),
                        fact("Environment", self.config.environment),
                        fact("Duration", format_duration(report)),
                    ],
                    "footer": "Test Results",
                    "ts": int(time.time()),
                }
            ],
        }
        if self.config.channel:
            message["channel"] = self.config.channel
        return message
