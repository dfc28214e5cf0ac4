"""Microsoft Teams notifier implementation."""

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from run_reporter.models.summary import RunReport
from run_reporter.notifiers.base import Notifier, format_duration, run_outcome
from run_reporter.notifiers.teams.config import TeamsConfig


@dataclass(frozen=True, kw_only=True)
class TeamsNotifier(Notifier):
    """Sends run summaries as Teams MessageCards."""

    name: str = field(init=False, default="Teams")
    config: TeamsConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: TeamsConfig
    ) -> AsyncGenerator["TeamsNotifier", None]:
        """Create notifier with managed session lifecycle."""
        async with aiohttp.ClientSession() as session:
            yield cls(config=config, session=session)

    def build_message(self, report: RunReport) -> Mapping[str, Any]:
        """Build a MessageCard with run totals as facts."""
        outcome = run_outcome(report)
        return {
            "@type": "MessageCard",
            "@context": "http://schema.org/extensions",
            "themeColor": "00FF00" if outcome == "passed" else "FF0000",
            "summary": f"Test Run {outcome.capitalize()}",
            "sections": [
                {
                    "activityTitle": f"{self.config.title} - {outcome.upper()}",
                    "activitySubtitle": f"Environment: {self.config.environment}",
                    "facts": [
                        {"name": "Total Tests", "value": str(report.total_tests)},
                        {"name": "Passed", "value": str(report.passed)},
                        {"name": "Failed", "value": str(report.failed)},
                        {"name": "Skipped", "value": str(report.skipped)},
                        {"name": "Duration", "value": format_duration(report)},
                    ],
                    "markdown": True,
                }
            ],
        }
