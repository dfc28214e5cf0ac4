"""Aggregation of test runner lifecycle events into a run report."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from run_reporter.artifacts import write_artifacts
from run_reporter.config import ReportConfig
from run_reporter.console import Console, LoggingConsole
from run_reporter.errors import ArtifactWriteError, ConfigurationError
from run_reporter.models.outcome import (
    AttemptResult,
    RunStatus,
    StepInfo,
    TestIdentity,
    TestOutcome,
)
from run_reporter.models.summary import RunReport, RunSummary
from run_reporter.rendering import render_console_summary, status_icon

log = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


@dataclass(kw_only=True)
class ResultAggregator:
    """Collects per-test events from a runner and reports the finished run.

    One aggregator owns one ``RunSummary``. Callbacks are not locked: the
    runner must deliver events one at a time, even when test bodies run in
    parallel, and ``on_run_finish`` must come after every ``on_test_end``.
    """

    config: ReportConfig = field(default_factory=ReportConfig)
    console: Console = field(default_factory=LoggingConsole)
    clock: Callable[[], datetime] = field(default=utc_now, repr=False)
    summary: RunSummary | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        """Reject report directories that point at something else."""
        report_dir = self.config.report_dir
        if report_dir.exists() and not report_dir.is_dir():
            raise ConfigurationError(f"Report path is not a directory: {report_dir}")

    def on_run_start(self, total_test_count: int) -> RunSummary:
        """Start a new run."""
        self.summary = RunSummary(start_time=self.clock())
        self.console.info(f"Starting test run with {total_test_count} tests")
        return self.summary

    def on_test_start(self, test: TestIdentity) -> None:
        """Report that a test started."""
        self._require_summary()
        self.console.info(f"Running test: {test.title}")

    def on_step_start(self, test: TestIdentity, step: StepInfo) -> None:
        """Report a user-declared step."""
        if step.category == "test.step":
            self.console.info(f"  Step: {step.title}")

    def on_step_end(self, test: TestIdentity, step: StepInfo) -> None:
        """Report a step failure, if any."""
        if step.error is not None:
            self.console.error(f"  Step failed: {step.title}")
            self.console.error(f"  Error: {step.error.message}")

    def on_test_end(self, test: TestIdentity, result: AttemptResult) -> TestOutcome:
        """Record one attempt of a test.

        Every call appends a new outcome; the runner guarantees one call per
        test attempt.
        """
        summary = self._require_summary()
        outcome = TestOutcome.from_attempt(test, result)
        summary.append(outcome)

        self.console.info(
            f"{status_icon(outcome.status)} {outcome.title} ({outcome.duration_ms}ms)"
        )
        if outcome.error_message:
            self.console.error(f"   {outcome.error_message}")
        return outcome

    def on_run_finish(self, run_status: RunStatus | None = None) -> RunReport:
        """Finalize the run, write artifacts and print the summary.

        Artifact writes are best effort: failures are logged and the console
        summary is printed regardless.
        """
        report = self._require_summary().finalize(self.clock(), run_status)

        try:
            write_artifacts(report, self.config)
        except ArtifactWriteError as e:
            log.warning("%s", e)

        for line in render_console_summary(report):
            self.console.info(line)

        return report

    def _require_summary(self) -> RunSummary:
        if self.summary is None:
            raise RuntimeError("Test run has not started")
        return self.summary
