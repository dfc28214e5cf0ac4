"""Run summary accumulation and the canonical report document."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import Field

from run_reporter.errors import SummaryFinalizedError
from run_reporter.models.base import ReportModel
from run_reporter.models.outcome import RunStatus, TestOutcome, TestStatus


@dataclass(frozen=True, kw_only=True)
class SummaryCounts:
    """Per-status counts derived from a run's outcomes."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    timed_out: int = 0
    interrupted: int = 0
    flaky: int = 0


def compute_counts(outcomes: Iterable[TestOutcome]) -> SummaryCounts:
    """Count outcomes per status and detect flaky tests.

    Every outcome record is counted, so a test retried twice contributes three
    records. A test is flaky when its highest retry index is above zero and the
    outcome at that index passed; tests are grouped by their full title path.
    """
    by_status = dict.fromkeys(
        ("passed", "failed", "skipped", "timedOut", "interrupted"), 0
    )
    latest: dict[tuple[str, ...], TestOutcome] = {}
    total = 0

    for outcome in outcomes:
        total += 1
        by_status[outcome.status] += 1
        key = tuple(outcome.full_title_path) or (outcome.title,)
        current = latest.get(key)
        if current is None or outcome.retry_index >= current.retry_index:
            latest[key] = outcome

    flaky = sum(
        1
        for outcome in latest.values()
        if outcome.retry_index > 0 and outcome.status == "passed"
    )

    return SummaryCounts(
        total=total,
        passed=by_status["passed"],
        failed=by_status["failed"],
        skipped=by_status["skipped"],
        timed_out=by_status["timedOut"],
        interrupted=by_status["interrupted"],
        flaky=flaky,
    )


class RunReport(ReportModel):
    """Finalized run, serialized as ``custom-report.json``.

    Notification senders rely on ``passed``, ``failed``, ``skipped``,
    ``totalTests`` and ``duration``; these keys must stay stable.
    """

    start_time: datetime
    end_time: datetime
    duration: int = Field(..., ge=0, description="Run duration in milliseconds")
    status: RunStatus | None = None
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    flaky: int = 0
    results: Sequence[TestOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> Sequence[TestOutcome]:
        """Outcomes that failed or timed out, in recorded order."""
        return [outcome for outcome in self.results if outcome.is_failure]

    def outcomes_with_status(self, status: TestStatus) -> Sequence[TestOutcome]:
        """Outcomes with the given status, in recorded order."""
        return [outcome for outcome in self.results if outcome.status == status]

    @property
    def has_failures(self) -> bool:
        """Whether the run should be reported as failing."""
        if self.status in {"failed", "timedout", "interrupted"}:
            return True
        return bool(self.failures)

    def counts(self) -> SummaryCounts:
        """Recompute counts from the recorded outcomes."""
        return compute_counts(self.results)


@dataclass(kw_only=True)
class RunSummary:
    """In-memory state of a single run.

    Outcomes are appended as tests complete; ``finalize`` is terminal. The
    summary does no locking: callers must not append concurrently.
    """

    start_time: datetime
    outcomes: list[TestOutcome] = field(default_factory=list)
    end_time: datetime | None = None
    status: RunStatus | None = None

    @property
    def finalized(self) -> bool:
        """Whether ``finalize`` has been called."""
        return self.end_time is not None

    @property
    def total_duration_ms(self) -> int | None:
        """Milliseconds between start and end, once finalized."""
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    def append(self, outcome: TestOutcome) -> None:
        """Record one test attempt."""
        if self.finalized:
            raise SummaryFinalizedError("Cannot add outcomes to a finalized run")
        self.outcomes.append(outcome)

    def finalize(self, end_time: datetime, status: RunStatus | None = None) -> RunReport:
        """Close the run and build its report.

        An ``end_time`` earlier than ``start_time`` is clamped to the start.
        """
        if self.finalized:
            raise SummaryFinalizedError("Run summary has already been finalized")

        self.end_time = max(end_time, self.start_time)
        self.status = status
        counts = compute_counts(self.outcomes)

        return RunReport(
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.total_duration_ms or 0,
            status=status,
            total_tests=counts.total,
            passed=counts.passed,
            failed=counts.failed,
            skipped=counts.skipped,
            flaky=counts.flaky,
            results=list(self.outcomes),
        )
