"""Tests for ResultAggregator."""

import json
import logging
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from run_reporter.aggregator import ResultAggregator
from run_reporter.config import ReportConfig
from run_reporter.errors import ConfigurationError, SummaryFinalizedError
from run_reporter.models.outcome import Location, StepInfo, TestError
from run_reporter.testing.factories import AttemptFactory, IdentityFactory

START = datetime(2099, 1, 1, 12, 0, tzinfo=timezone.utc)


class RecordingConsole:
    """Console keeping every line it receives."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.errors: list[str] = []

    def info(self, line: str) -> None:
        self.lines.append(line)

    def error(self, line: str) -> None:
        self.errors.append(line)


def ticking_clock(step: timedelta = timedelta(seconds=2)) -> Iterator[datetime]:
    current = START
    while True:
        yield current
        current += step


@pytest.fixture
def console() -> RecordingConsole:
    """Create recording console."""
    return RecordingConsole()


@pytest.fixture
def aggregator(tmp_path: Path, console: RecordingConsole) -> ResultAggregator:
    """Create aggregator writing into a temporary directory."""
    clock = ticking_clock()
    return ResultAggregator(
        config=ReportConfig(report_dir=tmp_path / "reports"),
        console=console,
        clock=lambda: next(clock),
    )


def test_run_start_reports_total(
    aggregator: ResultAggregator, console: RecordingConsole
) -> None:
    """Starting a run prints the test count and creates an empty summary."""
    summary = aggregator.on_run_start(5)

    assert summary.start_time == START
    assert summary.outcomes == []
    assert console.lines == ["Starting test run with 5 tests"]


def test_events_before_start_raise(aggregator: ResultAggregator) -> None:
    """Recording results requires a started run."""
    with pytest.raises(RuntimeError, match="has not started"):
        aggregator.on_test_end(IdentityFactory.build(), AttemptFactory.build())


def test_test_start_does_not_record(
    aggregator: ResultAggregator, console: RecordingConsole
) -> None:
    """Test start only prints progress."""
    aggregator.on_run_start(1)

    aggregator.on_test_start(IdentityFactory.build(title="opens home page"))

    assert aggregator.summary is not None
    assert aggregator.summary.outcomes == []
    assert "Running test: opens home page" in console.lines


def test_steps_are_reported_live(
    aggregator: ResultAggregator, console: RecordingConsole
) -> None:
    """User steps are printed and step failures reported as errors."""
    aggregator.on_run_start(1)
    test = IdentityFactory.build()

    aggregator.on_step_start(test, StepInfo(title="fill form"))
    aggregator.on_step_start(test, StepInfo(title="page.goto", category="pw:api"))
    aggregator.on_step_end(
        test, StepInfo(title="submit", error=TestError(message="button missing"))
    )
    aggregator.on_step_end(test, StepInfo(title="fill form"))

    assert "  Step: fill form" in console.lines
    assert "  Step: page.goto" not in console.lines
    assert console.errors == ["  Step failed: submit", "  Error: button missing"]


def test_test_end_records_outcome(
    aggregator: ResultAggregator, console: RecordingConsole
) -> None:
    """Each test end appends one outcome and prints a status line."""
    aggregator.on_run_start(1)

    outcome = aggregator.on_test_end(
        IdentityFactory.build(title="adds to cart"),
        AttemptFactory.build(
            status="failed",
            duration_ms=812,
            error=TestError(message="expected 2 items"),
        ),
    )

    assert aggregator.summary is not None
    assert aggregator.summary.outcomes == [outcome]
    assert "❌ adds to cart (812ms)" in console.lines
    assert "   expected 2 items" in console.errors


def test_does_not_deduplicate_attempts(aggregator: ResultAggregator) -> None:
    """Every attempt is recorded, retries included."""
    aggregator.on_run_start(1)
    test = IdentityFactory.build(full_title_path=["suite", "flaky"])

    aggregator.on_test_end(test, AttemptFactory.build(status="failed", retry_index=0))
    aggregator.on_test_end(test, AttemptFactory.build(status="passed", retry_index=1))
    report = aggregator.on_run_finish("passed")

    assert report.total_tests == 2
    assert report.flaky == 1


def test_run_with_distinct_tests_counts_all(aggregator: ResultAggregator) -> None:
    """Totals match the number of recorded tests."""
    aggregator.on_run_start(7)
    for test in IdentityFactory.batch(7):
        aggregator.on_test_end(test, AttemptFactory.build())

    report = aggregator.on_run_finish("passed")

    assert len(report.results) == 7
    assert report.total_tests == report.passed + report.failed + report.skipped


def test_end_to_end_run(
    aggregator: ResultAggregator, console: RecordingConsole, tmp_path: Path
) -> None:
    """A mixed run writes both artifacts and prints its failures."""
    aggregator.on_run_start(5)
    for title in ("home", "search", "profile"):
        aggregator.on_test_end(
            IdentityFactory.build(title=title, full_title_path=[title]),
            AttemptFactory.build(status="passed", duration_ms=100),
        )
    aggregator.on_test_end(
        IdentityFactory.build(
            title="checkout",
            full_title_path=["checkout"],
            location=Location(file="tests/test_checkout.py", line=31),
        ),
        AttemptFactory.build(
            status="failed",
            duration_ms=30000,
            error=TestError(message="Timeout 30000ms exceeded"),
        ),
    )
    aggregator.on_test_end(
        IdentityFactory.build(title="legacy", full_title_path=["legacy"]),
        AttemptFactory.build(status="skipped", duration_ms=0),
    )

    report = aggregator.on_run_finish("failed")

    data = json.loads((tmp_path / "reports" / "custom-report.json").read_text())
    assert data["totalTests"] == 5
    assert data["passed"] == 3
    assert data["failed"] == 1
    assert data["skipped"] == 1
    assert data["flaky"] == 0
    assert data["status"] == "failed"
    assert data["duration"] == 2000
    assert data["startTime"].startswith("2099-01-01T12:00:00")
    assert len(data["results"]) == 5
    assert data["results"][3]["errorMessage"] == "Timeout 30000ms exceeded"

    markdown = (tmp_path / "reports" / "summary.md").read_text()
    assert markdown.count("## Failed Tests") == 1
    assert markdown.count("### ❌") == 1

    assert report.has_failures
    assert "Failed Tests:" in console.lines
    assert "     Timeout 30000ms exceeded" in console.lines
    assert "     at tests/test_checkout.py:31" in console.lines


def test_write_failure_still_prints_summary(
    tmp_path: Path, console: RecordingConsole, caplog: pytest.LogCaptureFixture
) -> None:
    """Artifact write errors are logged and the console summary still printed."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    aggregator = ResultAggregator(
        config=ReportConfig(report_dir=blocker / "reports"), console=console
    )
    aggregator.on_run_start(1)
    aggregator.on_test_end(IdentityFactory.build(), AttemptFactory.build())

    with caplog.at_level(logging.WARNING):
        report = aggregator.on_run_finish("passed")

    assert report.passed == 1
    assert "Failed to write report artifacts" in caplog.text
    assert "Test Run Summary" in console.lines


def test_finish_is_terminal(aggregator: ResultAggregator) -> None:
    """No outcomes can be recorded after the run finished."""
    aggregator.on_run_start(1)
    aggregator.on_run_finish("passed")

    with pytest.raises(SummaryFinalizedError):
        aggregator.on_test_end(IdentityFactory.build(), AttemptFactory.build())


def test_rejects_file_as_report_dir(tmp_path: Path) -> None:
    """A report directory pointing at a file is a configuration error."""
    report_file = tmp_path / "reports"
    report_file.write_text("")

    with pytest.raises(ConfigurationError, match="not a directory"):
        ResultAggregator(config=ReportConfig(report_dir=report_file))


def test_logging_console_is_default(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Without a console, lines go to the run_reporter logger."""
    aggregator = ResultAggregator(config=ReportConfig(report_dir=tmp_path))

    with caplog.at_level(logging.INFO, logger="run_reporter"):
        aggregator.on_run_start(3)

    assert "Starting test run with 3 tests" in caplog.text
