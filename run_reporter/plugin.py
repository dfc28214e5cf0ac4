"""pytest plugin that records a run report.

Enable with ``--run-report``. Only the controlling process aggregates: under
pytest-xdist, workers only decorate their reports and the controller receives
them one at a time through ``pytest_runtest_logreport``.
"""

import logging
import os
import platform
import sys
import traceback
from collections.abc import Callable, Generator, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, TypeAlias

import pytest

from run_reporter.aggregator import ResultAggregator
from run_reporter.artifacts import write_environment_properties
from run_reporter.config import ReportConfig
from run_reporter.models.outcome import (
    Annotation,
    Attachment,
    AttemptResult,
    Location,
    RunStatus,
    StepInfo,
    TestError,
    TestIdentity,
    TestStatus,
)

log = logging.getLogger(__name__)

PLUGIN_NAME = "run-reporter"

BUILTIN_MARKERS = frozenset(
    [
        "parametrize",
        "skip",
        "skipif",
        "xfail",
        "usefixtures",
        "filterwarnings",
        "timeout",
        "flaky",
        "asyncio",
        "anyio",
    ]
)

StepEvent: TypeAlias = Literal["start", "end"]

ATTACHMENTS_KEY = pytest.StashKey[list[Attachment]]()
STEPS_KEY = pytest.StashKey[list[dict[str, Any]]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register run report options."""
    group = parser.getgroup("run-reporter", "Run report")
    group.addoption(
        "--run-report",
        action="store_true",
        dest="run_report",
        default=False,
        help="Write custom-report.json and summary.md for this run",
    )
    group.addoption(
        "--run-report-dir",
        action="store",
        dest="run_report_dir",
        default=None,
        help="Directory for report artifacts (default: reports)",
    )
    parser.addini(
        "run_report_dir", help="Directory for report artifacts", default="reports"
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the reporter on the controlling process."""
    if not config.getoption("run_report") or hasattr(config, "workerinput"):
        return

    report_dir = Path(
        config.getoption("run_report_dir") or config.getini("run_report_dir")
    )
    if not report_dir.is_absolute():
        report_dir = config.rootpath / report_dir

    aggregator = ResultAggregator(
        config=ReportConfig(report_dir=report_dir),
        console=TerminalConsole(config=config),
    )
    config.pluginmanager.register(
        RunReportPlugin(config=config, aggregator=aggregator), PLUGIN_NAME
    )


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, pytest.TestReport, pytest.TestReport]:
    """Copy marker tags, attachments and pending steps onto the report."""
    report = yield
    report.run_report_tags = marker_tags(item)  # type: ignore[attr-defined]
    report.run_report_attachments = [  # type: ignore[attr-defined]
        attachment.model_dump(by_alias=True)
        for attachment in item.stash.get(ATTACHMENTS_KEY, [])
    ]
    # steps travel with the phase that ran them
    report.run_report_steps = item.stash.get(  # type: ignore[attr-defined]
        STEPS_KEY, []
    )
    item.stash[STEPS_KEY] = []
    return report


@pytest.fixture
def run_report_attach(request: pytest.FixtureRequest) -> Callable[..., None]:
    """Return a function attaching a file to the current test's report."""

    def _attach(
        name: str, path: str | Path, content_type: str = "application/octet-stream"
    ) -> None:
        request.node.stash.setdefault(ATTACHMENTS_KEY, []).append(
            Attachment(name=name, path=str(path), content_type=content_type)
        )

    return _attach


@pytest.fixture
def run_report_step(
    request: pytest.FixtureRequest,
) -> Callable[..., AbstractContextManager[None]]:
    """Return a context manager factory that reports a named test step.

    Steps are printed live on the controlling process. Elsewhere (xdist
    workers) they are stashed and replayed by the controller from the report.
    """
    plugin: RunReportPlugin | None = request.config.pluginmanager.get_plugin(
        PLUGIN_NAME
    )
    identity = identity_from_location(request.node.nodeid, request.node.location)

    def emit(event: StepEvent, step: StepInfo) -> None:
        if plugin is not None:
            plugin.record_step(event, identity, step)
        else:
            request.node.stash.setdefault(STEPS_KEY, []).append(
                {"event": event, "step": step.model_dump(by_alias=True)}
            )

    @contextmanager
    def _step(title: str, category: str = "test.step") -> Generator[None, None, None]:
        emit("start", StepInfo(title=title, category=category))
        try:
            yield
        except (Exception, pytest.fail.Exception) as e:
            error = TestError(
                message=f"{type(e).__name__}: {e}", stack=traceback.format_exc()
            )
            emit("end", StepInfo(title=title, category=category, error=error))
            raise
        emit("end", StepInfo(title=title, category=category))

    return _step


@dataclass(frozen=True, kw_only=True)
class TerminalConsole:
    """Console writing through pytest's terminal reporter."""

    config: pytest.Config

    def _write(self, line: str, **markup: bool) -> None:
        reporter = self.config.pluginmanager.get_plugin("terminalreporter")
        if reporter is None:
            log.info("%s", line)
            return
        reporter.write_line(line, **markup)

    def info(self, line: str) -> None:
        """Write a plain line."""
        self._write(line)

    def error(self, line: str) -> None:
        """Write a line in red."""
        self._write(line, red=True)


@dataclass(kw_only=True)
class RunReportPlugin:
    """Translates pytest hooks into aggregator events."""

    config: pytest.Config
    aggregator: ResultAggregator
    pending: dict[tuple[str, int], list[pytest.TestReport]] = field(
        default_factory=dict
    )
    started: bool = False

    def start(self, total_test_count: int) -> None:
        """Start the run once."""
        if not self.started:
            self.started = True
            self.aggregator.on_run_start(total_test_count)

    def record_step(self, event: StepEvent, test: TestIdentity, step: StepInfo) -> None:
        """Forward a step event to the aggregator."""
        match event:
            case "start":
                self.aggregator.on_step_start(test, step)
            case "end":
                self.aggregator.on_step_end(test, step)

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        """Write Allure environment details when Allure is enabled."""
        allure_dir = self.config.getoption("allure_report_dir", default=None)
        if not allure_dir:
            return
        try:
            write_environment_properties(Path(allure_dir), environment_properties())
        except OSError as e:
            log.warning("Failed to write Allure environment info: %s", e)

    def pytest_collection_finish(self, session: pytest.Session) -> None:
        """Start the run with the collected test count."""
        self.start(len(session.items))

    def pytest_runtest_logstart(
        self, nodeid: str, location: tuple[str, int | None, str]
    ) -> None:
        """Announce a test."""
        self.start(0)
        self.aggregator.on_test_start(identity_from_location(nodeid, location))

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        """Collect phase reports and record the attempt once it is complete."""
        self.start(0)
        if steps := getattr(report, "run_report_steps", None):
            identity = identity_from_location(report.nodeid, report.location)
            for entry in steps:
                self.record_step(
                    entry["event"], identity, StepInfo.model_validate(entry["step"])
                )

        key = (report.nodeid, retry_index(report))
        reports = self.pending.setdefault(key, [])
        reports.append(report)

        # rerun reports end an attempt without a teardown report
        if report.when == "teardown" or report.outcome == "rerun":
            del self.pending[key]
            self.aggregator.on_test_end(
                identity_from_reports(reports), attempt_from_reports(reports)
            )

    def pytest_sessionfinish(
        self, session: pytest.Session, exitstatus: int | pytest.ExitCode
    ) -> None:
        """Flush interrupted attempts and finish the run."""
        self.start(0)
        status = run_status(exitstatus)

        for reports in self.pending.values():
            self.aggregator.on_test_end(
                identity_from_reports(reports),
                attempt_from_reports(reports, status="interrupted"),
            )
        self.pending.clear()

        self.aggregator.on_run_finish(status)


def marker_tags(item: pytest.Item) -> list[str]:
    """Names of non-builtin markers on an item, closest first."""
    return list(
        dict.fromkeys(
            marker.name
            for marker in item.iter_markers()
            if marker.name not in BUILTIN_MARKERS
        )
    )


def retry_index(report: pytest.TestReport) -> int:
    """Zero-based attempt number (set by pytest-rerunfailures)."""
    return int(getattr(report, "rerun", 0) or 0)


def identity_from_location(
    nodeid: str, location: tuple[str, int | None, str]
) -> TestIdentity:
    """Build a test identity from a node ID and pytest location."""
    path = nodeid.split("::")
    file, line, _ = location
    return TestIdentity(
        title=path[-1],
        full_title_path=path,
        location=Location(file=file, line=(line or 0) + 1),
    )


def identity_from_reports(reports: Sequence[pytest.TestReport]) -> TestIdentity:
    """Build a test identity including tags, properties and skip reasons."""
    report = reports[-1]
    identity = identity_from_location(report.nodeid, report.location)
    annotations = [
        Annotation(type=str(name), description=str(value))
        for name, value in report.user_properties
    ]
    annotations += [
        Annotation(type="skip", description=reason)
        for r in reports
        if r.skipped and (reason := skip_reason(r))
    ]
    return identity.model_copy(
        update={
            "tags": list(getattr(report, "run_report_tags", [])),
            "annotations": annotations,
        }
    )


def is_timeout(report: pytest.TestReport) -> bool:
    """Whether a failure was raised by pytest-timeout."""
    return crash_message(report).startswith("Failed: Timeout")


def crash_message(report: pytest.TestReport) -> str:
    """Short error message of a failed report."""
    crash = getattr(report.longrepr, "reprcrash", None)
    if crash is not None:
        return str(crash.message)
    text = report.longreprtext.strip()
    return text.splitlines()[-1] if text else ""


def skip_reason(report: pytest.TestReport) -> str | None:
    """Reason given for a skipped report."""
    if isinstance(report.longrepr, tuple) and len(report.longrepr) == 3:
        return str(report.longrepr[2])
    return None


def attempt_status(reports: Sequence[pytest.TestReport]) -> TestStatus:
    """Combine phase reports into one attempt status."""
    for report in reports:
        if report.failed or report.outcome == "rerun":
            return "timedOut" if is_timeout(report) else "failed"
    if any(report.skipped for report in reports):
        return "skipped"
    return "passed"


def attempt_from_reports(
    reports: Sequence[pytest.TestReport], status: TestStatus | None = None
) -> AttemptResult:
    """Build an attempt result from the phase reports of one attempt."""
    status = status or attempt_status(reports)
    failing = next(
        (r for r in reports if r.failed or r.outcome == "rerun"),
        None,
    )
    error = (
        TestError(message=crash_message(failing), stack=failing.longreprtext)
        if failing is not None
        else None
    )
    last = reports[-1]
    attachments: list[dict[str, Any]] = list(
        getattr(last, "run_report_attachments", [])
    )

    return AttemptResult(
        status=status,
        duration_ms=round(sum(r.duration for r in reports) * 1000),
        retry_index=retry_index(last),
        error=error,
        stdout=last.capstdout or None,
        stderr=last.capstderr or None,
        attachments=[Attachment.model_validate(a) for a in attachments],
    )


def run_status(exitstatus: int | pytest.ExitCode) -> RunStatus:
    """Map a pytest exit status to a run status."""
    match exitstatus:
        case pytest.ExitCode.OK | pytest.ExitCode.NO_TESTS_COLLECTED:
            return "passed"
        case pytest.ExitCode.INTERRUPTED:
            return "interrupted"
        case _:
            return "failed"


def environment_properties() -> dict[str, object]:
    """Environment details shown on the Allure overview page."""
    return {
        "framework": "pytest",
        "frameworkVersion": pytest.__version__,
        "os": sys.platform,
        "python": platform.python_version(),
        "testEnvironment": os.environ.get("TEST_ENV", "local"),
        "baseUrl": os.environ.get("BASE_URL"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
