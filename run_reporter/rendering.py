"""Console and Markdown rendering of run reports."""

import logging
from collections.abc import Sequence

from run_reporter.models.outcome import TestOutcome
from run_reporter.models.summary import RunReport

log = logging.getLogger(__name__)

BORDER = "=" * 50
UNKNOWN_ICON = "❓"


def status_icon(status: str) -> str:
    """Return the glyph shown next to a test status."""
    match status:
        case "passed":
            return "✅"
        case "failed":
            return "❌"
        case "timedOut":
            return "⏱️"
        case "skipped":
            return "⏭️"
        case "interrupted":
            return "🛑"
        case _:
            log.warning("Unrecognized test status: %s", status)
            return UNKNOWN_ICON


def format_percentage(count: int, total: int) -> str:
    """Format ``count`` as a share of ``total`` with one decimal."""
    if total <= 0:
        return "N/A"
    return f"{count / total * 100:.1f}%"


def format_seconds(duration_ms: int) -> str:
    """Format milliseconds as seconds with two decimals."""
    return f"{duration_ms / 1000:.2f}s"


def format_location(outcome: TestOutcome) -> str:
    """Format the ``file:line`` location of a test."""
    return f"{outcome.location.file}:{outcome.location.line}"


def failure_sections(
    report: RunReport,
) -> Sequence[tuple[str, Sequence[TestOutcome]]]:
    """Titled groups of failing outcomes, empty groups left out.

    "Failed Tests" follows the ``failed`` count and lists only failed outcomes;
    timed out outcomes get a section of their own.
    """
    sections: list[tuple[str, Sequence[TestOutcome]]] = []
    if report.failed > 0:
        sections.append(("Failed Tests", report.outcomes_with_status("failed")))
    if timed_out := report.outcomes_with_status("timedOut"):
        sections.append(("Timed Out Tests", timed_out))
    return sections


def _cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def render_console_summary(report: RunReport) -> Sequence[str]:
    """Build the bordered summary printed at the end of a run."""
    lines = [
        "",
        BORDER,
        "Test Run Summary",
        BORDER,
        f"Total Tests: {report.total_tests}",
        f"✅ Passed: {report.passed}",
        f"❌ Failed: {report.failed}",
        f"⏭️  Skipped: {report.skipped}",
        f"🔄 Flaky: {report.flaky}",
        f"⏱️  Duration: {format_seconds(report.duration)}",
        BORDER,
    ]

    for heading, outcomes in failure_sections(report):
        lines.append("")
        lines.append(f"{heading}:")
        for outcome in outcomes:
            lines.append(f"  {status_icon(outcome.status)} {outcome.full_title}")
            if outcome.error_message:
                lines.append(f"     {outcome.error_message}")
            lines.append(f"     at {format_location(outcome)}")

    return lines


def render_markdown(report: RunReport) -> str:
    """Render the ``summary.md`` document."""
    total = report.total_tests
    lines = [
        "# Test Run Report",
        "",
        f"**Date**: {report.start_time.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        f"**Duration**: {format_seconds(report.duration)}",
        f"**Status**: {report.status or 'completed'}",
        "",
        "## Summary",
        "",
        "| Status | Count | Percentage |",
        "|--------|-------|------------|",
    ]
    for label, count in (
        ("✅ Passed", report.passed),
        ("❌ Failed", report.failed),
        ("⏭️ Skipped", report.skipped),
        ("🔄 Flaky", report.flaky),
    ):
        lines.append(f"| {label} | {count} | {format_percentage(count, total)} |")

    for heading, outcomes in failure_sections(report):
        lines += ["", f"## {heading}", ""]
        for outcome in outcomes:
            lines.append(f"### {status_icon(outcome.status)} {outcome.title}")
            lines.append(f"- **File**: {format_location(outcome)}")
            lines.append(f"- **Error**: {outcome.error_message or '-'}")
            if outcome.tags:
                lines.append(f"- **Tags**: {', '.join(outcome.tags)}")
            lines.append("")

    lines += [
        "",
        "## Test Details",
        "",
        "<details>",
        "<summary>Click to expand full test results</summary>",
        "",
        "| Test | Status | Duration | Tags |",
        "|------|--------|----------|------|",
    ]
    for outcome in report.results:
        tags = ", ".join(outcome.tags) or "-"
        lines.append(
            f"| {_cell(outcome.title)} | {status_icon(outcome.status)} "
            f"| {outcome.duration_ms}ms | {_cell(tags)} |"
        )
    lines += ["", "</details>", ""]

    return "\n".join(lines)
