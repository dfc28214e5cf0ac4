"""CLI entry point for run reports."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import aiohttp

from run_reporter.artifacts import load_report
from run_reporter.config_loader import load_reporting_config
from run_reporter.errors import NotificationError
from run_reporter.models.summary import RunReport
from run_reporter.notifiers.loading import load_notifier_manifest
from run_reporter.rendering import render_console_summary, render_markdown

log = logging.getLogger("run_reporter")


def render(report_path: Path, output: Path | None) -> int:
    """Render the Markdown summary of a JSON report."""
    report = load_report(report_path)
    markdown = render_markdown(report)

    if output is None:
        print(markdown)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(markdown, encoding="utf-8")
        log.info("Summary written to %s", output)

    for line in render_console_summary(report):
        log.info("%s", line)

    return 1 if report.has_failures else 0


async def send_notifications(report: RunReport, config_path: Path) -> Sequence[str]:
    """Send the report to every enabled notifier.

    Returns:
        Keys of notifiers that failed

    """
    config = await load_reporting_config(config_path)
    failed: list[str] = []

    for key, options in config.enabled_notifiers().items():
        log.info("Loading notifier: %s", key)
        manifest = load_notifier_manifest(key)
        notifier_config = manifest.config_cls(**options)

        async with manifest.notifier_factory(notifier_config) as notifier:
            try:
                await notifier.notify(report)
            except (NotificationError, aiohttp.ClientError) as e:
                log.error("Notification via %s failed: %s", key, e)
                failed.append(key)

    return failed


async def notify(report_path: Path, config_path: Path) -> int:
    """Send notifications for a JSON report and return exit code."""
    report = load_report(report_path)
    failed = await send_notifications(report, config_path)

    print(
        json.dumps(
            {
                "totalTests": report.total_tests,
                "passed": report.passed,
                "failed": report.failed,
                "skipped": report.skipped,
                "duration": report.duration,
                "failedNotifiers": list(failed),
            }
        )
    )
    return 1 if failed else 0


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Render and publish test run reports")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser(
        "render", help="Render summary.md from a JSON report"
    )
    render_parser.add_argument(
        "--report",
        type=Path,
        default=Path("reports/custom-report.json"),
        help="Path to custom-report.json",
    )
    render_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Markdown output path (default: stdout)",
    )

    notify_parser = subparsers.add_parser(
        "notify", help="Send a report to the configured notifiers"
    )
    notify_parser.add_argument(
        "--report",
        type=Path,
        default=Path("reports/custom-report.json"),
        help="Path to custom-report.json",
    )
    notify_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to reporting.yaml",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "render":
        exit_code = render(args.report, args.output)
    else:
        exit_code = asyncio.run(notify(args.report, args.config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
