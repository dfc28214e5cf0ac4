"""Payload helpers for report documents in tests."""

from typing import Any


def outcome_payload(
    *,
    title: str = "logs in with valid credentials",
    status: str = "passed",
    duration_ms: int = 1200,
    retry_index: int = 0,
    error_message: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Create a TestOutcome entry as it appears in custom-report.json."""
    return {
        "title": title,
        "fullTitlePath": ["tests/e2e/test_login.py", "TestLogin", title],
        "location": {"file": "tests/e2e/test_login.py", "line": 42, "column": None},
        "status": status,
        "durationMs": duration_ms,
        "retryIndex": retry_index,
        "errorMessage": error_message,
        "errorStack": None,
        "stdout": None,
        "stderr": None,
        "attachments": [],
        "tags": tags or [],
        "annotations": [],
    }


def report_payload(
    *,
    results: list[dict[str, Any]] | None = None,
    status: str | None = "passed",
    passed: int = 1,
    failed: int = 0,
    skipped: int = 0,
    flaky: int = 0,
    duration: int = 4200,
) -> dict[str, Any]:
    """Create a custom-report.json document."""
    results = results if results is not None else [outcome_payload()]
    return {
        "startTime": "2099-01-01T12:00:00Z",
        "endTime": "2099-01-01T12:00:04.200000Z",
        "duration": duration,
        "status": status,
        "totalTests": len(results),
        "passed": passed,
        "failed": failed,
        "skipped": skipped,
        "flaky": flaky,
        "results": results,
    }
