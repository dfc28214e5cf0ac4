"""Integration tests for Teams notifier."""

from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from run_reporter.errors import NotificationError
from run_reporter.models.summary import RunReport
from run_reporter.notifiers.teams import TeamsConfig, TeamsNotifier
from run_reporter.testing.payloads import report_payload

WEBHOOK_URL = "http://teams.test/webhookb2/abc"


@pytest.fixture
def config() -> TeamsConfig:
    """Create test configuration."""
    return TeamsConfig(webhook_url=SecretStr(WEBHOOK_URL), only_on_failure=False)


@pytest.fixture
async def notifier(
    config: TeamsConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[TeamsNotifier, None]:
    """Create notifier with managed session."""
    async with TeamsNotifier.from_config(config) as impl:
        yield impl


async def test_posts_message_card(
    notifier: TeamsNotifier, aioresponses: aioresponses_cls
) -> None:
    """Posts a MessageCard for a passing run when not failure-only."""
    aioresponses.post(WEBHOOK_URL, status=200, body="1")
    report = RunReport.model_validate(report_payload(passed=1))

    sent = await notifier.notify(report)

    assert sent is True
    call = aioresponses.requests[("POST", URL(WEBHOOK_URL))][0]
    payload = call.kwargs["json"]
    assert payload["@type"] == "MessageCard"
    assert payload["summary"] == "Test Run Passed"
    assert {"name": "Passed", "value": "1"} in payload["sections"][0]["facts"]


async def test_raises_on_server_error(
    notifier: TeamsNotifier, aioresponses: aioresponses_cls
) -> None:
    """Raises NotificationError with the response text."""
    aioresponses.post(WEBHOOK_URL, status=500, body="Internal error")
    report = RunReport.model_validate(report_payload())

    with pytest.raises(NotificationError, match="Teams notification failed: 500"):
        await notifier.notify(report)
