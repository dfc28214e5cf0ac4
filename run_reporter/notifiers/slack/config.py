"""Configuration for the Slack notifier."""

from run_reporter.notifiers.config import WebhookConfig


class SlackConfig(WebhookConfig):
    """Configuration for Slack incoming webhooks."""

    channel: str | None = "#test-results"
    username: str = "Test Reporter"
