"""Configuration for the Microsoft Teams notifier."""

from run_reporter.notifiers.config import WebhookConfig


class TeamsConfig(WebhookConfig):
    """Configuration for Teams incoming webhooks."""

    title: str = "Test Results"
