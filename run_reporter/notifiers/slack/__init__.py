"""Slack notifier module."""

from run_reporter.notifiers.slack.config import SlackConfig
from run_reporter.notifiers.slack.manifest import slack_manifest
from run_reporter.notifiers.slack.notifier import SlackNotifier

__all__ = ["SlackConfig", "SlackNotifier", "slack_manifest"]
