"""Slack notifier manifest."""

from run_reporter.notifiers.manifest import NotifierManifest
from run_reporter.notifiers.slack.config import SlackConfig
from run_reporter.notifiers.slack.notifier import SlackNotifier

slack_manifest = NotifierManifest(
    config_cls=SlackConfig,
    notifier_factory=SlackNotifier.from_config,
)
