"""Microsoft Teams notifier module."""

from run_reporter.notifiers.teams.config import TeamsConfig
from run_reporter.notifiers.teams.manifest import teams_manifest
from run_reporter.notifiers.teams.notifier import TeamsNotifier

__all__ = ["TeamsConfig", "TeamsNotifier", "teams_manifest"]
