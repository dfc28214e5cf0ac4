"""Teams notifier manifest."""

from run_reporter.notifiers.manifest import NotifierManifest
from run_reporter.notifiers.teams.config import TeamsConfig
from run_reporter.notifiers.teams.notifier import TeamsNotifier

teams_manifest = NotifierManifest(
    config_cls=TeamsConfig,
    notifier_factory=TeamsNotifier.from_config,
)
