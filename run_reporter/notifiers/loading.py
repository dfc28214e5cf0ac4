"""Notifier lookup through the ``run_reporter.notifiers`` entry point group."""

from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from run_reporter.notifiers.manifest import NotifierManifest

ENTRY_POINT_GROUP = "run_reporter.notifiers"


class NotifierNotFoundError(LookupError):
    """No notifier is registered under the requested key."""


def available_notifiers() -> Sequence[str]:
    """Keys of all installed notifiers, sorted."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_notifier_manifest(key: str) -> NotifierManifest[Any]:
    """Import the manifest registered under ``key`` (e.g. "slack").

    Raises:
        NotifierNotFoundError: If no installed notifier uses this key

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise NotifierNotFoundError(
            f"Notifier '{key}' not found. "
            f"Available notifiers: {list(available_notifiers())}"
        )

    manifest: NotifierManifest[Any] = next(iter(matches)).load()
    return manifest
