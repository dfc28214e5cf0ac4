"""Notifier manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Generic, TypeVar

from run_reporter.notifiers.base import Notifier
from run_reporter.notifiers.config import WebhookConfig

ConfigT = TypeVar("ConfigT", bound=WebhookConfig)


@dataclass(frozen=True, kw_only=True)
class NotifierManifest(Generic[ConfigT]):
    """Manifest describing a notifier plugin.

    The manifest references the configuration class and the notifier factory
    so notifiers are only imported when their key is requested.
    """

    config_cls: type[ConfigT]
    notifier_factory: Callable[[ConfigT], AbstractAsyncContextManager[Notifier]]
