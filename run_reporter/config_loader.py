"""Load reporting configuration from YAML files."""

import asyncio
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ConfigDict, Field, ValidationError

from run_reporter.models.base import Model


class NotifierSettings(Model):
    """Settings for one notifier; extra keys are passed to its config class."""

    model_config = ConfigDict(frozen=True, extra="allow")

    enabled: bool = False

    def options(self) -> dict[str, Any]:
        """Keys destined for the notifier's configuration model."""
        return dict(self.model_extra or {})


class ReportingConfig(Model):
    """Reporting configuration loaded from ``reporting.yaml``."""

    environment: str = Field(default="local", description="Environment label")
    notifiers: Mapping[str, NotifierSettings] = Field(default_factory=dict)

    def enabled_notifiers(self) -> Mapping[str, dict[str, Any]]:
        """Options of enabled notifiers by key, with the environment filled in."""
        return {
            key: {"environment": self.environment, **settings.options()}
            for key, settings in self.notifiers.items()
            if settings.enabled
        }


async def load_reporting_config(path: Path) -> ReportingConfig:
    """Load and validate a reporting configuration file.

    ``$VAR`` and ``${VAR}`` references are expanded from the environment
    before parsing, so webhook URLs can stay out of the file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, not valid YAML or fails validation

    """
    if not path.is_file():
        raise FileNotFoundError(f"Reporting config not found: {path}")

    content = await asyncio.to_thread(path.read_text, encoding="utf-8")

    try:
        data = yaml.safe_load(os.path.expandvars(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty reporting config: {path}")

    try:
        return ReportingConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid reporting config in {path}: {e}") from e
