"""Shared configuration for webhook notifiers."""

from pydantic import BaseModel, SecretStr


class WebhookConfig(BaseModel):
    """Configuration common to all webhook notifiers."""

    webhook_url: SecretStr
    only_on_failure: bool = True
    environment: str = "local"
