# dify_relay/config.py
"""Application configuration using pydantic-settings.

Provides a single immutable Settings value for all environment variables.
A fresh value is built per request by get_settings() and passed explicitly
to the signature verifier, the workflow client and the message poster.
"""

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from dify_relay.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are loaded from .env file and environment variables.
    Environment variables take precedence over .env file values.
    Required values default to an empty string and are checked where
    they are used, see require().
    """

    # Slack Integration
    slack_signing_secret: str = ""
    slack_bot_token: str = ""
    slack_ignore_retries: bool = True  # Ack http_timeout retries without dispatch

    # Dify workflow API
    dify_api_url: str = ""
    dify_api_key: str = ""
    dify_workflow_id: str = ""
    dify_api_version: str = "v1"
    dify_timeout: float = 30.0

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging / Observability
    log_level: str = "INFO"
    log_json: bool = True
    logfire_token: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
        case_sensitive=False,  # Allow case-insensitive env var names
        frozen=True,
    )

    def require(self, name: str) -> str:
        """Return a required setting or raise if it is not configured.

        Args:
            name: Field name (e.g. "slack_signing_secret").

        Returns:
            The non-empty setting value.

        Raises:
            ConfigurationError: If the value is empty.
        """
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(name)
        return value

    @property
    def slack_configured(self) -> bool:
        return bool(self.slack_signing_secret and self.slack_bot_token)

    @property
    def dify_configured(self) -> bool:
        return bool(self.dify_api_url and self.dify_api_key and self.dify_workflow_id)


def get_settings() -> Settings:
    """Build the settings value for one request.

    Not cached: environment changes are picked up on the next request.
    Used as a FastAPI dependency so tests can override it.

    Raises:
        ConfigurationError: An environment value does not parse.
    """
    try:
        return Settings()
    except ValidationError as e:
        field = str(e.errors()[0]["loc"][0]) if e.errors() else "settings"
        raise ConfigurationError(field, reason="is invalid") from e
