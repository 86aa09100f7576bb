"""Observability configuration with Pydantic Logfire."""

import logging

from fastapi import FastAPI

from dify_relay.config import Settings

logger = logging.getLogger(__name__)


def setup_logfire(app: FastAPI, settings: Settings) -> bool:
    """Configure Logfire for the webhook app and the outbound httpx calls.

    Only activates if LOGFIRE_TOKEN environment variable is set.

    Returns:
        True if Logfire was configured.
    """
    if not settings.logfire_token:
        return False

    try:
        import logfire

        logfire.configure(token=settings.logfire_token, service_name="dify-relay")
        logfire.instrument_fastapi(app)
        logfire.instrument_httpx()
    except Exception as e:
        # Log but don't fail - observability is optional
        logger.warning("Failed to configure Logfire: %s", str(e))
        return False
    return True
