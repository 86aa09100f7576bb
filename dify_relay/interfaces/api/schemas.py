# dify_relay/interfaces/api/schemas.py
"""Pydantic models for Slack Events API payloads and API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MentionEvent(BaseModel):
    """View over ``event`` for an ``app_mention`` callback.

    Attributes:
        channel: Channel ID the mention was posted in.
        user: ID of the user who mentioned the bot.
        text: Raw message text, including the ``<@U...>`` mention token.
        ts: Timestamp of the mention message.
        thread_ts: Parent timestamp when the mention was posted in a thread.
        subtype: Message subtype; ``bot_message`` marks bot-originated posts.
    """

    model_config = ConfigDict(extra="allow")

    type: str = "app_mention"
    channel: str
    user: str = "unknown"
    text: str = ""
    ts: str
    thread_ts: str | None = None
    subtype: str | None = None

    @property
    def thread_anchor(self) -> str:
        """Timestamp the reply is threaded on."""
        return self.thread_ts or self.ts


class SlackEventEnvelope(BaseModel):
    """Outer body of a Slack Events API request."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    challenge: str | None = None
    token: str | None = None
    team_id: str | None = None
    event_id: str | None = None
    event: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """JSON body returned for every 4xx/5xx response."""

    error: str = Field(..., description="Human-readable error message")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service status")
    slack_configured: bool = Field(..., description="Slack secrets are set")
    dify_configured: bool = Field(..., description="Dify connection is set")
