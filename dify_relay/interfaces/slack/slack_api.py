# dify_relay/interfaces/slack/slack_api.py
"""Slack chat.postMessage wrapper.

Maps slack_sdk failures onto the relay's error types: a non-200 HTTP status
becomes SlackHTTPError, an ``ok: false`` payload becomes SlackResponseError.
"""

import logging
from typing import Any

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from dify_relay.config import Settings
from dify_relay.core.errors import SlackHTTPError, SlackResponseError

logger = logging.getLogger(__name__)


class SlackMessagePoster:
    """Posts plain-text messages, optionally threaded, to a channel."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        if client is None:
            # No retry handlers: one failed post is final
            client = AsyncWebClient(
                token=settings.require("slack_bot_token"), retry_handlers=[]
            )
        self.client = client

    async def post_message(
        self, channel: str, text: str, thread_ts: str | None = None
    ) -> dict[str, Any]:
        """Post a message to a channel.

        Args:
            channel: Target channel ID.
            text: Plain-text message body.
            thread_ts: Parent message timestamp to reply under (optional).

        Returns:
            The decoded chat.postMessage response.

        Raises:
            SlackHTTPError: Slack answered with a non-200 status.
            SlackResponseError: Slack answered 200 with ``ok: false``.
        """
        kwargs: dict[str, Any] = {"channel": channel, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts

        try:
            response = await self.client.chat_postMessage(**kwargs)
        except SlackApiError as e:
            status_code = getattr(e.response, "status_code", 200)
            error = e.response.get("error") or "unknown_error"
            if status_code != 200:
                raise SlackHTTPError(status_code, str(error)) from e
            raise SlackResponseError(str(error)) from e

        data = getattr(response, "data", response)
        if isinstance(data, dict) and data.get("ok") is False:
            raise SlackResponseError(str(data.get("error") or "unknown_error"))

        logger.debug("Posted message to %s (thread %s)", channel, thread_ts)
        return data
