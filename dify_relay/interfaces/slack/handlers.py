# dify_relay/interfaces/slack/handlers.py
"""Reply pipeline for app_mention events.

Runs after the webhook has been acknowledged:
strip the mention, ask the Dify workflow, post the answer in the thread.
Failures are reported back into the same thread on a best-effort basis.
"""

import logging
import re
import time

from dify_relay.config import Settings
from dify_relay.core.errors import (
    ConfigurationError,
    SlackPostError,
    UpstreamError,
    WorkflowTimeoutError,
)
from dify_relay.core.workflow import DifyWorkflowClient
from dify_relay.interfaces.api.schemas import MentionEvent
from dify_relay.interfaces.slack.slack_api import SlackMessagePoster

logger = logging.getLogger(__name__)

EMPTY_QUESTION_MESSAGE = "Please provide a question after mentioning me."
ERROR_DETAIL_LIMIT = 200

# <@U123456> or <@U123456|name>
MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")


def _extract_user_message(text: str) -> str:
    """Remove bot-mention tokens from the message and trim whitespace.

    Args:
        text: Raw message text including @mention.

    Returns:
        Cleaned user message, possibly empty.
    """
    return MENTION_PATTERN.sub("", text).strip()


def _format_error_message(error: BaseException) -> str:
    """Build the user-facing message for a pipeline failure."""
    detail = str(error)[:ERROR_DETAIL_LIMIT]

    if isinstance(error, ConfigurationError):
        return (
            ":warning: The Dify integration is not configured correctly. "
            "Please contact the workspace administrator."
        )
    if isinstance(error, WorkflowTimeoutError):
        return f":hourglass: Dify did not respond in time. Please try again later.\n({detail})"
    if isinstance(error, SlackPostError):
        return f":x: Could not post the answer to Slack: {detail}"
    if isinstance(error, UpstreamError):
        return f":x: The Dify workflow call failed: {detail}"
    return f":x: An unknown error occurred: {detail}"


async def process_mention(mention: MentionEvent, settings: Settings) -> None:
    """Answer an app_mention event in its thread.

    Never raises: every failure ends up in the thread or in the log.

    Args:
        mention: The verified mention event.
        settings: Configuration for this request.
    """
    start_time = time.time()
    channel = mention.channel
    thread_ts = mention.thread_anchor

    try:
        poster = SlackMessagePoster(settings)
    except ConfigurationError as e:
        logger.error("Cannot reply to mention in %s: %s", channel, e)
        return

    user_message = _extract_user_message(mention.text)
    if not user_message:
        try:
            await poster.post_message(channel, EMPTY_QUESTION_MESSAGE, thread_ts)
        except Exception:
            logger.exception("Failed to send empty-question notice to Slack")
        return

    logger.info("Processing mention from %s: %s", mention.user, user_message[:100])

    try:
        client = DifyWorkflowClient(settings)
        answer = await client.run(user_message)
        await poster.post_message(channel, answer, thread_ts)
    except Exception as e:
        if isinstance(e, ConfigurationError):
            logger.error("Mention in %s not answered: %s", channel, e)
        else:
            logger.exception("Error processing mention in %s: %s", channel, e)
        try:
            await poster.post_message(channel, _format_error_message(e), thread_ts)
        except Exception:
            logger.exception("Failed to send error message to Slack")
        return

    logger.info(
        "Mention in %s answered in %.2fs", channel, time.time() - start_time
    )
