# dify_relay/interfaces/slack/events.py
"""Classification of verified Slack Events API payloads."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from dify_relay.core.errors import BadRequestError
from dify_relay.interfaces.api.schemas import MentionEvent, SlackEventEnvelope

logger = logging.getLogger(__name__)

URL_VERIFICATION = "url_verification"
APP_MENTION = "app_mention"
BOT_MESSAGE_SUBTYPE = "bot_message"


def parse_envelope(raw_body: str) -> SlackEventEnvelope:
    """Parse the raw request body into an event envelope.

    Raises:
        BadRequestError: Body is not a JSON object.
    """
    try:
        data: Any = json.loads(raw_body)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON: %s", e)
        raise BadRequestError("Invalid JSON") from e

    if not isinstance(data, dict):
        raise BadRequestError("Invalid JSON")

    try:
        return SlackEventEnvelope.model_validate(data)
    except ValidationError as e:
        logger.error("Unexpected event envelope: %s", e)
        raise BadRequestError("Invalid JSON") from e


def is_url_verification(envelope: SlackEventEnvelope) -> bool:
    return envelope.type == URL_VERIFICATION


def get_challenge(envelope: SlackEventEnvelope) -> str:
    """Return the handshake challenge.

    Raises:
        BadRequestError: The challenge is missing or empty.
    """
    if not envelope.challenge:
        raise BadRequestError("Missing challenge parameter")
    return envelope.challenge


def select_mention(envelope: SlackEventEnvelope) -> MentionEvent | None:
    """Return the mention to answer, or None when the event needs no reply.

    Only ``app_mention`` events that were not posted by a bot are answered.
    """
    event = envelope.event
    if not event or event.get("type") != APP_MENTION:
        return None

    if event.get("subtype") == BOT_MESSAGE_SUBTYPE:
        logger.debug("Ignoring bot-originated mention in %s", event.get("channel"))
        return None

    try:
        return MentionEvent.model_validate(event)
    except ValidationError as e:
        logger.warning("Ignoring malformed app_mention event: %s", e)
        return None
