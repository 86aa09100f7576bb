# dify_relay/interfaces/api/security.py
"""Slack request signature verification.

Slack signs ``v0:{timestamp}:{raw body}`` with HMAC-SHA256 using the app's
signing secret and sends ``v0=<hex digest>`` in X-Slack-Signature.
"""

import hashlib
import hmac
import logging
import secrets
from collections.abc import Mapping

from dify_relay.config import Settings
from dify_relay.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

SIGNATURE_VERSION = "v0"
TIMESTAMP_HEADER = "x-slack-request-timestamp"
SIGNATURE_HEADER = "x-slack-signature"


def compute_slack_signature(secret: str, timestamp: str, raw_body: str) -> str:
    """Compute the Slack request signature.

    Args:
        secret: Slack signing secret.
        timestamp: X-Slack-Request-Timestamp header value.
        raw_body: Unparsed request body.

    Returns:
        Signature in ``v0=<lowercase hex>`` form.
    """
    basestring = f"{SIGNATURE_VERSION}:{timestamp}:{raw_body}"
    digest = hmac.new(
        secret.encode("utf-8"), basestring.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def is_valid_slack_signature(
    secret: str, timestamp: str, raw_body: str, signature: str
) -> bool:
    """Check a signature in constant time."""
    expected = compute_slack_signature(secret, timestamp, raw_body)
    return secrets.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def verify_slack_request(
    headers: Mapping[str, str], raw_body: str, settings: Settings
) -> None:
    """Verify an inbound Slack request.

    Args:
        headers: Request headers (case-insensitive mapping).
        raw_body: Unparsed request body.
        settings: Configuration holding the signing secret.

    Raises:
        AuthenticationError: 401 if headers are missing or the signature
            does not match.
        ConfigurationError: 500 if no signing secret is configured.
    """
    timestamp = headers.get(TIMESTAMP_HEADER)
    signature = headers.get(SIGNATURE_HEADER)

    if not timestamp or not signature:
        raise AuthenticationError("Missing required headers")

    secret = settings.require("slack_signing_secret")

    if not is_valid_slack_signature(secret, timestamp, raw_body, signature):
        logger.warning("Signature verification failed (timestamp=%s)", timestamp)
        raise AuthenticationError("Verification failed")
