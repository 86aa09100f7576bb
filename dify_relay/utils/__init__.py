# dify_relay/utils/__init__.py
"""Logging and observability helpers."""

from dify_relay.utils.logging import (
    configure_structured_logging,
    get_request_id,
    set_request_id,
)
from dify_relay.utils.observability import setup_logfire

__all__ = [
    "setup_logfire",
    "set_request_id",
    "get_request_id",
    "configure_structured_logging",
]
