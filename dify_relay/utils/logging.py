# dify_relay/utils/logging.py
"""Log setup for the relay.

Each webhook delivery gets a correlation ID (the Slack event_id once the
request is verified). The reply pipeline runs in the same context, so its
records carry the ID of the delivery that scheduled it.
"""

import json
import logging
from contextvars import ContextVar
from typing import Any

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_request_id() -> str:
    return request_id_var.get()


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, tagged with the delivery's request_id."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id := get_request_id():
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_structured_logging(
    level: int | str = logging.INFO, json_output: bool = True
) -> None:
    """Install a single stderr handler on the root logger.

    Existing root handlers are replaced, so a reload does not double output.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    logging.root.handlers = [handler]
    logging.root.setLevel(level if isinstance(level, int) else level.upper())
