# dify_relay/core/workflow/answer.py
"""Answer extraction from Dify workflow responses.

The response shape differs between Dify app types and versions, so the
answer is looked up with a fixed precedence:

1. top-level ``answer``
2. ``data.outputs``: ``OUTPUT_FIELD_PRECEDENCE`` in order, then the first
   string-valued field
3. top-level ``output``
4. the whole payload serialized as JSON
"""

import json
from typing import Any

OUTPUT_FIELD_PRECEDENCE: tuple[str, ...] = ("answer", "text", "result", "output", "content")


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _answer_from_outputs(outputs: dict[str, Any]) -> str | None:
    for field in OUTPUT_FIELD_PRECEDENCE:
        value = _non_empty_str(outputs.get(field))
        if value is not None:
            return value

    for value in outputs.values():
        if isinstance(value, str):
            return value
    return None


def extract_answer(payload: Any) -> str:
    """Extract a plain-text answer from a workflow response payload.

    Args:
        payload: Decoded JSON response body.

    Returns:
        The answer text. Never raises for unexpected shapes; falls back to
        the JSON-serialized payload.
    """
    if isinstance(payload, dict):
        answer = _non_empty_str(payload.get("answer"))
        if answer is not None:
            return answer

        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("outputs"), dict):
            answer = _answer_from_outputs(data["outputs"])
            if answer is not None:
                return answer

        output = _non_empty_str(payload.get("output"))
        if output is not None:
            return output

    return json.dumps(payload, ensure_ascii=False)
