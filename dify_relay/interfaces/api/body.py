# dify_relay/interfaces/api/body.py
"""Raw request body access.

Signature verification hashes the exact bytes Slack sent, so the body is
read from the ASGI stream before anything parses it.
"""

from fastapi import Request

from dify_relay.core.errors import BadRequestError


async def read_raw_body(request: Request) -> str:
    """Accumulate the request body stream into a single string.

    Args:
        request: Incoming request whose body has not been consumed.

    Returns:
        The UTF-8 decoded body; empty string for an empty body.

    Raises:
        BadRequestError: The body is not valid UTF-8.
        starlette.requests.ClientDisconnect: The client went away mid-read.
    """
    chunks: list[bytes] = []
    async for chunk in request.stream():
        chunks.append(chunk)
    try:
        return b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError as e:
        raise BadRequestError("Invalid request body") from e
