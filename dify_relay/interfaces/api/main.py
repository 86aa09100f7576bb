# dify_relay/interfaces/api/main.py
"""FastAPI application receiving Slack Events API callbacks.

The webhook acknowledges Slack within its response deadline and answers
app mentions afterwards in a background task.
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated

from dotenv import load_dotenv
from fastapi import BackgroundTasks, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

# Load environment variables from .env file
load_dotenv()

from dify_relay.config import Settings, get_settings  # noqa: E402
from dify_relay.core.errors import (  # noqa: E402
    BadRequestError,
    ConfigurationError,
    MethodNotAllowedError,
    RequestError,
)
from dify_relay.interfaces.api.body import read_raw_body  # noqa: E402
from dify_relay.interfaces.api.schemas import ErrorResponse, HealthResponse  # noqa: E402
from dify_relay.interfaces.api.security import verify_slack_request  # noqa: E402
from dify_relay.interfaces.slack.events import (  # noqa: E402
    get_challenge,
    is_url_verification,
    parse_envelope,
    select_mention,
)
from dify_relay.interfaces.slack.handlers import process_mention  # noqa: E402
from dify_relay.utils.logging import (  # noqa: E402
    configure_structured_logging,
    set_request_id,
)
from dify_relay.utils.observability import setup_logfire  # noqa: E402

logger = logging.getLogger(__name__)

RETRY_HEADER = "x-slack-retry-num"
RETRY_REASON_HEADER = "x-slack-retry-reason"
HTTP_TIMEOUT_REASON = "http_timeout"
EVENT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def require_post(request: Request) -> None:
    """Reject non-POST verbs before any other dependency is resolved."""
    set_request_id(str(uuid.uuid4()))
    if request.method != "POST":
        raise MethodNotAllowedError()


PostOnly = Annotated[None, Depends(require_post)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    configure_structured_logging(settings.log_level, settings.log_json)

    if not settings.slack_configured:
        logger.warning("SLACK_SIGNING_SECRET or SLACK_BOT_TOKEN not set")
    if not settings.dify_configured:
        logger.warning("Dify connection not fully configured - mentions will get an error reply")

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="Slack Dify Relay",
    description="Relays Slack app mentions to a Dify workflow and replies in thread",
    version="1.0.0",
    lifespan=lifespan,
)

setup_logfire(app, get_settings())


@app.exception_handler(RequestError)
async def request_error_handler(request: Request, exc: RequestError) -> JSONResponse:
    """Render relay request errors as ``{"error": ...}`` JSON."""
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc)

    headers = None
    if isinstance(exc, MethodNotAllowedError):
        headers = {"Allow": ", ".join(exc.allowed)}

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
        headers=headers,
    )


async def _handle_slack_event(
    request: Request, background_tasks: BackgroundTasks, settings: Settings
) -> Response:
    raw_body = await read_raw_body(request)
    if not raw_body:
        raise BadRequestError("Empty request body")

    envelope = parse_envelope(raw_body)

    # Handshake happens before Slack signs requests for this endpoint
    if is_url_verification(envelope):
        return PlainTextResponse(get_challenge(envelope))

    verify_slack_request(request.headers, raw_body, settings)
    if envelope.event_id:
        set_request_id(envelope.event_id)

    retry_num = request.headers.get(RETRY_HEADER)
    retry_reason = request.headers.get(RETRY_REASON_HEADER, "unknown")
    # Only a timed-out delivery has already been dispatched once
    if retry_num and retry_reason == HTTP_TIMEOUT_REASON and settings.slack_ignore_retries:
        logger.info("Ignoring Slack retry %s (%s)", retry_num, retry_reason)
        return Response(status_code=200)

    mention = select_mention(envelope)
    if mention is not None:
        logger.info("App mention received in %s from %s", mention.channel, mention.user)
        # Runs after the 200 below has been sent
        background_tasks.add_task(process_mention, mention, settings)

    return Response(status_code=200)


@app.api_route("/slack/events", methods=EVENT_METHODS)
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    _post: PostOnly,
    settings: SettingsDep,
) -> Response:
    """Receive a Slack Events API callback.

    Dependencies resolve in order, so the method check runs before settings
    are loaded.

    Returns:
        200 with the challenge for the URL verification handshake, otherwise
        an empty 200 acknowledgment.

    Raises:
        RequestError: 400/401/405/500, rendered as JSON by request_error_handler.
    """
    try:
        return await _handle_slack_event(request, background_tasks, settings)
    except RequestError:
        raise
    except Exception as e:
        logger.exception("Error processing Slack event: %s", e)
        raise RequestError("Internal server error", status_code=500) from e


@app.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Health check endpoint.

    Returns:
        Health status and whether Slack and Dify are configured.
    """
    return HealthResponse(
        status="healthy",
        slack_configured=settings.slack_configured,
        dify_configured=settings.dify_configured,
    )


def main() -> None:
    """Serve the webhook with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
