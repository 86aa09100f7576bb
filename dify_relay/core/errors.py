# dify_relay/core/errors.py
"""Error taxonomy for the relay.

RequestError subclasses are raised before the Slack acknowledgment and are
rendered as JSON error responses. UpstreamError subclasses come from the
Dify and Slack clients and are turned into chat messages by the reply
pipeline.
"""


class RelayError(Exception):
    """Base class for all relay errors."""


class RequestError(RelayError):
    """Error that maps to an HTTP response for the inbound webhook."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(RequestError):
    status_code = 400


class AuthenticationError(RequestError):
    status_code = 401


class MethodNotAllowedError(RequestError):
    status_code = 405

    def __init__(self, allowed: tuple[str, ...] = ("POST",)) -> None:
        super().__init__("Method Not Allowed")
        self.allowed = allowed


class ConfigurationError(RequestError):
    """A required setting is missing or does not parse.

    The message shown to HTTP callers is generic; the setting name is kept
    for logs.
    """

    status_code = 500

    def __init__(self, setting: str, reason: str = "is not set") -> None:
        super().__init__("Server configuration error")
        self.setting = setting
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.setting.upper()} {self.reason}"


class UpstreamError(RelayError):
    """An external service call failed."""


class WorkflowError(UpstreamError):
    """The Dify workflow call failed."""


class WorkflowTimeoutError(WorkflowError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Dify workflow did not respond within {timeout:g}s")
        self.timeout = timeout


class WorkflowRequestError(WorkflowError):
    """Transport-level failure talking to Dify."""


class WorkflowHTTPError(WorkflowError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Dify API error: {status_code} {body}")
        self.status_code = status_code
        self.body = body


class SlackPostError(UpstreamError):
    """chat.postMessage failed."""


class SlackHTTPError(SlackPostError):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"Slack API HTTP error: {status_code} {detail}")
        self.status_code = status_code
        self.detail = detail


class SlackResponseError(SlackPostError):
    def __init__(self, error: str) -> None:
        super().__init__(f"Slack API error: {error}")
        self.error = error
