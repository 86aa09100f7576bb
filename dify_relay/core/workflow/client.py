# dify_relay/core/workflow/client.py
"""Dify workflow API client.

Runs a workflow in blocking mode and returns its answer as plain text.
A single attempt is made per call; there is no retry policy.
"""

import logging
import re
from typing import Any

import httpx

from dify_relay.config import Settings
from dify_relay.core.errors import (
    WorkflowHTTPError,
    WorkflowRequestError,
    WorkflowTimeoutError,
)
from dify_relay.core.workflow.answer import extract_answer

logger = logging.getLogger(__name__)

WORKFLOW_USER = "slack-bot"

_VERSION_SEGMENT = re.compile(r"/v\d+$")


def build_workflow_url(base_url: str, workflow_id: str, version: str = "v1") -> str:
    """Build the workflow run URL.

    The version segment is omitted when the base URL already ends with one
    (e.g. ``https://api.dify.ai/v1``).

    Args:
        base_url: Dify API base URL.
        workflow_id: Workflow identifier.
        version: API version segment (default: "v1").

    Returns:
        ``{base}/{version}/workflows/{workflow_id}/run``
    """
    base = base_url.rstrip("/")
    version = version.strip("/")
    if version and not _VERSION_SEGMENT.search(base):
        base = f"{base}/{version}"
    return f"{base}/workflows/{workflow_id}/run"


class DifyWorkflowClient:
    """Client for the Dify workflow execution API."""

    def __init__(self, settings: Settings) -> None:
        self.base_url = settings.require("dify_api_url")
        self.api_key = settings.require("dify_api_key")
        self.workflow_id = settings.require("dify_workflow_id")
        self.version = settings.dify_api_version
        self.timeout = settings.dify_timeout

    @property
    def url(self) -> str:
        return build_workflow_url(self.base_url, self.workflow_id, self.version)

    def _build_payload(self, query: str) -> dict[str, Any]:
        return {
            "inputs": {"query": query},
            "response_mode": "blocking",
            "user": WORKFLOW_USER,
        }

    async def run(self, query: str) -> str:
        """Execute the workflow with the user's query.

        Args:
            query: Cleaned user message.

        Returns:
            Plain-text answer extracted from the response.

        Raises:
            WorkflowTimeoutError: No response within the timeout.
            WorkflowRequestError: Connection or other transport failure.
            WorkflowHTTPError: Non-2xx response.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.url, json=self._build_payload(query), headers=headers
                )
        except httpx.TimeoutException as e:
            raise WorkflowTimeoutError(self.timeout) from e
        except httpx.HTTPError as e:
            raise WorkflowRequestError(f"Dify request failed: {e}") from e

        if not response.is_success:
            raise WorkflowHTTPError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Dify returned a non-JSON body; using it as the answer")
            return response.text

        answer = extract_answer(payload)
        logger.info("Dify workflow %s answered (%d chars)", self.workflow_id, len(answer))
        return answer
