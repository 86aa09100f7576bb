# tests/test_workflow_client.py
"""Tests for the Dify workflow client and answer extraction."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from dify_relay.core.errors import (
    ConfigurationError,
    WorkflowHTTPError,
    WorkflowRequestError,
    WorkflowTimeoutError,
)
from dify_relay.core.workflow import DifyWorkflowClient, build_workflow_url, extract_answer
from tests.conftest import make_settings


def _mock_async_client(mock_client_class, response=None, side_effect=None):
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.text = text or (json.dumps(payload) if payload is not None else "")
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("No JSON")
    return response


class TestExtractAnswer:
    """Tests for extract_answer precedence."""

    def test_top_level_answer(self):
        assert extract_answer({"answer": "42"}) == "42"

    def test_outputs_text(self):
        assert extract_answer({"data": {"outputs": {"text": "hi"}}}) == "hi"

    def test_unrecognized_shape_is_serialized(self):
        assert extract_answer({"foo": "bar"}) == '{"foo": "bar"}'

    def test_answer_wins_over_outputs(self):
        payload = {"answer": "top", "data": {"outputs": {"text": "nested"}}}

        assert extract_answer(payload) == "top"

    def test_output_field_precedence(self):
        outputs = {"content": "5", "output": "4", "result": "3", "text": "2", "answer": "1"}

        assert extract_answer({"data": {"outputs": outputs}}) == "1"
        del outputs["answer"]
        assert extract_answer({"data": {"outputs": outputs}}) == "2"
        del outputs["text"]
        assert extract_answer({"data": {"outputs": outputs}}) == "3"

    def test_first_string_output_fallback(self):
        outputs = {"score": 0.9, "summary": "short", "details": "long"}

        assert extract_answer({"data": {"outputs": outputs}}) == "short"

    def test_outputs_without_strings_fall_through_to_output(self):
        payload = {"data": {"outputs": {"score": 1}}, "output": "top-level output"}

        assert extract_answer(payload) == "top-level output"

    def test_empty_answer_is_skipped(self):
        assert extract_answer({"answer": "", "output": "fallback"}) == "fallback"

    def test_non_string_answer_is_skipped(self):
        assert extract_answer({"answer": {"x": 1}, "data": {"outputs": {"text": "t"}}}) == "t"

    def test_non_ascii_is_kept_in_dump(self):
        assert extract_answer({"foo": "日本語"}) == '{"foo": "日本語"}'

    def test_non_dict_payload_is_serialized(self):
        assert extract_answer(["a", "b"]) == '["a", "b"]'


class TestBuildWorkflowUrl:
    """Tests for build_workflow_url."""

    def test_default_version(self):
        assert (
            build_workflow_url("https://api.dify.ai", "wf-1")
            == "https://api.dify.ai/v1/workflows/wf-1/run"
        )

    def test_trailing_slash(self):
        assert (
            build_workflow_url("https://api.dify.ai/", "wf-1")
            == "https://api.dify.ai/v1/workflows/wf-1/run"
        )

    def test_base_already_has_version(self):
        assert (
            build_workflow_url("https://api.dify.ai/v1/", "wf-1", "v2")
            == "https://api.dify.ai/v1/workflows/wf-1/run"
        )

    def test_custom_version(self):
        assert (
            build_workflow_url("https://dify.internal/api", "wf-1", "v2")
            == "https://dify.internal/api/v2/workflows/wf-1/run"
        )

    def test_empty_version_is_omitted(self):
        assert (
            build_workflow_url("https://dify.internal", "wf-1", "")
            == "https://dify.internal/workflows/wf-1/run"
        )


class TestDifyWorkflowClient:
    """Tests for DifyWorkflowClient.run."""

    @pytest.mark.parametrize("missing", ["dify_api_url", "dify_api_key", "dify_workflow_id"])
    def test_missing_configuration(self, missing):
        with pytest.raises(ConfigurationError) as exc_info:
            DifyWorkflowClient(make_settings(**{missing: ""}))

        assert exc_info.value.setting == missing

    @pytest.mark.asyncio
    async def test_run_sends_blocking_request(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_async_client(
                mock_client_class, _response(payload={"answer": "42"})
            )

            answer = await client.run("what is the answer?")

        assert answer == "42"
        mock_client_class.assert_called_once_with(timeout=30.0)
        mock_client.post.assert_called_once_with(
            "https://dify.example.com/v1/workflows/wf-123/run",
            json={
                "inputs": {"query": "what is the answer?"},
                "response_mode": "blocking",
                "user": "slack-bot",
            },
            headers={
                "Authorization": "Bearer app-test-key",
                "Content-Type": "application/json",
            },
        )

    @pytest.mark.asyncio
    async def test_run_extracts_nested_outputs(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(
                mock_client_class,
                _response(payload={"data": {"outputs": {"text": "hi"}}}),
            )

            assert await client.run("hello") == "hi"

    @pytest.mark.asyncio
    async def test_timeout_is_named_error(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(
                mock_client_class, side_effect=httpx.ReadTimeout("timed out")
            )

            with pytest.raises(WorkflowTimeoutError) as exc_info:
                await client.run("hello")

        assert exc_info.value.timeout == 30.0

    @pytest.mark.asyncio
    async def test_connect_error(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(
                mock_client_class, side_effect=httpx.ConnectError("refused")
            )

            with pytest.raises(WorkflowRequestError):
                await client.run("hello")

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_body(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(
                mock_client_class,
                _response(status_code=401, text='{"code": "unauthorized"}'),
            )

            with pytest.raises(WorkflowHTTPError) as exc_info:
                await client.run("hello")

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == '{"code": "unauthorized"}'
        assert "401" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_success_body_returned_as_text(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_async_client(mock_client_class, _response(text="plain answer"))

            assert await client.run("hello") == "plain answer"

    @pytest.mark.asyncio
    async def test_single_attempt_only(self):
        client = DifyWorkflowClient(make_settings())

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_async_client(
                mock_client_class, side_effect=httpx.ReadTimeout("timed out")
            )

            with pytest.raises(WorkflowTimeoutError):
                await client.run("hello")

        assert mock_client.post.call_count == 1
