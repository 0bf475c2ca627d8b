"""
Unit tests for the workflow engine client, matcher and workflow tools.
"""

import json

import httpx
import pytest

from application.services.tools.handlers.workflow import build_workflow_tools
from application.services.workflows import (
    WorkflowClient,
    WorkflowMatcher,
    WorkflowResponse,
    format_workflow_response,
)
from common.exception import ToolExecutionError, WorkflowTimeoutError


def make_client(handler, auth_token="secret") -> WorkflowClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WorkflowClient(http_client, base_url="http://n8n.test/", auth_token=auth_token)


class TestCallWebhook:
    """Test raw webhook calls."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Test payload, auth header and decoded body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("X-Bakame-Auth")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"answer": "VAT is 18%"})

        client = make_client(handler)
        data = await client.call_webhook("bakame-tax", {"query": "vat rate"})

        assert data == {"answer": "VAT is 18%"}
        assert seen["url"] == "http://n8n.test/webhook/bakame-tax"
        assert seen["auth"] == "secret"
        assert seen["body"]["query"] == "vat rate"
        assert "timestamp" in seen["body"]

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self):
        """Test that the auth header is omitted when no token is configured."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("X-Bakame-Auth")
            return httpx.Response(200, json={})

        await make_client(handler, auth_token="").call_webhook("bakame-tax", {})

        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Test non-2xx status."""
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(ToolExecutionError) as exc:
            await client.call_webhook("bakame-tax", {})
        assert exc.value.message == "Workflow failed: 502"

    @pytest.mark.asyncio
    async def test_empty_body(self):
        """Test an empty 200 response."""
        client = make_client(lambda request: httpx.Response(200, text="  "))

        with pytest.raises(ToolExecutionError) as exc:
            await client.call_webhook("bakame-tax", {})
        assert exc.value.message == "Workflow returned empty response - please try again"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Test a body that is not JSON."""
        client = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ToolExecutionError) as exc:
            await client.call_webhook("bakame-tax", {})
        assert exc.value.message == "Invalid response from workflow"

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a timeout maps to WorkflowTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(WorkflowTimeoutError) as exc:
            await make_client(handler).call_webhook("bakame-tax", {})
        assert exc.value.message == "Request timed out - please try again"


class TestCallWorkflow:
    """Test pre-router calls."""

    @pytest.mark.asyncio
    async def test_structured_answer(self):
        """Test type/data/message are read from the body and history is capped."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"type": "text", "data": "VAT is 18%"})

        history = [{"role": "user", "content": str(i)} for i in range(8)]
        response = await make_client(handler).call_workflow(
            "bakame-tax", "vat rate", language="rw", previous_messages=history
        )

        assert response.success
        assert response.data == "VAT is 18%"
        assert seen["body"]["context"]["language"] == "rw"
        assert len(seen["body"]["context"]["previousMessages"]) == 5

    @pytest.mark.asyncio
    async def test_failure_does_not_raise(self):
        """Test that workflow errors come back as success=False."""
        client = make_client(lambda request: httpx.Response(500, text="error"))

        response = await client.call_workflow("bakame-tax", "vat rate")

        assert not response.success
        assert response.message == "Workflow failed: 500"


class TestFormatWorkflowResponse:
    """Test markdown rendering of workflow answers."""

    def test_text(self):
        """Test plain text passes through."""
        assert format_workflow_response(WorkflowResponse(True, "text", "Muraho")) == "Muraho"

    def test_image_with_caption(self):
        """Test image markdown with caption."""
        response = WorkflowResponse(True, "image", {"url": "https://i/1.png", "caption": "Cow"})
        assert format_workflow_response(response) == "![Generated Image](https://i/1.png)\n\nCow"

    def test_data(self):
        """Test data is rendered as a JSON block."""
        rendered = format_workflow_response(WorkflowResponse(True, "data", {"a": 1}))
        assert rendered.startswith("```json\n")
        assert '"a": 1' in rendered

    def test_failure(self):
        """Test a failed response renders its message."""
        response = WorkflowResponse(False, "error", None, message="Request timed out")
        assert format_workflow_response(response) == "Request timed out"


class TestWorkflowMatcher:
    """Test keyword matching over the workflow registry."""

    def test_tax_question_routes(self):
        """Test a tax question matches the tax workflow confidently."""
        matcher = WorkflowMatcher()
        match = matcher.match("What is the VAT tax rate?")

        assert match.workflow.id == "bakame-tax"
        assert matcher.should_route(match)

    def test_small_talk_does_not_match(self):
        """Test that small talk matches nothing."""
        matcher = WorkflowMatcher()

        assert matcher.match("hello there") is None
        assert not matcher.should_route(None)


class TestWorkflowTools:
    """Test model-facing workflow tools."""

    @pytest.mark.asyncio
    async def test_tool_forwards_arguments(self):
        """Test that tool arguments are forwarded and the answer returned."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"answer": "Apply on Irembo"})

        tools = {tool.name: tool for tool in build_workflow_tools(make_client(handler))}
        result = await tools["government_services"].execute({"query": "passport"})

        assert result.success
        assert result.data == {"answer": "Apply on Irembo"}
        assert seen["path"] == "/webhook/bakame-gov-services"
        assert seen["body"]["query"] == "passport"

    @pytest.mark.asyncio
    async def test_tool_failure(self):
        """Test that workflow errors become failed results."""
        tools = build_workflow_tools(make_client(lambda request: httpx.Response(404, text="")))

        result = await tools[0].execute({"query": "x"})

        assert not result.success
        assert result.error == "Workflow failed: 404"
