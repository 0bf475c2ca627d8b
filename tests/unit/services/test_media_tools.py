"""
Unit tests for image, video and code execution tools.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIStatusError

from application.services.streaming.events import StreamEvent
from application.services.tools.handlers.code import CodeExecutionTool, combine_output
from application.services.tools.handlers.media import (
    ImageGenerationTool,
    VideoGenerationTool,
    select_image_size,
)


def status_error(status: int) -> APIStatusError:
    request = httpx.Request("POST", "https://api.openai.com/v1/images/generations")
    return APIStatusError("error", response=httpx.Response(status, request=request), body=None)


class TestImageGenerationTool:
    """Test the generate_image tool."""

    def test_select_image_size(self):
        """Test the aspect ratio picks the closest supported size."""
        assert select_image_size(1920, 1080)[0] == "1792x1024"
        assert select_image_size(1080, 1920)[0] == "1024x1792"
        assert select_image_size(None, None)[0] == "1024x1024"

    @pytest.mark.asyncio
    async def test_success_emits_side_event(self):
        """Test the image URL is returned and shown out-of-band."""
        provider = MagicMock()
        provider.generate_image = AsyncMock(
            return_value=SimpleNamespace(url="https://img/1.png", revised_prompt="a rabbit in Kigali")
        )

        result = await ImageGenerationTool(provider).execute({"prompt": "rabbit"})

        assert result.success
        assert result.data["image_url"] == "https://img/1.png"
        assert result.side_event.event_type == StreamEvent.GENERATED_IMAGE
        assert result.side_event.data["generatedImage"]["prompt"] == "a rabbit in Kigali"
        provider.generate_image.assert_awaited_once_with("rabbit", "1024x1024")

    @pytest.mark.asyncio
    async def test_rejected_prompt(self):
        """Test a 400 from the provider."""
        provider = MagicMock()
        provider.generate_image = AsyncMock(side_effect=status_error(400))

        result = await ImageGenerationTool(provider).execute({"prompt": "x"})

        assert not result.success
        assert result.error == "Your prompt was rejected. Please try a different description."
        assert result.side_event is None

    @pytest.mark.asyncio
    async def test_missing_url(self):
        """Test a response without an image URL."""
        provider = MagicMock()
        provider.generate_image = AsyncMock(return_value=None)

        result = await ImageGenerationTool(provider).execute({"prompt": "x"})

        assert result.error == "Image generation failed. Please try again."


def video_transport(statuses, requests):
    """Kling stand-in: creates task t-1, then answers polls from ``statuses``."""
    polls = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"data": {"task_id": "t-1"}})
        return httpx.Response(200, json={"data": next(polls)})

    return httpx.MockTransport(handler)


class TestVideoGenerationTool:
    """Test the generate_video tool."""

    def make_tool(self, transport, max_attempts=5):
        return VideoGenerationTool(
            httpx.AsyncClient(transport=transport),
            access_key="ak",
            secret_key="sk",
            api_base="https://kling.test/v1",
            poll_interval=5,
            max_attempts=max_attempts,
            sleep=AsyncMock(),
        )

    @pytest.mark.asyncio
    async def test_polls_until_done_with_fresh_token_per_request(self):
        """Test task creation, polling and a newly signed token on every request."""
        requests = []
        transport = video_transport(
            [
                {"task_status": "processing"},
                {
                    "task_status": "succeed",
                    "task_result": {"videos": [{"url": "https://v/1.mp4", "duration": "5"}]},
                },
            ],
            requests,
        )
        tool = self.make_tool(transport)

        with patch(
            "application.services.tools.handlers.media.sign_service_token",
            side_effect=["tok-1", "tok-2", "tok-3"],
        ) as sign:
            result = await tool.execute({"prompt": "waves on Lake Kivu", "aspect_ratio": "9:16"})

        assert result.success
        assert result.data["video_url"] == "https://v/1.mp4"
        assert result.side_event.data["generatedVideo"]["aspectRatio"] == "9:16"
        assert sign.call_count == 3
        sign.assert_called_with("ak", "sk", 1800)
        assert [r.headers["Authorization"] for r in requests] == [
            "Bearer tok-1",
            "Bearer tok-2",
            "Bearer tok-3",
        ]
        assert json.loads(requests[0].content)["model_name"] == "kling-v1-6"
        assert requests[1].url.path == "/v1/videos/text2video/t-1"
        assert tool._sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_task_failed(self):
        """Test a failed task reports the provider message."""
        transport = video_transport(
            [{"task_status": "failed", "task_status_msg": "Content policy"}], []
        )

        result = await self.make_tool(transport).execute({"prompt": "x"})

        assert not result.success
        assert result.error == "Content policy"

    @pytest.mark.asyncio
    async def test_times_out(self):
        """Test the bounded polling loop."""
        transport = video_transport([{"task_status": "processing"}] * 3, [])

        result = await self.make_tool(transport, max_attempts=3).execute({"prompt": "x"})

        assert result.error == "Video generation timed out. Please try a simpler prompt."

    @pytest.mark.asyncio
    async def test_rate_limited_on_create(self):
        """Test a 429 from task creation."""
        transport = httpx.MockTransport(lambda request: httpx.Response(429, json={}))

        result = await self.make_tool(transport).execute({"prompt": "x"})

        assert result.error == "Kling API rate limit. Wait and try again."

    @pytest.mark.asyncio
    async def test_not_configured(self):
        """Test missing credentials."""
        tool = VideoGenerationTool(MagicMock(), access_key="", secret_key="")

        result = await tool.execute({"prompt": "x"})

        assert result.error == "Video generation service not configured."


class TestCodeExecutionTool:
    """Test the run_code tool."""

    def test_combine_output(self):
        """Test stdout/stderr merging."""
        assert combine_output("out", "", 0) == "out"
        assert combine_output("out", "warn", 0) == "out\nwarn"
        assert combine_output("out", "Traceback", 1) == "Traceback"

    @pytest.mark.asyncio
    async def test_run(self):
        """Test a successful run emits code output."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"run": {"stdout": "30\n", "stderr": "", "code": 0}})

        tool = CodeExecutionTool(
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            api_url="https://piston.test/execute",
        )
        result = await tool.execute({"code": "print(250 * 0.12)"})

        assert result.data["output"] == "30\n"
        assert result.data["exitCode"] == 0
        assert result.side_event.event_type == StreamEvent.CODE_OUTPUT
        assert seen["body"]["language"] == "python"
        assert seen["body"]["files"] == [{"content": "print(250 * 0.12)"}]

    @pytest.mark.asyncio
    async def test_compile_error(self):
        """Test compile failures are reported as output, not tool failures."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200, json={"compile": {"code": 1, "stderr": "error: expected ';'"}}
            )
        )
        tool = CodeExecutionTool(httpx.AsyncClient(transport=transport), api_url="https://p.test")

        result = await tool.execute({"code": "int main() {}", "language": "c"})

        assert result.success
        assert result.data["isCompileError"]
        assert result.data["error"] == "error: expected ';'"

    @pytest.mark.asyncio
    async def test_unsupported_language(self):
        """Test an unknown language."""
        result = await CodeExecutionTool(MagicMock()).execute({"code": "x", "language": "cobol"})

        assert not result.success
        assert result.error.startswith("Unsupported language: cobol")
