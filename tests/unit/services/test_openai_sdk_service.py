"""
Unit tests for OpenAI SDK Service
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from openai import APIConnectionError, APIStatusError, RateLimitError
from pydantic import BaseModel

from application.services.openai_sdk_service import OpenAISDKService
from common.config import config
from common.exception import UpstreamProviderError

SLEEP_PATH = "application.services.openai_sdk_service.asyncio.sleep"
COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


class WeatherSummary(BaseModel):
    """Test schema for structured output."""
    city: str
    temperature: float


def status_error(error_cls, status: int, message: str = "error"):
    request = httpx.Request("POST", COMPLETIONS_URL)
    return error_cls(message, response=httpx.Response(status, request=request), body=None)


def connection_error():
    return APIConnectionError(request=httpx.Request("POST", COMPLETIONS_URL))


@pytest.fixture
def retries(monkeypatch):
    """Pin the retry budget regardless of the environment."""
    monkeypatch.setattr(config, "OPENAI_MAX_RETRIES", 3)


@pytest.fixture
def client():
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(return_value="STREAM")
    mock_client.chat.completions.parse = AsyncMock()
    mock_client.close = AsyncMock()
    return mock_client


@pytest.fixture
def service(retries, client):
    """Create service instance with mocked client."""
    return OpenAISDKService(api_key="sk-test", model_name="gpt-4o", client=client)


class TestOpenAISDKServiceInit:
    """Test service initialization."""

    def test_injected_client(self, service, client):
        """Test an injected client is used as-is."""
        assert service.client is client
        assert service.model_name == "gpt-4o"
        assert service.is_configured() is True

    def test_no_api_key(self, monkeypatch):
        """Test initialization without API key."""
        monkeypatch.setattr(config, "OPENAI_API_KEY", None)
        service = OpenAISDKService()
        assert service.client is None
        assert service.is_configured() is False

    def test_builds_client_from_key(self, monkeypatch):
        """Test the SDK client is built without SDK-level retries."""
        monkeypatch.setattr(config, "OPENAI_BASE_URL", None)
        with patch("application.services.openai_sdk_service.AsyncOpenAI") as sdk:
            OpenAISDKService(api_key="sk-test")

        kwargs = sdk.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["max_retries"] == 0

    @pytest.mark.asyncio
    async def test_close(self, service, client):
        """Test close releases the client."""
        await service.close()
        client.close.assert_awaited_once()


class TestOpenChatStream:
    """Test opening streamed completions."""

    @pytest.mark.asyncio
    async def test_params_with_tools(self, service, client):
        """Test the tool catalog is sent with automatic tool choice."""
        tools = [{"type": "function", "function": {"name": "calculate"}}]

        stream = await service.open_chat_stream(
            [{"role": "user", "content": "2+2"}], tools=tools, temperature=0.7, max_tokens=2048
        )

        assert stream == "STREAM"
        client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4o",
            messages=[{"role": "user", "content": "2+2"}],
            temperature=0.7,
            max_tokens=2048,
            stream=True,
            tools=tools,
            tool_choice="auto",
        )

    @pytest.mark.asyncio
    async def test_params_without_tools(self, service, client):
        """Test tools and tool_choice are omitted when no catalog is given."""
        await service.open_chat_stream([{"role": "user", "content": "hi"}], tools=None)

        kwargs = client.chat.completions.create.await_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, service, client):
        """Test a rate limit is retried with backoff."""
        client.chat.completions.create.side_effect = [
            status_error(RateLimitError, 429, "rate limited"),
            "STREAM",
        ]

        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            stream = await service.open_chat_stream([{"role": "user", "content": "hi"}])

        assert stream == "STREAM"
        sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self, service, client):
        """Test exhausted retries map to a 429 provider error."""
        client.chat.completions.create.side_effect = status_error(RateLimitError, 429)

        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            with pytest.raises(UpstreamProviderError) as exc:
                await service.open_chat_stream([{"role": "user", "content": "hi"}])

        assert exc.value.upstream_status == 429
        assert exc.value.message == "Rate limit exceeded. Try again later."
        assert client.chat.completions.create.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_503(self, service, client):
        """Test repeated connection failures map to 503."""
        client.chat.completions.create.side_effect = connection_error()

        with patch(SLEEP_PATH, new_callable=AsyncMock):
            with pytest.raises(UpstreamProviderError) as exc:
                await service.open_chat_stream([{"role": "user", "content": "hi"}])

        assert exc.value.upstream_status == 503

    @pytest.mark.asyncio
    async def test_auth_error_not_retried(self, service, client):
        """Test a 401 fails immediately."""
        client.chat.completions.create.side_effect = status_error(APIStatusError, 401, "bad key")

        with patch(SLEEP_PATH, new_callable=AsyncMock) as sleep:
            with pytest.raises(UpstreamProviderError) as exc:
                await service.open_chat_stream([{"role": "user", "content": "hi"}])

        assert exc.value.message == "Invalid API key."
        assert client.chat.completions.create.await_count == 1
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_error_retried(self, service, client):
        """Test a 5xx is retried."""
        client.chat.completions.create.side_effect = [
            status_error(APIStatusError, 502),
            "STREAM",
        ]

        with patch(SLEEP_PATH, new_callable=AsyncMock):
            assert await service.open_chat_stream([{"role": "user", "content": "hi"}]) == "STREAM"

    @pytest.mark.asyncio
    async def test_missing_client(self, monkeypatch):
        """Test calling without a client raises a provider error."""
        monkeypatch.setattr(config, "OPENAI_API_KEY", None)
        with pytest.raises(UpstreamProviderError):
            await OpenAISDKService().open_chat_stream([{"role": "user", "content": "hi"}])


class TestStructuredOutput:
    """Test structured output generation."""

    @pytest.mark.asyncio
    async def test_parsed_result(self, service, client):
        """Test the parsed model is returned."""
        parsed = WeatherSummary(city="Kigali", temperature=24.5)
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(parsed=parsed))]
        client.chat.completions.parse.return_value = response

        result = await service.generate_structured_output(
            "Weather in Kigali?", WeatherSummary, system_instruction="Be brief", temperature=0.3
        )

        assert result == parsed
        kwargs = client.chat.completions.parse.await_args.kwargs
        assert kwargs["response_format"] is WeatherSummary
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Weather in Kigali?"},
        ]

    @pytest.mark.asyncio
    async def test_api_error(self, service, client):
        """Test API errors map to provider errors."""
        client.chat.completions.parse.side_effect = status_error(APIStatusError, 500)

        with pytest.raises(UpstreamProviderError) as exc:
            await service.generate_structured_output("x", WeatherSummary)

        assert exc.value.upstream_status == 500
