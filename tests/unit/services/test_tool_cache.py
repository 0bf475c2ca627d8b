"""
Unit tests for the tool read-through cache and cached lookup tools.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from redis.exceptions import RedisError

from application.services.tools.cache import (
    InMemoryToolCache,
    RedisToolCache,
    make_cache_key,
    normalize_args,
)
from application.services.tools.handlers.lookups import CurrencyTool, WeatherTool


class TestCacheKeys:
    """Test key normalization."""

    def test_normalize_args(self):
        """Test strings are trimmed and lower-cased and empty values dropped."""
        assert normalize_args({"location": "  Kigali ", "units": None, "q": "", "n": 3}) == {
            "location": "kigali",
            "n": 3,
        }

    def test_equivalent_args_share_key(self):
        """Test that equivalent lookups share one key."""
        assert make_cache_key("weather", {"location": "Kigali", "units": "metric"}) == (
            make_cache_key("weather", {"units": "metric", "location": " kigali"})
        )

    def test_key_format(self):
        """Test the tool:<category>:<digest> format."""
        key = make_cache_key("currency", {"from": "USD"})
        prefix, category, digest = key.split(":")
        assert (prefix, category, len(digest)) == ("tool", "currency", 32)


class TestInMemoryToolCache:
    """Test the process-local cache."""

    @pytest.mark.asyncio
    async def test_fetches_once(self):
        """Test that a second lookup is served from the cache."""
        cache = InMemoryToolCache()
        fetch = AsyncMock(return_value={"temp": 22})

        first = await cache.get_or_fetch("weather", {"location": "Kigali"}, 60, fetch)
        second = await cache.get_or_fetch("weather", {"location": "kigali"}, 60, fetch)

        assert first == second == {"temp": 22}
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fetch_errors_are_not_cached(self):
        """Test that a failing fetch propagates and stores nothing."""
        cache = InMemoryToolCache()
        failing = AsyncMock(side_effect=RuntimeError("upstream down"))

        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("news", {"q": "x"}, 60, failing)

        fetch = AsyncMock(return_value=["article"])
        assert await cache.get_or_fetch("news", {"q": "x"}, 60, fetch) == ["article"]

    @pytest.mark.asyncio
    async def test_entries_expire(self):
        """Test that entries are dropped after their TTL."""
        cache = InMemoryToolCache()
        with patch("application.services.tools.cache.time") as mock_time:
            mock_time.monotonic.return_value = 100.0
            await cache.set("k", "v", 10)
            assert await cache.get("k") == "v"

            mock_time.monotonic.return_value = 110.0
            assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_evicts_when_full(self):
        """Test that the soonest-expiring entry is evicted at capacity."""
        cache = InMemoryToolCache(max_entries=2)
        await cache.set("a", 1, 10)
        await cache.set("b", 2, 100)
        await cache.set("c", 3, 100)

        assert await cache.get("a") is None
        assert await cache.get("b") == 2
        assert await cache.get("c") == 3


class TestRedisToolCache:
    """Test the Redis-backed cache."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        """Test values are stored as JSON with a TTL."""
        client = MagicMock()
        client.setex = AsyncMock()
        client.get = AsyncMock(return_value=json.dumps({"rate": 1300}))
        cache = RedisToolCache(client)

        await cache.set("tool:currency:abc", {"rate": 1300}, 300)

        client.setex.assert_awaited_once_with("tool:currency:abc", 300, '{"rate": 1300}')
        assert await cache.get("tool:currency:abc") == {"rate": 1300}

    @pytest.mark.asyncio
    async def test_redis_error_is_a_miss(self):
        """Test that Redis failures fall through to the upstream fetch."""
        client = MagicMock()
        client.get = AsyncMock(side_effect=RedisError("down"))
        client.setex = AsyncMock(side_effect=RedisError("down"))
        cache = RedisToolCache(client)
        fetch = AsyncMock(return_value={"ok": True})

        assert await cache.get_or_fetch("weather", {"location": "x"}, 60, fetch) == {"ok": True}
        fetch.assert_awaited_once()


class TestCachedLookups:
    """Test lookup tools through the cache."""

    @pytest.mark.asyncio
    async def test_currency_caches_pair_rate(self):
        """Test that the pair rate is fetched once and the amount applied per call."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "result": "success",
                    "conversion_rate": 1300.0,
                    "time_last_update_utc": "Mon, 01 Jan 2024 00:00:01 +0000",
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            tool = CurrencyTool(http_client, InMemoryToolCache(), api_key="key")
            first = await tool.execute({"amount": 10, "from_currency": "usd", "to_currency": "rwf"})
            second = await tool.execute({"amount": 2, "from_currency": "USD", "to_currency": "RWF"})

        assert first.data["result"] == 13000.0
        assert second.data["result"] == 2600.0
        assert len(requests) == 1
        assert requests[0].url.path.endswith("/key/pair/USD/RWF")

    @pytest.mark.asyncio
    async def test_currency_fallback_rates(self):
        """Test approximate rates when no API key is configured."""
        tool = CurrencyTool(MagicMock(), InMemoryToolCache(), api_key=None)

        result = await tool.execute({"amount": 1, "from_currency": "USD", "to_currency": "RWF"})

        assert result.data["result"] == 1300
        assert "Approximate" in result.data["note"]

    @pytest.mark.asyncio
    async def test_weather_upstream_error(self):
        """Test that an upstream error message becomes the tool error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"cod": "404", "message": "city not found"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            tool = WeatherTool(http_client, InMemoryToolCache(), api_key="key")
            result = await tool.execute({"location": "Atlantis"})

        assert not result.success
        assert result.error == "city not found"

    @pytest.mark.asyncio
    async def test_weather_demo_data(self):
        """Test demo data without an API key."""
        tool = WeatherTool(MagicMock(), InMemoryToolCache(), api_key=None)

        result = await tool.execute({"location": "Kigali", "units": "fahrenheit"})

        assert result.success
        assert result.data["units"] == "°F"
