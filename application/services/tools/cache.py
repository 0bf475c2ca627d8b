"""
Read-through cache for tool lookups.

Keys are ``tool:<category>:<digest>`` where the digest covers the
normalized lookup arguments, so equivalent requests share one entry.
Only successful fetches are stored.
"""

import hashlib
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


def normalize_args(args: Dict[str, Any]) -> Dict[str, Any]:
    """Lower-case and strip string values; drop empty values."""
    normalized = {}
    for key, value in args.items():
        if value is None or value == "":
            continue
        normalized[key] = value.strip().lower() if isinstance(value, str) else value
    return normalized


def make_cache_key(category: str, args: Dict[str, Any]) -> str:
    encoded = json.dumps(normalize_args(args), sort_keys=True, default=str)
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:32]
    return f"tool:{category}:{digest}"


class ToolCache:
    """Base read-through cache."""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedError

    async def get_or_fetch(
        self,
        category: str,
        args: Dict[str, Any],
        ttl_seconds: int,
        fetch: Fetcher,
    ) -> Any:
        """Return the cached value or call ``fetch`` and store its result.

        Exceptions from ``fetch`` propagate and nothing is stored.
        """
        key = make_cache_key(category, args)
        cached = await self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        value = await fetch()
        if value is not None:
            await self.set(key, value, ttl_seconds)
        return value

    async def close(self) -> None:
        return None


class InMemoryToolCache(ToolCache):
    """Process-local cache with per-entry expiry."""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[Any, float]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if len(self._entries) >= self.max_entries:
            self._evict()
        self._entries[key] = (value, time.monotonic() + ttl_seconds)

    def _evict(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, exp) in self._entries.items() if exp <= now]:
            del self._entries[key]
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][1])
            del self._entries[oldest]


class RedisToolCache(ToolCache):
    """Redis-backed cache shared by every process.

    Redis errors are logged and treated as a miss, so a cache outage only
    costs an upstream call.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisToolCache":
        return cls(
            redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=1.0,
                socket_connect_timeout=1.0,
            )
        )

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.warning(f"⚠️ Tool cache get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Discarding undecodable cache entry {key}")
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.client.setex(key, ttl_seconds, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning(f"⚠️ Tool cache set failed for {key}: {e}")

    async def close(self) -> None:
        await self.client.aclose()
