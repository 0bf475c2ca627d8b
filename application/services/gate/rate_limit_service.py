"""
Sliding-window rate limiting for the chat endpoint.

Quotas are tracked per ``(bucket, client IP, authenticated?)`` so signed-in
and anonymous callers behind the same address have separate budgets.
"""

import asyncio
import logging
import math
import time
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from common.config import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Verdict for one request."""

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        """``X-RateLimit-*`` headers describing this verdict."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_time),
        }


class RateLimitStore:
    """Records hits and decides whether a key is over its limit."""

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemoryRateLimitStore(RateLimitStore):
    """Single-process sliding window."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        async with self._lock:
            now = self._clock()
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()

            if len(hits) >= limit:
                reset_at = (hits[0] if hits else now) + window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_time=math.ceil(reset_at),
                    retry_after=max(1, math.ceil(reset_at - now)),
                )

            hits.append(now)
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - len(hits),
                reset_time=math.ceil(hits[0] + window_seconds),
            )


class RedisRateLimitStore(RateLimitStore):
    """Redis sorted-set sliding window shared by every process.

    Falls back to an in-process window when Redis cannot be reached.
    """

    def __init__(self, client: redis.Redis, clock=time.time):
        self.client = client
        self._clock = clock
        self._fallback = InMemoryRateLimitStore(clock=clock)

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisRateLimitStore":
        return cls(
            redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=1.0,
                socket_connect_timeout=1.0,
            )
        )

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        redis_key = f"rate_limit:{key}"
        try:
            now = self._clock()
            member = f"{now}:{uuid.uuid4().hex[:8]}"

            # One MULTI/EXEC round-trip; the verdict uses the count after adding
            pipe = self.client.pipeline()
            pipe.zremrangebyscore(redis_key, 0, now - window_seconds)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.zrange(redis_key, 0, 0, withscores=True)
            pipe.expire(redis_key, window_seconds + 60)
            _, _, current_count, oldest, _ = await pipe.execute()

            oldest_ts = oldest[0][1] if oldest else now
            reset_at = oldest_ts + window_seconds

            if current_count > limit:
                await self.client.zrem(redis_key, member)
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_time=math.ceil(reset_at),
                    retry_after=max(1, math.ceil(reset_at - now)),
                )

            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - current_count),
                reset_time=math.ceil(reset_at),
            )
        except RedisError as e:
            logger.error(f"❌ Redis rate limit error, using in-memory fallback: {e}")
            return await self._fallback.hit(key, limit, window_seconds)

    async def close(self) -> None:
        await self.client.aclose()


class RateLimitService:
    """Applies per-caller quotas using a RateLimitStore."""

    def __init__(
        self,
        store: RateLimitStore,
        window_seconds: Optional[int] = None,
        authenticated_limit: Optional[int] = None,
        anonymous_limit: Optional[int] = None,
    ):
        self.store = store
        self.window_seconds = (
            config.RATE_LIMIT_WINDOW_SECONDS if window_seconds is None else window_seconds
        )
        self.authenticated_limit = (
            config.RATE_LIMIT_CHAT_AUTHENTICATED
            if authenticated_limit is None
            else authenticated_limit
        )
        self.anonymous_limit = (
            config.RATE_LIMIT_CHAT_ANONYMOUS if anonymous_limit is None else anonymous_limit
        )

    def limit_for(self, authenticated: bool) -> int:
        return self.authenticated_limit if authenticated else self.anonymous_limit

    async def check(self, bucket: str, client_ip: str, authenticated: bool) -> RateLimitResult:
        """Record one request for the caller and return the verdict."""
        key = f"{bucket}:{client_ip}:{'auth' if authenticated else 'anon'}"
        result = await self.store.hit(key, self.limit_for(authenticated), self.window_seconds)
        if not result.allowed:
            logger.warning(
                f"⚠️ Rate limit exceeded for {key} (limit {result.limit}, "
                f"retry after {result.retry_after}s)"
            )
        return result
