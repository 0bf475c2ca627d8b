"""Rate limiting for incoming chat requests."""

from application.services.gate.rate_limit_service import (
    InMemoryRateLimitStore,
    RateLimitResult,
    RateLimitService,
    RateLimitStore,
    RedisRateLimitStore,
)

__all__ = [
    "InMemoryRateLimitStore",
    "RateLimitResult",
    "RateLimitService",
    "RateLimitStore",
    "RedisRateLimitStore",
]
