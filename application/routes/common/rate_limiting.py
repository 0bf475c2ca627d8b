"""
Rate limiting utilities for route handlers.

``default_rate_limit_key`` feeds the coarse ``quart_rate_limiter`` guard;
``check_chat_quota`` applies the per-caller sliding-window quota.
"""

from quart import current_app

from application.routes.common.constants import CHAT_RATE_LIMIT_BUCKET
from application.routes.common.request_context import get_client_ip
from application.services.gate import RateLimitResult
from common.exception import RateLimitExceeded


async def default_rate_limit_key() -> str:
    """
    Generate rate limit key based on client IP address.

    Example:
        >>> @rate_limit(100, timedelta(minutes=1), key_function=default_rate_limit_key)
        >>> async def my_endpoint():
        >>>     pass
    """
    return get_client_ip()


async def check_chat_quota(authenticated: bool) -> RateLimitResult:
    """Record one chat request for the caller.

    Raises:
        RateLimitExceeded: If the caller is over its quota
    """
    limiter = current_app.services.rate_limiter
    result = await limiter.check(CHAT_RATE_LIMIT_BUCKET, get_client_ip(), authenticated)
    if not result.allowed:
        raise RateLimitExceeded(result)
    return result
