"""
Authentication utilities for route handlers.

Resolves the caller's identity from the bearer token.
"""

import logging
from typing import Optional

from quart import request

from common.exception import AuthRequiredError
from common.utils.jwt_utils import (
    Identity,
    TokenExpiredError,
    TokenValidationError,
    get_identity_from_header,
)

logger = logging.getLogger(__name__)


async def resolve_identity() -> Optional[Identity]:
    """
    Identity from the ``Authorization: Bearer <jwt>`` header.

    Returns:
        Identity, or None when no Authorization header was sent

    Raises:
        TokenExpiredError: If the token has expired
        TokenValidationError: If the token is invalid or malformed
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None

    try:
        return get_identity_from_header(auth_header)
    except TokenExpiredError:
        logger.warning("Token has expired")
        raise
    except TokenValidationError as e:
        logger.warning(f"Invalid token: {e}")
        raise


def require_identity_or_guest(identity: Optional[Identity], is_guest: bool) -> None:
    """
    Raises:
        AuthRequiredError: If there is no identity and the caller is not a guest
    """
    if identity is None and not is_guest:
        raise AuthRequiredError()
