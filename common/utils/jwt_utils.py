"""
JWT Token Utilities

Provides functions for:
- Validating caller access tokens (HS256, signed with AUTH_SECRET_KEY)
- Extracting the caller identity from an Authorization header
- Issuing user tokens (tests and local development)
- Signing short-lived service tokens for third-party APIs (video generation)
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from common.config import config

logger = logging.getLogger(__name__)


class JWTConfig:
    """JWT configuration from environment variables."""

    def __init__(self):
        self.secret_key = config.AUTH_SECRET_KEY
        self.audience = config.AUTH_TOKEN_AUDIENCE
        self.algorithm = "HS256"
        self.user_token_expiry_hours = 24

        if self.secret_key == "dev-secret-key-change-in-production":
            logger.warning(
                "Using default AUTH_SECRET_KEY! "
                "Set AUTH_SECRET_KEY environment variable in production!"
            )


_config = JWTConfig()


class TokenValidationError(Exception):
    """Raised when token validation fails."""

    pass


class TokenExpiredError(Exception):
    """Raised when token has expired."""

    pass


@dataclass(frozen=True)
class Identity:
    """Authenticated caller."""

    id: str
    email: Optional[str] = None


def generate_user_token(
    user_id: str, email: Optional[str] = None, expiry_hours: Optional[int] = None
) -> str:
    """
    Generate a JWT token for an authenticated user.

    Args:
        user_id: The user's unique identifier
        email: Optional email claim
        expiry_hours: Token expiry in hours (default: 24)

    Returns:
        str: JWT token string
    """
    now = datetime.now(timezone.utc)
    expiry = now + timedelta(hours=expiry_hours or _config.user_token_expiry_hours)

    payload = {
        "sub": user_id,
        "aud": _config.audience,
        "iat": now,
        "exp": expiry,
    }
    if email:
        payload["email"] = email

    token = jwt.encode(payload, _config.secret_key, algorithm=_config.algorithm)

    logger.info(f"Generated user token for {user_id}")

    return token


def validate_token(token: str) -> dict:
    """
    Validate a JWT token and return its payload.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenValidationError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            _config.secret_key,
            algorithms=[_config.algorithm],
            audience=_config.audience,
        )

    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise TokenExpiredError("Token has expired")

    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise TokenValidationError(f"Invalid token: {e}")


def extract_bearer_token(auth_header: str) -> str:
    """
    Extract the token from an Authorization header.

    Args:
        auth_header: Authorization header value (e.g., "Bearer <token>")

    Returns:
        str: The extracted token

    Raises:
        TokenValidationError: If header format is invalid
    """
    if not auth_header:
        raise TokenValidationError("Missing Authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise TokenValidationError("Invalid Authorization header format")

    return parts[1]


def get_identity_from_header(auth_header: str) -> Identity:
    """
    Resolve the caller identity from an Authorization header.

    Raises:
        TokenValidationError: If header or token is invalid
        TokenExpiredError: If token has expired
    """
    payload = validate_token(extract_bearer_token(auth_header))
    user_id = payload.get("sub")
    if not user_id:
        raise TokenValidationError("Token missing user_id")
    return Identity(id=user_id, email=payload.get("email"))


def sign_service_token(access_key: str, secret_key: str, ttl_seconds: int) -> str:
    """
    Sign a short-lived HS256 token for a third-party API.

    The token becomes valid five seconds in the past to absorb clock skew and
    expires after ``ttl_seconds``. Callers sign a new one per request.
    """
    now = int(time.time())
    payload = {
        "iss": access_key,
        "exp": now + ttl_seconds,
        "nbf": now - 5,
    }
    return jwt.encode(
        payload, secret_key, algorithm="HS256", headers={"alg": "HS256", "typ": "JWT"}
    )
