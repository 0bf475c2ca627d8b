"""
Centralized error handling.

Maps the orchestrator's exception taxonomy, token errors, request
validation errors and HTTP exceptions to JSON error responses carrying
the request's correlation id.
"""

import logging

from pydantic import ValidationError
from quart import Quart
from werkzeug.exceptions import HTTPException

from application.routes.common.request_context import get_request_id
from application.routes.common.response import APIResponse
from common.exception import ChatOrchestratorError, RateLimitExceeded
from common.utils.jwt_utils import TokenExpiredError, TokenValidationError

logger = logging.getLogger(__name__)


def validation_details(error: ValidationError) -> dict:
    """Field-level error list for a pydantic validation failure."""
    errors = []
    for err in error.errors():
        field = " -> ".join(str(loc) for loc in err["loc"])
        errors.append({"field": field, "message": err["msg"], "type": err["type"]})
    return {"errors": errors}


def register_error_handlers(app: Quart) -> None:
    """
    Register centralized error handlers for the application.

    Handles:
    - ValidationError (Pydantic) → 400 Bad Request
    - TokenExpiredError / TokenValidationError → 401 Unauthorized
    - RateLimitExceeded → 429 with Retry-After and X-RateLimit-* headers
    - ChatOrchestratorError → its status code
    - HTTPException (Werkzeug) → its status code
    - Exception (Generic) → 500 Internal Server Error
    """

    @app.errorhandler(ValidationError)
    async def handle_validation_error(error: ValidationError):
        details = validation_details(error)
        logger.warning(f"Validation error: {details['errors']}")
        return APIResponse.error(
            "Validation failed", 400, details=details, request_id=get_request_id()
        )

    @app.errorhandler(TokenExpiredError)
    async def handle_token_expired(error: TokenExpiredError):
        logger.warning(f"Token expired: {error}")
        return APIResponse.unauthorized("Token has expired", request_id=get_request_id())

    @app.errorhandler(TokenValidationError)
    async def handle_token_invalid(error: TokenValidationError):
        logger.warning(f"Invalid token: {error}")
        return APIResponse.unauthorized("Invalid or malformed token", request_id=get_request_id())

    @app.errorhandler(RateLimitExceeded)
    async def handle_rate_limited(error: RateLimitExceeded):
        result = error.result
        response, status = APIResponse.error(
            error.message,
            429,
            request_id=get_request_id(),
            extra={"resetTime": result.reset_time, "retryAfter": result.retry_after},
        )
        response.headers["Retry-After"] = str(result.retry_after)
        for name, value in result.headers().items():
            response.headers[name] = value
        return response, status

    @app.errorhandler(ChatOrchestratorError)
    async def handle_orchestrator_error(error: ChatOrchestratorError):
        if error.status_code >= 500:
            logger.error(f"❌ {type(error).__name__}: {error.message}")
        else:
            logger.warning(f"⚠️ {type(error).__name__}: {error.message}")
        return APIResponse.error(error.message, error.status_code, request_id=get_request_id())

    @app.errorhandler(HTTPException)
    async def handle_http_exception(error: HTTPException):
        logger.info(f"HTTP exception: {error.code} - {error.description}")
        return APIResponse.error(
            error.description or error.name, error.code or 500, request_id=get_request_id()
        )

    @app.errorhandler(Exception)
    async def handle_generic_exception(error: Exception):
        logger.exception(f"Unhandled exception: {error}")
        return APIResponse.internal_error(
            "An unexpected error occurred", request_id=get_request_id()
        )
