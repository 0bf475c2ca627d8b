"""
Validation utilities for route handlers.

Provides a decorator for automatic request validation using Pydantic models.
"""

import logging
from functools import wraps
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError
from quart import request

from application.routes.common.error_handlers import validation_details
from application.routes.common.request_context import get_request_id
from application.routes.common.response import APIResponse

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def validate_json(model: Type[T]):
    """
    Decorator to validate JSON request body against Pydantic model.

    The validated instance is available as ``request.validated_data``.
    A missing or non-object body, or a validation failure, returns
    400 Bad Request.

    Example:
        >>> @validate_json(ChatRequest)
        >>> async def chat():
        >>>     data = request.validated_data
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            json_data = await request.get_json(silent=True)

            if not isinstance(json_data, dict):
                return APIResponse.error(
                    "Request body required",
                    400,
                    details={"expected": "application/json object"},
                    request_id=get_request_id(),
                )

            try:
                validated = model.model_validate(json_data)
            except ValidationError as e:
                details = validation_details(e)
                logger.warning(f"Validation error in {func.__name__}: {details['errors']}")
                return APIResponse.error(
                    "Validation failed", 400, details=details, request_id=get_request_id()
                )

            request.validated_data = validated
            return await func(*args, **kwargs)

        return wrapper

    return decorator
