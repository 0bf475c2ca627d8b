"""
Response utilities for standardized API responses.

Error bodies are ``{"error": message}`` plus optional details and the
request's correlation id.
"""

from typing import Any, Dict, Optional, Tuple

from quart import Response, jsonify


class APIResponse:
    """
    Standardized API response helper.
    """

    @staticmethod
    def success(data: Any, status: int = 200) -> Tuple[Response, int]:
        """
        Create a successful response.

        Example:
            >>> return APIResponse.success({"status": "ok"})
        """
        return jsonify(data), status

    @staticmethod
    def error(
        message: str,
        status: int = 400,
        details: Any = None,
        request_id: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Response, int]:
        """
        Create an error response.

        Args:
            message: Error message
            status: HTTP status code (default: 400)
            details: Additional error details (optional)
            request_id: Correlation id echoed to the client (optional)
            extra: Additional top-level fields (optional)

        Example:
            >>> return APIResponse.error("Validation failed", 400, details=errors)
        """
        error_data: Dict[str, Any] = {"error": message}
        if details is not None:
            error_data["details"] = details
        if extra:
            error_data.update(extra)
        if request_id is not None:
            error_data["requestId"] = request_id
        return jsonify(error_data), status

    @staticmethod
    def unauthorized(
        message: str = "Unauthorized", request_id: Optional[str] = None
    ) -> Tuple[Response, int]:
        return APIResponse.error(message, 401, request_id=request_id)

    @staticmethod
    def internal_error(
        message: str = "Internal server error", request_id: Optional[str] = None
    ) -> Tuple[Response, int]:
        return APIResponse.error(message, 500, request_id=request_id)
