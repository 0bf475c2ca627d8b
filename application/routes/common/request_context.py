"""Per-request values derived from headers."""

import uuid

from quart import g, request

from application.routes.common.constants import REQUEST_ID_HEADER


def get_request_id() -> str:
    """Correlation id for the current request, from ``X-Request-ID`` or a new uuid4."""
    request_id = getattr(g, "request_id", None)
    if request_id is None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        g.request_id = request_id
    return request_id


def get_client_ip() -> str:
    """First ``X-Forwarded-For`` entry, else the peer address, else ``"unknown"``."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.remote_addr or "unknown"
