"""
Chat Routes

POST /api/chat streams a tool-augmented completion as Server-Sent Events.
Each frame is ``data: <json>\\n\\n`` and the stream always ends with
``data: [DONE]\\n\\n``. After the stream closes, a memory extraction job is
queued for signed-in callers.
"""

import asyncio
import logging
from datetime import timedelta
from typing import AsyncGenerator, Optional

from quart import Blueprint, Response, current_app, request
from quart_rate_limiter import rate_limit

from application.models.request_models import ChatRequest
from application.routes.common.auth import require_identity_or_guest, resolve_identity
from application.routes.common.constants import (
    RATE_LIMIT_STANDARD,
    REQUEST_ID_HEADER,
    SSE_HEADERS,
    SSE_MIMETYPE,
)
from application.routes.common.rate_limiting import check_chat_quota, default_rate_limit_key
from application.routes.common.request_context import get_request_id
from application.routes.common.validation import validate_json
from application.services.memory import MemoryJob
from application.services.service_factory import ServiceContainer
from application.services.streaming import DONE_FRAME, CancellationToken
from common.utils.jwt_utils import Identity

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__)


def _submit_memory_job(
    services: ServiceContainer,
    identity: Optional[Identity],
    chat_request: ChatRequest,
    request_id: str,
) -> None:
    if identity is None:
        return
    text = chat_request.latest_user_text
    if not text:
        return
    services.memory_supervisor.submit(MemoryJob(identity.id, text, request_id))


async def _event_stream(
    services: ServiceContainer,
    chat_request: ChatRequest,
    identity: Optional[Identity],
    token: CancellationToken,
) -> AsyncGenerator[str, None]:
    """SSE frames for one chat turn, always closed by ``[DONE]``."""
    event_count = 0
    try:
        async for event in services.chat_stream.stream(chat_request, identity, token):
            event_count += 1
            yield event.to_sse()
        logger.info(f"📤 [{token.request_id}] Stream complete after {event_count} events")
        yield DONE_FRAME
    except asyncio.CancelledError:
        token.cancel("client disconnected")
        raise
    except GeneratorExit:
        token.cancel("stream closed")
        raise
    finally:
        _submit_memory_job(services, identity, chat_request, token.request_id)


@chat_bp.route("/chat", methods=["POST"])
@rate_limit(RATE_LIMIT_STANDARD, timedelta(minutes=1), key_function=default_rate_limit_key)
@validate_json(ChatRequest)
async def chat() -> Response:
    """Stream a chat completion.

    Errors before the stream opens are JSON: 400 invalid body, 401 missing
    or invalid identity, 429 over quota.
    """
    request_id = get_request_id()
    chat_request: ChatRequest = request.validated_data

    identity = await resolve_identity()
    require_identity_or_guest(identity, chat_request.is_guest)
    quota = await check_chat_quota(authenticated=identity is not None)

    logger.info(
        f"💬 [{request_id}] Chat request: user={identity.id if identity else 'guest'}, "
        f"turns={len(chat_request.messages)}, attachments={len(chat_request.attachments)}, "
        f"tools={chat_request.use_tools}"
    )

    token = CancellationToken(request_id)
    services: ServiceContainer = current_app.services
    response = Response(
        _event_stream(services, chat_request, identity, token),
        mimetype=SSE_MIMETYPE,
        headers={**SSE_HEADERS, **quota.headers(), REQUEST_ID_HEADER: request_id},
    )
    response.timeout = None
    return response
