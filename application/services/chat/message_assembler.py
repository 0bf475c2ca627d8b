"""
Message Assembler

Builds the provider-ready message list for one chat turn:

1. One system message: identity prompt (with specialist overlay and user
   preferences), then knowledge context, memory context and the caller's
   location, each separated by a blank line
2. The conversation history, in order; the latest user turn is expanded
   into content parts when attachments are present
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from application.models.request_models import Attachment, ChatRequest, ChatTurn, UserLocation
from application.services.prompts import build_system_prompt, sanitize_user_settings
from application.services.retrieval.knowledge_retriever import format_for_system_prompt
from application.services.retrieval.models import AugmentedContext

logger = logging.getLogger(__name__)


def format_location(location: Optional[UserLocation]) -> str:
    if location is None:
        return ""
    place = f"{location.city} " if location.city else ""
    return (
        f"USER LOCATION: {place}(latitude {location.latitude:.4f}, "
        f"longitude {location.longitude:.4f}). "
        "Use this when the user asks about nearby places, weather or directions."
    )


def build_attachment_parts(text: str, attachments: Sequence[Attachment]) -> List[Dict[str, Any]]:
    """Text part first, then one part per image and document."""
    parts: List[Dict[str, Any]] = [{"type": "text", "text": text}]
    for attachment in attachments:
        if attachment.type == "image" and attachment.url:
            parts.append({"type": "image_url", "image_url": {"url": attachment.url}})
        elif attachment.type == "document" and attachment.extracted_text:
            name = attachment.name or "document"
            parts.append(
                {"type": "text", "text": f"[Document: {name}]\n{attachment.extracted_text}"}
            )
    return parts


def _latest_user_index(turns: Sequence[ChatTurn]) -> int:
    for index in range(len(turns) - 1, -1, -1):
        if turns[index].role == "user":
            return index
    return -1


class MessageAssembler:
    """Merges prompt, augmented context and history into provider messages."""

    def build_system_message(self, request: ChatRequest, context: AugmentedContext) -> str:
        sections = [
            build_system_prompt(
                specialist_id=request.specialist_id,
                user_settings=sanitize_user_settings(request.user_settings),
            ),
            format_for_system_prompt(context.knowledge, request.ui_language),
            context.memory.context_text,
            format_location(request.user_location),
        ]
        return "\n\n".join(section for section in sections if section)

    def assemble(self, request: ChatRequest, context: AugmentedContext) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self.build_system_message(request, context)}
        ]

        latest_user = _latest_user_index(request.messages) if request.attachments else -1
        for index, turn in enumerate(request.messages):
            if index == latest_user:
                messages.append(
                    {
                        "role": "user",
                        "content": build_attachment_parts(turn.content, request.attachments),
                    }
                )
            else:
                messages.append({"role": turn.role, "content": turn.content})

        if latest_user >= 0:
            logger.info(f"📎 Expanded latest user turn with {len(request.attachments)} attachments")
        return messages
