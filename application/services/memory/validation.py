"""Validation of memory candidates before they are stored."""

import logging
from typing import Any, Iterable, List, Mapping

from application.services.retrieval.models import ExtractedMemory
from common.constants import (
    MEMORY_DEFAULT_CONFIDENCE,
    MEMORY_MAX_LENGTH,
    MEMORY_MIN_LENGTH,
    MEMORY_TYPES,
)

logger = logging.getLogger(__name__)


def _confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return MEMORY_DEFAULT_CONFIDENCE
    if value < 0 or value > 1:
        return MEMORY_DEFAULT_CONFIDENCE
    return float(value)


def validate_memories(raw: Iterable[Mapping[str, Any]]) -> List[ExtractedMemory]:
    """Drop malformed candidates and normalise the rest.

    Content must be a string of 5-500 characters once trimmed and ``type``
    one of the memory kinds. A missing or out-of-range confidence becomes the default.
    """
    candidates = list(raw or [])
    valid: List[ExtractedMemory] = []
    for candidate in candidates:
        if not isinstance(candidate, Mapping):
            continue
        content = candidate.get("content")
        if not isinstance(content, str):
            continue
        content = content.strip()
        if len(content) < MEMORY_MIN_LENGTH or len(content) > MEMORY_MAX_LENGTH:
            continue
        if candidate.get("type") not in MEMORY_TYPES:
            continue

        valid.append(
            ExtractedMemory(
                content=content,
                type=candidate["type"],
                category=candidate.get("category") or "general",
                confidence=_confidence(candidate.get("confidence")),
                reasoning=candidate.get("reasoning") or "Extracted from conversation",
            )
        )

    dropped = len(candidates) - len(valid)
    if dropped:
        logger.debug(f"Dropped {dropped} invalid memory candidates")
    return valid
