"""
Knowledge Retriever

Turns knowledge search hits into a confidence-rated context block for the
system prompt:

- ``high``: a curated Q&A answer matched closely
- ``medium``: some Q&A pair or document chunk is relevant
- ``none``: nothing relevant; factual questions fall back to web search

Parts are added in priority order (high Q&A, medium Q&A, chunks) until the
token budget is reached.
"""

import logging
import math
import re
from typing import List, Optional, Set, Tuple

from application.services.retrieval.knowledge_search import KnowledgeSearchClient
from application.services.retrieval.models import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    CONFIDENCE_NONE,
    FALLBACK_BASE_KNOWLEDGE,
    FALLBACK_WEB_SEARCH,
    KnowledgeChunk,
    KnowledgeQA,
    KnowledgeSource,
    RetrievalResult,
    SearchResult,
)
from common.constants import (
    HIGH_CONFIDENCE_THRESHOLD,
    KNOWLEDGE_MATCH_COUNT,
    MAX_CONTEXT_TOKENS,
    MIN_INCLUDE_SIMILARITY,
)

logger = logging.getLogger(__name__)

PART_SEPARATOR = "\n\n---\n\n"

KNOWLEDGE_HEADER_EN = (
    "## KNOWLEDGE BASE CONTEXT (PRIORITY: HIGH)\n"
    "The following information is from Bakame's verified knowledge base.\n"
    "ALWAYS use this information when answering related questions.\n"
    "If the user's question is covered by this context, base your answer on it.\n"
    "Do NOT contradict this information with your general knowledge."
)

KNOWLEDGE_HEADER_RW = (
    "## AMAKURU Y'UBUMENYI (PRIORITY: HEJURU)\n"
    "Amakuru akurikira aturuka mu bubiko bw'ubumenyi bwa Bakame bwemejwe.\n"
    "BURI GIHE koresha aya makuru igihe usubiza ibibazo bifitanye isano.\n"
    "Niba ikibazo cy'umukoresha cyasubijwe n'aya makuru, shingira igisubizo cyawe kuri yo.\n"
    "NTUKEMERE amakuru y'ibanze kugirango avuguruze aya makuru."
)

_LABELS = {
    "en": {"verified": "Verified Answer", "from": "From", "source": "Source"},
    "rw": {"verified": "Igisubizo Cyemejwe", "from": "Bivuye", "source": "Inkomoko"},
}

_FACTUAL_PATTERNS = [
    re.compile(r"\b(what|when|where|who|which|how much|how many)\b", re.IGNORECASE),
    re.compile(r"\b(price|cost|rate|fee|deadline|date)\b", re.IGNORECASE),
    re.compile(r"\b(news|latest|recent|current|today)\b", re.IGNORECASE),
    re.compile(r"\b(ni iki|ryari|he|nde|angahe)\b", re.IGNORECASE),
]


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters."""
    return math.ceil(len(text) / 4)


def is_factual_query(query: str) -> bool:
    """True for questions about facts that may be answered by a web search."""
    return any(pattern.search(query) for pattern in _FACTUAL_PATTERNS)


def determine_confidence(search: SearchResult) -> str:
    if any(qa.similarity >= HIGH_CONFIDENCE_THRESHOLD for qa in search.qa):
        return CONFIDENCE_HIGH
    scores = [qa.similarity for qa in search.qa] + [c.similarity for c in search.chunks]
    if any(score >= MIN_INCLUDE_SIMILARITY for score in scores):
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_NONE


def determine_fallback(confidence: str, query: str) -> Optional[str]:
    if confidence == CONFIDENCE_NONE:
        return FALLBACK_WEB_SEARCH if is_factual_query(query) else FALLBACK_BASE_KNOWLEDGE
    if confidence == CONFIDENCE_LOW:
        return FALLBACK_BASE_KNOWLEDGE
    return None


def _format_qa(qa: KnowledgeQA, labels) -> str:
    text = f"**{labels['verified']}** [{qa.category}]\nQ: {qa.question}\nA: {qa.answer}"
    if qa.source:
        text += f"\n({labels['source']}: {qa.source})"
    return text


def _format_chunk(chunk: KnowledgeChunk, labels) -> str:
    text = f"**{labels['from']}: {chunk.document_title}** [{chunk.category}]\n{chunk.content}"
    if chunk.source:
        text += f"\n({labels['source']}: {chunk.source})"
    return text


def build_context(
    search: SearchResult, language: str, max_tokens: int = MAX_CONTEXT_TOKENS
) -> Tuple[str, List[KnowledgeSource]]:
    """Assemble the prioritised context block and its de-duplicated sources."""
    labels = _LABELS.get(language, _LABELS["en"])

    high_qa = [qa for qa in search.qa if qa.similarity >= HIGH_CONFIDENCE_THRESHOLD]
    medium_qa = [
        qa
        for qa in search.qa
        if MIN_INCLUDE_SIMILARITY <= qa.similarity < HIGH_CONFIDENCE_THRESHOLD
    ]
    chunks = [c for c in search.chunks if c.similarity >= MIN_INCLUDE_SIMILARITY]

    candidates = []
    for qa in high_qa + medium_qa:
        source = (
            KnowledgeSource(title=qa.question, source=qa.source, category=qa.category)
            if qa.source
            else None
        )
        candidates.append((_format_qa(qa, labels), source))
    for chunk in chunks:
        source = KnowledgeSource(
            title=chunk.document_title, source=chunk.source, category=chunk.category
        )
        candidates.append((_format_chunk(chunk, labels), source))

    parts: List[str] = []
    sources: List[KnowledgeSource] = []
    seen: Set[str] = set()
    used_tokens = 0

    for text, source in candidates:
        # Every part after the first also pays for its separator
        cost = estimate_tokens(PART_SEPARATOR + text if parts else text)
        if used_tokens + cost > max_tokens:
            break
        parts.append(text)
        used_tokens += cost

        if source is not None:
            key = f"{source.title}-{source.category}"
            if key not in seen:
                seen.add(key)
                sources.append(source)

    return PART_SEPARATOR.join(parts), sources


def format_for_system_prompt(result: RetrievalResult, language: str) -> str:
    """Knowledge block with its instruction header, or "" when nothing matched."""
    if not result.has_knowledge:
        return ""
    header = KNOWLEDGE_HEADER_RW if language == "rw" else KNOWLEDGE_HEADER_EN
    return f"{header}\n\n{result.context_text}"


class KnowledgeRetriever:
    """Confidence-rated knowledge lookup."""

    def __init__(
        self,
        search_client: KnowledgeSearchClient,
        match_count: int = KNOWLEDGE_MATCH_COUNT,
        max_tokens: int = MAX_CONTEXT_TOKENS,
    ):
        self.search_client = search_client
        self.match_count = match_count
        self.max_tokens = max_tokens

    async def retrieve(self, query: str, language: str = "en") -> RetrievalResult:
        search = await self.search_client.search(query, language, self.match_count)
        confidence = determine_confidence(search)
        fallback = determine_fallback(confidence, query)

        if confidence == CONFIDENCE_NONE:
            logger.info(f"📚 No relevant knowledge (fallback: {fallback})")
            return RetrievalResult(confidence=confidence, fallback=fallback)

        context_text, sources = build_context(search, language, self.max_tokens)
        logger.info(
            f"📚 Knowledge retrieved: confidence={confidence}, "
            f"{len(sources)} sources, ~{estimate_tokens(context_text)} tokens"
        )
        return RetrievalResult(
            context_text=context_text,
            confidence=confidence,
            sources=sources,
            fallback=fallback,
        )
