"""
Knowledge search collaborators.

A search client returns the closest document chunks and curated Q&A pairs
for a query, each with a cosine-style similarity in [0, 1].
"""

import logging
import re
from typing import Iterable, List, Optional, Set

from application.services.openai_sdk_service import OpenAISDKService
from application.services.retrieval.models import KnowledgeChunk, KnowledgeQA, SearchResult
from application.services.retrieval.supabase_rest import SupabaseRestClient
from common.constants import KNOWLEDGE_MATCH_COUNT, MIN_INCLUDE_SIMILARITY

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+", re.UNICODE)


class KnowledgeSearchClient:
    """Base class for knowledge search backends."""

    async def search(
        self, query: str, language: str, match_count: int = KNOWLEDGE_MATCH_COUNT
    ) -> SearchResult:
        raise NotImplementedError


class SupabaseKnowledgeSearchClient(KnowledgeSearchClient):
    """Vector search through the ``match_knowledge_chunks`` and
    ``match_knowledge_qa`` database functions."""

    def __init__(
        self,
        rest: SupabaseRestClient,
        provider: OpenAISDKService,
        match_threshold: float = MIN_INCLUDE_SIMILARITY,
    ):
        self.rest = rest
        self.provider = provider
        self.match_threshold = match_threshold

    async def search(
        self, query: str, language: str, match_count: int = KNOWLEDGE_MATCH_COUNT
    ) -> SearchResult:
        embedding = await self.provider.create_embedding(query)
        params = {
            "query_embedding": embedding,
            "match_threshold": self.match_threshold,
            "match_count": match_count,
            "filter_language": language,
        }
        chunk_rows = await self.rest.rpc("match_knowledge_chunks", params)
        qa_rows = await self.rest.rpc("match_knowledge_qa", params)
        return SearchResult(
            chunks=[KnowledgeChunk.from_row(row) for row in chunk_rows],
            qa=[KnowledgeQA.from_row(row) for row in qa_rows],
        )


def _words(text: str) -> Set[str]:
    return {word for word in _WORD_RE.findall(text.lower()) if len(word) > 2}


def _overlap(query_words: Set[str], text: str) -> float:
    if not query_words:
        return 0.0
    return len(query_words & _words(text)) / len(query_words)


class InMemoryKnowledgeSearchClient(KnowledgeSearchClient):
    """Keyword-overlap search over a fixed set of entries.

    Used in development when no database is configured. Similarity is the
    share of query words found in the entry.
    """

    def __init__(
        self,
        chunks: Optional[Iterable[KnowledgeChunk]] = None,
        qa: Optional[Iterable[KnowledgeQA]] = None,
    ):
        self.chunks: List[KnowledgeChunk] = list(chunks or [])
        self.qa: List[KnowledgeQA] = list(qa or [])

    async def search(
        self, query: str, language: str, match_count: int = KNOWLEDGE_MATCH_COUNT
    ) -> SearchResult:
        query_words = _words(query)

        scored_chunks = [
            KnowledgeChunk(
                content=chunk.content,
                document_title=chunk.document_title,
                category=chunk.category,
                similarity=_overlap(query_words, f"{chunk.document_title} {chunk.content}"),
                source=chunk.source,
            )
            for chunk in self.chunks
        ]
        scored_qa = [
            KnowledgeQA(
                question=pair.question,
                answer=pair.answer,
                category=pair.category,
                similarity=_overlap(query_words, pair.question),
                source=pair.source,
            )
            for pair in self.qa
        ]

        scored_chunks.sort(key=lambda c: c.similarity, reverse=True)
        scored_qa.sort(key=lambda q: q.similarity, reverse=True)
        return SearchResult(chunks=scored_chunks[:match_count], qa=scored_qa[:match_count])
