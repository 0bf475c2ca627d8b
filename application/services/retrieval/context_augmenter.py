"""Runs knowledge and memory retrieval side by side for one chat turn."""

import asyncio
import logging
from typing import Optional

from application.services.retrieval.knowledge_retriever import KnowledgeRetriever
from application.services.retrieval.memory_service import MemoryService
from application.services.retrieval.models import AugmentedContext, MemoryContext, RetrievalResult
from common.utils.jwt_utils import Identity

logger = logging.getLogger(__name__)


class ContextAugmenter:
    """Fetches knowledge and personal memory for the system prompt.

    A failure in either retrieval is logged and treated as empty so the chat
    turn always proceeds.
    """

    def __init__(self, retriever: KnowledgeRetriever, memory_service: MemoryService):
        self.retriever = retriever
        self.memory_service = memory_service

    async def _knowledge(self, query: str, language: str) -> RetrievalResult:
        try:
            return await self.retriever.retrieve(query, language)
        except Exception as e:
            logger.warning(f"⚠️ Knowledge retrieval failed, continuing without it: {e}")
            return RetrievalResult.empty()

    async def _memory(
        self, query: str, identity: Optional[Identity], language: str
    ) -> MemoryContext:
        if identity is None:
            return MemoryContext.empty()
        try:
            return await self.memory_service.get_context(identity.id, query, language)
        except Exception as e:
            logger.warning(f"⚠️ Memory retrieval failed for user {identity.id}: {e}")
            return MemoryContext.empty()

    async def augment(
        self, query: str, identity: Optional[Identity], language: str = "en"
    ) -> AugmentedContext:
        if not query.strip():
            return AugmentedContext()
        knowledge, memory = await asyncio.gather(
            self._knowledge(query, language),
            self._memory(query, identity, language),
        )
        return AugmentedContext(knowledge=knowledge, memory=memory)
