"""
Personal memory storage and recall.

Memories are short facts about a signed-in user (name, location,
occupation, preferences...). Recall ranks stored memories by overlap with
the current query, then by confidence, and renders the top ones as a
system-prompt block.
"""

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Set

from application.services.retrieval.models import ExtractedMemory, MemoryContext, MemoryRecord
from application.services.retrieval.supabase_rest import SupabaseRestClient
from common.constants import MEMORY_CONTEXT_LIMIT

logger = logging.getLogger(__name__)

MEMORY_TABLE = "user_memories"
RECALL_CANDIDATES = 50

MEMORY_HEADER_EN = (
    "## WHAT YOU KNOW ABOUT THIS USER\n"
    "Use these remembered facts to personalise your answer. "
    "Do not repeat them back unless relevant."
)
MEMORY_HEADER_RW = (
    "## IBYO UZI KURI UYU MUKORESHA\n"
    "Koresha aya makuru wibutse kugira ngo igisubizo kibe icye bwite. "
    "Ntuyasubiremo keretse bifite akamaro."
)

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def _words(text: str) -> Set[str]:
    return {word for word in _WORD_RE.findall(text.lower()) if len(word) > 2}


def rank_memories(
    memories: List[MemoryRecord], query: str, limit: int = MEMORY_CONTEXT_LIMIT
) -> List[MemoryRecord]:
    """Most query-relevant first, ties broken by confidence."""
    query_words = _words(query)
    return sorted(
        memories,
        key=lambda m: (len(query_words & _words(m.content)), m.confidence),
        reverse=True,
    )[:limit]


def format_memory_context(memories: List[MemoryRecord], language: str) -> str:
    if not memories:
        return ""
    header = MEMORY_HEADER_RW if language == "rw" else MEMORY_HEADER_EN
    lines = [f"- [{m.category}] {m.content}" for m in memories]
    return header + "\n" + "\n".join(lines)


class MemoryService:
    """Base class for memory backends."""

    async def list_memories(self, user_id: str) -> List[MemoryRecord]:
        raise NotImplementedError

    async def store(self, user_id: str, memories: List[ExtractedMemory]) -> int:
        """Persist new memories and return how many were stored."""
        raise NotImplementedError

    async def get_context(self, user_id: str, query: str, language: str = "en") -> MemoryContext:
        memories = await self.list_memories(user_id)
        selected = rank_memories(memories, query)
        return MemoryContext(
            context_text=format_memory_context(selected, language),
            count=len(selected),
        )

    @staticmethod
    def _novel(
        existing: List[MemoryRecord], memories: List[ExtractedMemory]
    ) -> List[ExtractedMemory]:
        seen = {m.content.strip().lower() for m in existing}
        novel = []
        for memory in memories:
            key = memory.content.strip().lower()
            if key not in seen:
                seen.add(key)
                novel.append(memory)
        return novel


class InMemoryMemoryService(MemoryService):
    """Process-local memory store."""

    def __init__(self):
        self._memories: Dict[str, List[MemoryRecord]] = {}
        self._lock = asyncio.Lock()

    async def list_memories(self, user_id: str) -> List[MemoryRecord]:
        return list(self._memories.get(user_id, []))

    async def store(self, user_id: str, memories: List[ExtractedMemory]) -> int:
        async with self._lock:
            existing = self._memories.setdefault(user_id, [])
            novel = self._novel(existing, memories)
            now = datetime.now(timezone.utc).isoformat()
            for memory in novel:
                existing.append(
                    MemoryRecord(
                        id=str(uuid.uuid4()),
                        content=memory.content,
                        memory_type=memory.type,
                        category=memory.category,
                        confidence=memory.confidence,
                        created_at=now,
                    )
                )
            return len(novel)


class SupabaseMemoryService(MemoryService):
    """Memories in the ``user_memories`` table."""

    def __init__(self, rest: SupabaseRestClient):
        self.rest = rest

    async def list_memories(self, user_id: str) -> List[MemoryRecord]:
        rows = await self.rest.select(
            MEMORY_TABLE,
            {
                "user_id": f"eq.{user_id}",
                "select": "id,content,memory_type,category,confidence,created_at",
                "order": "confidence.desc,created_at.desc",
                "limit": str(RECALL_CANDIDATES),
            },
        )
        return [
            MemoryRecord(
                id=row.get("id"),
                content=row.get("content") or "",
                memory_type=row.get("memory_type") or "fact",
                category=row.get("category") or "general",
                confidence=float(row.get("confidence") or 0.0),
                created_at=row.get("created_at"),
            )
            for row in rows
        ]

    async def store(self, user_id: str, memories: List[ExtractedMemory]) -> int:
        if not memories:
            return 0
        novel = self._novel(await self.list_memories(user_id), memories)
        if not novel:
            return 0
        await self.rest.insert(
            MEMORY_TABLE,
            [
                {
                    "user_id": user_id,
                    "content": memory.content,
                    "memory_type": memory.type,
                    "category": memory.category,
                    "confidence": memory.confidence,
                    "source": "conversation",
                }
                for memory in novel
            ],
        )
        return len(novel)
