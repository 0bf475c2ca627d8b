"""
Unit tests for memory storage, recall and context augmentation.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from application.services.retrieval import (
    ContextAugmenter,
    ExtractedMemory,
    MemoryContext,
    MemoryRecord,
    RetrievalResult,
    SupabaseMemoryService,
    SupabaseRestClient,
    SupabaseRestError,
)
from application.services.retrieval.memory_service import (
    MEMORY_HEADER_EN,
    MEMORY_HEADER_RW,
    format_memory_context,
    rank_memories,
)
from common.utils.jwt_utils import Identity


class TestRankAndFormat:
    """Test recall ranking and rendering."""

    def test_query_overlap_first(self):
        """Test relevant memories outrank more confident ones."""
        memories = [
            MemoryRecord("User's name is Alice", "fact", "personal", 0.9),
            MemoryRecord("User grows coffee", "fact", "business", 0.5),
        ]

        ranked = rank_memories(memories, "coffee prices")

        assert ranked[0].content == "User grows coffee"

    def test_confidence_breaks_ties(self):
        """Test confidence orders equally relevant memories."""
        memories = [
            MemoryRecord("User likes tea", "preference", "preferences", 0.6),
            MemoryRecord("User lives in Huye", "fact", "personal", 0.85),
        ]

        assert [m.confidence for m in rank_memories(memories, "hello", limit=1)] == [0.85]

    def test_format(self):
        """Test header plus one line per memory."""
        text = format_memory_context([MemoryRecord("User likes tea", "preference", "preferences")], "en")

        assert text == f"{MEMORY_HEADER_EN}\n- [preferences] User likes tea"
        assert format_memory_context([MemoryRecord("x y z", "fact")], "rw").startswith(MEMORY_HEADER_RW)
        assert format_memory_context([], "en") == ""


class TestInMemoryMemoryService:
    """Test the process-local store."""

    @pytest.mark.asyncio
    async def test_store_deduplicates(self, memory_service):
        """Test duplicates, ignoring case, are stored once."""
        first = await memory_service.store(
            "user-1",
            [ExtractedMemory("User likes tea", "preference"), ExtractedMemory("user likes TEA ", "preference")],
        )
        second = await memory_service.store("user-1", [ExtractedMemory("User likes tea", "preference")])

        assert (first, second) == (1, 0)
        assert len(await memory_service.list_memories("user-1")) == 1
        assert await memory_service.list_memories("user-2") == []

    @pytest.mark.asyncio
    async def test_get_context(self, memory_service):
        """Test context rendering for a user."""
        await memory_service.store("user-1", [ExtractedMemory("User grows coffee", "fact", "business")])

        context = await memory_service.get_context("user-1", "coffee", "en")

        assert context.count == 1
        assert "- [business] User grows coffee" in context.context_text


def supabase_client(handler) -> SupabaseRestClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseRestClient(http_client, url="https://db.test/", service_key="service-key")


class TestSupabaseMemoryService:
    """Test the PostgREST-backed store."""

    @pytest.mark.asyncio
    async def test_list_memories(self):
        """Test the select query and row mapping."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(
                200,
                json=[{"id": "m1", "content": "User grows coffee", "memory_type": "fact", "category": "business", "confidence": 0.8}],
            )

        memories = await SupabaseMemoryService(supabase_client(handler)).list_memories("user-1")

        request = seen["request"]
        assert request.url.path == "/rest/v1/user_memories"
        assert request.url.params["user_id"] == "eq.user-1"
        assert request.url.params["order"] == "confidence.desc,created_at.desc"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert memories == [MemoryRecord("User grows coffee", "fact", "business", 0.8, id="m1")]

    @pytest.mark.asyncio
    async def test_store_inserts_novel_rows(self):
        """Test only unseen memories are inserted."""
        inserted = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=[{"content": "User likes tea", "memory_type": "preference"}])
            inserted["rows"] = json.loads(request.content)
            inserted["prefer"] = request.headers.get("Prefer")
            return httpx.Response(201)

        stored = await SupabaseMemoryService(supabase_client(handler)).store(
            "user-1",
            [ExtractedMemory("User likes tea", "preference"), ExtractedMemory("User lives in Huye", "fact", "personal", 0.85)],
        )

        assert stored == 1
        assert inserted["prefer"] == "return=minimal"
        assert inserted["rows"] == [
            {
                "user_id": "user-1",
                "content": "User lives in Huye",
                "memory_type": "fact",
                "category": "personal",
                "confidence": 0.85,
                "source": "conversation",
            }
        ]

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        """Test a PostgREST error surfaces as SupabaseRestError."""
        service = SupabaseMemoryService(supabase_client(lambda request: httpx.Response(401, text="bad key")))

        with pytest.raises(SupabaseRestError) as exc:
            await service.list_memories("user-1")
        assert exc.value.status_code == 401


class TestContextAugmenter:
    """Test parallel knowledge and memory retrieval."""

    @pytest.mark.asyncio
    async def test_both_sources(self):
        """Test both results are combined."""
        retriever = MagicMock()
        retriever.retrieve = AsyncMock(return_value=RetrievalResult("ctx", "high"))
        memory = MagicMock()
        memory.get_context = AsyncMock(return_value=MemoryContext("mem", 1))

        context = await ContextAugmenter(retriever, memory).augment("vat", Identity("user-1"), "rw")

        assert context.knowledge.context_text == "ctx"
        assert context.memory.context_text == "mem"
        retriever.retrieve.assert_awaited_once_with("vat", "rw")
        memory.get_context.assert_awaited_once_with("user-1", "vat", "rw")

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        """Test a failing knowledge lookup leaves memory intact."""
        retriever = MagicMock()
        retriever.retrieve = AsyncMock(side_effect=RuntimeError("db down"))
        memory = MagicMock()
        memory.get_context = AsyncMock(return_value=MemoryContext("mem", 1))

        context = await ContextAugmenter(retriever, memory).augment("vat", Identity("user-1"))

        assert context.knowledge == RetrievalResult()
        assert context.memory.context_text == "mem"

    @pytest.mark.asyncio
    async def test_guest_has_no_memory(self):
        """Test memory is skipped without an identity."""
        retriever = MagicMock()
        retriever.retrieve = AsyncMock(return_value=RetrievalResult())
        memory = MagicMock()
        memory.get_context = AsyncMock()

        context = await ContextAugmenter(retriever, memory).augment("vat", None)

        assert context.memory == MemoryContext()
        memory.get_context.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_query(self):
        """Test a blank query skips retrieval."""
        retriever = MagicMock()
        retriever.retrieve = AsyncMock()

        await ContextAugmenter(retriever, MagicMock()).augment("  ", Identity("user-1"))

        retriever.retrieve.assert_not_called()
