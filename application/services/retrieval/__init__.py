"""Knowledge and personal-memory retrieval."""

from application.services.retrieval.context_augmenter import ContextAugmenter
from application.services.retrieval.knowledge_retriever import (
    KnowledgeRetriever,
    format_for_system_prompt,
    is_factual_query,
)
from application.services.retrieval.knowledge_search import (
    InMemoryKnowledgeSearchClient,
    KnowledgeSearchClient,
    SupabaseKnowledgeSearchClient,
)
from application.services.retrieval.memory_service import (
    InMemoryMemoryService,
    MemoryService,
    SupabaseMemoryService,
)
from application.services.retrieval.models import (
    AugmentedContext,
    ExtractedMemory,
    KnowledgeChunk,
    KnowledgeQA,
    MemoryContext,
    MemoryRecord,
    RetrievalResult,
    SearchResult,
)
from application.services.retrieval.supabase_rest import SupabaseRestClient, SupabaseRestError

__all__ = [
    "AugmentedContext",
    "ContextAugmenter",
    "ExtractedMemory",
    "InMemoryKnowledgeSearchClient",
    "InMemoryMemoryService",
    "KnowledgeChunk",
    "KnowledgeQA",
    "KnowledgeRetriever",
    "KnowledgeSearchClient",
    "MemoryContext",
    "MemoryRecord",
    "MemoryService",
    "RetrievalResult",
    "SearchResult",
    "SupabaseKnowledgeSearchClient",
    "SupabaseMemoryService",
    "SupabaseRestClient",
    "SupabaseRestError",
    "format_for_system_prompt",
    "is_factual_query",
]
