"""Data types shared by knowledge and memory retrieval."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CONFIDENCE_NONE = "none"
CONFIDENCE_LOW = "low"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_HIGH = "high"

FALLBACK_WEB_SEARCH = "web_search"
FALLBACK_BASE_KNOWLEDGE = "use_base_knowledge"


@dataclass
class KnowledgeChunk:
    """Passage from an ingested document."""

    content: str
    document_title: str
    category: str
    similarity: float
    source: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "KnowledgeChunk":
        return cls(
            content=row.get("content") or "",
            document_title=row.get("document_title") or row.get("title") or "",
            category=row.get("category") or "general",
            similarity=float(row.get("similarity") or 0.0),
            source=row.get("source"),
        )


@dataclass
class KnowledgeQA:
    """Curated question/answer pair."""

    question: str
    answer: str
    category: str
    similarity: float
    source: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "KnowledgeQA":
        return cls(
            question=row.get("question") or "",
            answer=row.get("answer") or "",
            category=row.get("category") or "general",
            similarity=float(row.get("similarity") or 0.0),
            source=row.get("source"),
        )


@dataclass
class SearchResult:
    chunks: List[KnowledgeChunk] = field(default_factory=list)
    qa: List[KnowledgeQA] = field(default_factory=list)


@dataclass
class KnowledgeSource:
    title: str
    source: Optional[str]
    category: str


@dataclass
class RetrievalResult:
    """Knowledge context for one query."""

    context_text: str = ""
    confidence: str = CONFIDENCE_NONE
    sources: List[KnowledgeSource] = field(default_factory=list)
    fallback: Optional[str] = None

    @property
    def has_knowledge(self) -> bool:
        return self.confidence != CONFIDENCE_NONE and bool(self.context_text)

    @classmethod
    def empty(cls) -> "RetrievalResult":
        return cls()


@dataclass
class MemoryRecord:
    """A stored fact about a user."""

    content: str
    memory_type: str
    category: str = "general"
    confidence: float = 0.7
    id: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class MemoryContext:
    context_text: str = ""
    count: int = 0

    @classmethod
    def empty(cls) -> "MemoryContext":
        return cls()


@dataclass
class AugmentedContext:
    """Everything the augmenter adds to the system prompt."""

    knowledge: RetrievalResult = field(default_factory=RetrievalResult.empty)
    memory: MemoryContext = field(default_factory=MemoryContext.empty)


@dataclass
class ExtractedMemory:
    """A memory candidate produced by the extractor."""

    content: str
    type: str
    category: str = "general"
    confidence: float = 0.7
    reasoning: str = "Extracted from conversation"
