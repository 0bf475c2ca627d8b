"""Background extraction of durable facts about signed-in users."""

from application.services.memory.extractor import (
    MemoryExtractor,
    extract_by_patterns,
    might_contain_memory,
)
from application.services.memory.supervisor import MemoryExtractionSupervisor, MemoryJob
from application.services.memory.validation import validate_memories

__all__ = [
    "MemoryExtractionSupervisor",
    "MemoryExtractor",
    "MemoryJob",
    "extract_by_patterns",
    "might_contain_memory",
    "validate_memories",
]
