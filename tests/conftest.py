"""Pytest configuration for tests.

Sets up Python path and fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path so imports work correctly
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from application.services.retrieval import (  # noqa: E402
    ContextAugmenter,
    InMemoryKnowledgeSearchClient,
    InMemoryMemoryService,
    KnowledgeRetriever,
)
from application.services.streaming import CancellationToken  # noqa: E402


@pytest.fixture
def token():
    """Fresh cancellation token for one request."""
    return CancellationToken("req-test")


@pytest.fixture
def memory_service():
    """Empty in-process memory store."""
    return InMemoryMemoryService()


@pytest.fixture
def augmenter(memory_service):
    """Augmenter over an empty knowledge base."""
    return ContextAugmenter(KnowledgeRetriever(InMemoryKnowledgeSearchClient()), memory_service)
