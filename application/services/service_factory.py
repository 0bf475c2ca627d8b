"""
Service container built once at application startup.

Every collaborator of the chat stream is constructed here and injected;
routes read them from ``current_app.services``. Optional integrations
(Redis, Supabase) fall back to in-process implementations when they are
not configured.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import httpx

from application.services.chat.message_assembler import MessageAssembler
from application.services.chat.stream_service import ChatStreamService
from application.services.gate import (
    InMemoryRateLimitStore,
    RateLimitService,
    RateLimitStore,
    RedisRateLimitStore,
)
from application.services.memory import MemoryExtractionSupervisor, MemoryExtractor
from application.services.openai_sdk_service import OpenAISDKService
from application.services.retrieval import (
    ContextAugmenter,
    InMemoryKnowledgeSearchClient,
    InMemoryMemoryService,
    KnowledgeRetriever,
    KnowledgeSearchClient,
    MemoryService,
    SupabaseKnowledgeSearchClient,
    SupabaseMemoryService,
    SupabaseRestClient,
)
from application.services.streaming.completion_driver import CompletionStreamDriver
from application.services.tools import (
    InMemoryToolCache,
    RedisToolCache,
    ToolCache,
    ToolDispatcher,
    ToolRegistry,
    build_default_registry,
)
from application.services.workflows import WorkflowClient, WorkflowMatcher
from common.config import config

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by every request."""

    http_client: httpx.AsyncClient
    provider: OpenAISDKService
    tool_cache: ToolCache
    rate_limit_store: RateLimitStore
    rate_limiter: RateLimitService
    registry: ToolRegistry
    dispatcher: ToolDispatcher
    workflow_client: WorkflowClient
    memory_service: MemoryService
    memory_supervisor: MemoryExtractionSupervisor
    chat_stream: ChatStreamService

    @classmethod
    def build(cls) -> "ServiceContainer":
        """Construct every service from the process configuration."""
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=10.0),
            follow_redirects=True,
        )
        provider = OpenAISDKService()

        if config.REDIS_URL:
            tool_cache: ToolCache = RedisToolCache.from_url(config.REDIS_URL)
            rate_limit_store: RateLimitStore = RedisRateLimitStore.from_url(config.REDIS_URL)
            logger.info("✅ Using Redis for rate limits and tool cache")
        else:
            tool_cache = InMemoryToolCache()
            rate_limit_store = InMemoryRateLimitStore()
            logger.info("🔧 REDIS_URL not set, using in-process rate limits and tool cache")

        rest = SupabaseRestClient(http_client)
        if rest.is_configured():
            search_client: KnowledgeSearchClient = SupabaseKnowledgeSearchClient(rest, provider)
            memory_service: MemoryService = SupabaseMemoryService(rest)
            logger.info("✅ Using Supabase for knowledge search and memories")
        else:
            search_client = InMemoryKnowledgeSearchClient()
            memory_service = InMemoryMemoryService()
            logger.info("🔧 Supabase not configured, using in-process knowledge and memories")

        workflow_client = WorkflowClient(http_client)
        registry = build_default_registry(http_client, tool_cache, provider, workflow_client)
        dispatcher = ToolDispatcher(registry)
        augmenter = ContextAugmenter(KnowledgeRetriever(search_client), memory_service)

        chat_stream = ChatStreamService(
            driver=CompletionStreamDriver(provider),
            registry=registry,
            dispatcher=dispatcher,
            augmenter=augmenter,
            assembler=MessageAssembler(),
            workflow_client=workflow_client,
            matcher=WorkflowMatcher(),
        )

        logger.info(f"✅ Services ready: {len(registry)} tools registered")
        return cls(
            http_client=http_client,
            provider=provider,
            tool_cache=tool_cache,
            rate_limit_store=rate_limit_store,
            rate_limiter=RateLimitService(rate_limit_store),
            registry=registry,
            dispatcher=dispatcher,
            workflow_client=workflow_client,
            memory_service=memory_service,
            memory_supervisor=MemoryExtractionSupervisor(
                MemoryExtractor(provider), memory_service
            ),
            chat_stream=chat_stream,
        )

    def integrations(self) -> Dict[str, bool]:
        """Which optional integrations are configured."""
        return {
            "provider": self.provider.is_configured(),
            "redis": bool(config.REDIS_URL),
            "supabase": bool(config.SUPABASE_URL and config.SUPABASE_SERVICE_ROLE_KEY),
            "workflows": bool(config.N8N_WEBHOOK_URL),
            "video": bool(config.KLING_ACCESS_KEY and config.KLING_SECRET_KEY),
        }

    async def start(self) -> None:
        self.memory_supervisor.start()

    async def close(self) -> None:
        """Stop background work, then release connections."""
        await self.memory_supervisor.stop()
        await self.tool_cache.close()
        await self.rate_limit_store.close()
        await self.provider.close()
        await self.http_client.aclose()
        logger.info("🔧 Services closed")
