"""
Tool dispatch engine.

Handlers are registered by name; the dispatcher runs a batch of model tool
calls concurrently and the registry provides the catalog sent to the model.
"""

import httpx

from application.services.openai_sdk_service import OpenAISDKService
from application.services.tools.base import ToolHandler, ToolResult
from application.services.tools.cache import InMemoryToolCache, RedisToolCache, ToolCache
from application.services.tools.dispatcher import ToolDispatcher
from application.services.tools.handlers import (
    CalculatorTool,
    CodeExecutionTool,
    CurrencyTool,
    CurrentTimeTool,
    ImageGenerationTool,
    NewsTool,
    PlacesTool,
    TranslateTool,
    VideoGenerationTool,
    WeatherTool,
    WebSearchTool,
    build_workflow_tools,
)
from application.services.tools.registry import ToolRegistry
from application.services.workflows.client import WorkflowClient
from common.config import config


def build_default_registry(
    http_client: httpx.AsyncClient,
    cache: ToolCache,
    provider: OpenAISDKService,
    workflow_client: WorkflowClient,
) -> ToolRegistry:
    """Registry with every built-in tool, wired to shared collaborators."""
    registry = ToolRegistry(
        [
            WeatherTool(http_client, cache, api_key=config.OPENWEATHER_API_KEY),
            CalculatorTool(),
            CurrencyTool(http_client, cache, api_key=config.EXCHANGE_RATE_API_KEY),
            WebSearchTool(http_client, cache, api_key=config.SERPAPI_API_KEY),
            TranslateTool(http_client, cache, api_key=config.GOOGLE_TRANSLATE_API_KEY),
            CurrentTimeTool(),
            NewsTool(http_client, cache, api_key=config.NEWS_API_KEY),
            PlacesTool(http_client, cache),
            ImageGenerationTool(provider),
            VideoGenerationTool(http_client),
            CodeExecutionTool(http_client),
        ]
    )
    for tool in build_workflow_tools(workflow_client):
        registry.register(tool)
    return registry


__all__ = [
    "InMemoryToolCache",
    "RedisToolCache",
    "ToolCache",
    "ToolDispatcher",
    "ToolHandler",
    "ToolRegistry",
    "ToolResult",
    "build_default_registry",
]
