"""Tool registry: name to handler mapping and the catalog sent to the model."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from application.services.tools.base import ToolHandler

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of available tool handlers."""

    def __init__(self, handlers: Optional[Iterable[ToolHandler]] = None):
        self._handlers: Dict[str, ToolHandler] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: ToolHandler) -> None:
        """Register a handler under its name."""
        if not handler.name:
            raise ValueError(f"{type(handler).__name__} has no tool name")
        if handler.name in self._handlers:
            logger.warning(f"Tool '{handler.name}' already registered, overwriting")
        self._handlers[handler.name] = handler
        logger.debug(f"🔧 Registered tool: {handler.name}")

    def get(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def names(self) -> List[str]:
        return list(self._handlers)

    def catalog(self) -> List[Dict[str, Any]]:
        """OpenAI tool definitions for every registered handler."""
        return [handler.to_openai_tool() for handler in self._handlers.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
