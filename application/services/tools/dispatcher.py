"""Concurrent execution of a batch of tool calls."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from application.services.streaming.events import StreamEvent
from application.services.streaming.tool_call_accumulator import ToolCall
from application.services.tools.base import ToolResult
from application.services.tools.registry import ToolRegistry
from common.exception import ArgumentParseError, ToolExecutionError

logger = logging.getLogger(__name__)

EmitCallback = Callable[[StreamEvent], Awaitable[None]]


def parse_arguments(call: ToolCall) -> Dict[str, Any]:
    """Decode the raw argument text of a call.

    Raises:
        ArgumentParseError: If the text is not a JSON object
    """
    if not call.arguments or not call.arguments.strip():
        return {}
    try:
        parsed = json.loads(call.arguments)
    except ValueError as e:
        raise ArgumentParseError(call.name, call.arguments) from e
    if not isinstance(parsed, dict):
        raise ArgumentParseError(call.name, call.arguments)
    return parsed


class ToolDispatcher:
    """Runs every call of a batch concurrently and collects one result each.

    A failing call never affects the others: parse failures degrade to
    empty arguments and handler exceptions are folded into that call's
    result. Side-channel events are emitted as soon as their call succeeds.
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(
        self,
        calls: Sequence[ToolCall],
        emit: Optional[EmitCallback] = None,
        request_id: str = "",
    ) -> List[ToolResult]:
        """Execute ``calls`` and return results in call order."""
        if not calls:
            return []
        logger.info(
            f"🔧 [{request_id}] Dispatching {len(calls)} tool call(s): "
            f"{', '.join(c.name for c in calls)}"
        )
        results = await asyncio.gather(
            *(self._run_one(call, emit, request_id) for call in calls)
        )
        return list(results)

    async def _run_one(
        self,
        call: ToolCall,
        emit: Optional[EmitCallback],
        request_id: str,
    ) -> ToolResult:
        try:
            args = parse_arguments(call)
        except ArgumentParseError as e:
            logger.warning(
                f"⚠️ [{request_id}] {e.message}, using empty arguments: {e.raw_arguments[:200]!r}"
            )
            args = {}

        handler = self.registry.get(call.name)
        if handler is None:
            logger.warning(f"⚠️ [{request_id}] Unknown tool requested: {call.name}")
            result = ToolResult.failure(f"Unknown tool: {call.name}")
        else:
            result = await self._execute(handler, call, args, request_id)

        result.call_id = call.id

        if result.success and result.side_event is not None and emit is not None:
            await emit(result.side_event)

        return result

    async def _execute(self, handler, call: ToolCall, args: Dict[str, Any], request_id: str) -> ToolResult:
        try:
            result = await handler.execute(args)
        except ToolExecutionError as e:
            logger.error(f"❌ [{request_id}] Tool {call.name} failed: {e.message}")
            return ToolResult.failure(e.message)
        except Exception as e:
            logger.exception(f"❌ [{request_id}] Tool {call.name} raised: {e}")
            return ToolResult.failure(str(e) or "Tool execution failed")

        status = "✅" if result.success else "⚠️"
        logger.info(f"{status} [{request_id}] Tool {call.name} finished (success={result.success})")
        return result
