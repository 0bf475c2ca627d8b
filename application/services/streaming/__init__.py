"""Streaming primitives for chat completions delivered via SSE."""

from application.services.streaming.cancellation import CancellationToken
from application.services.streaming.completion_driver import CompletionStreamDriver
from application.services.streaming.events import DONE_FRAME, StreamEvent
from application.services.streaming.tool_call_accumulator import (
    ToolCall,
    ToolCallAccumulator,
    ToolCallFragment,
)

__all__ = [
    "CancellationToken",
    "CompletionStreamDriver",
    "DONE_FRAME",
    "StreamEvent",
    "ToolCall",
    "ToolCallAccumulator",
    "ToolCallFragment",
]
