"""Completion stream drivers (first pass with tools, second pass with results)."""

import json
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

from application.services.openai_sdk_service import OpenAISDKService
from application.services.streaming.cancellation import CancellationToken
from application.services.streaming.constants import (
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
)
from application.services.streaming.events import StreamEvent
from application.services.streaming.tool_call_accumulator import (
    ToolCall,
    ToolCallAccumulator,
)

logger = logging.getLogger(__name__)


def build_tool_followup_messages(
    messages: List[Dict[str, Any]],
    tool_calls: Sequence[ToolCall],
    tool_results: Sequence[Any],
) -> List[Dict[str, Any]]:
    """Append the assistant tool-call turn and one tool message per call.

    Args:
        messages: Messages sent on the first pass
        tool_calls: Finalized calls, in the order the model issued them
        tool_results: ToolResult per call, same order

    Returns:
        New message list for the second pass
    """
    followup = list(messages)
    followup.append(
        {
            "role": "assistant",
            "content": None,
            "tool_calls": [call.to_message_dict() for call in tool_calls],
        }
    )
    for call, result in zip(tool_calls, tool_results):
        followup.append(
            {
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(result.to_payload(), ensure_ascii=False, default=str),
            }
        )
    return followup


class CompletionStreamDriver:
    """Drives one provider stream and converts it to StreamEvents.

    Chunks are read by a single consumer, strictly in order. Content deltas
    are yielded as soon as they arrive. Tool-call deltas are fed to the
    caller-supplied accumulator.
    """

    def __init__(self, provider: OpenAISDKService):
        self.provider = provider

    async def stream_pass(
        self,
        messages: List[Dict[str, Any]],
        token: CancellationToken,
        tools: Optional[List[Dict[str, Any]]] = None,
        accumulator: Optional[ToolCallAccumulator] = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream one completion pass.

        Raises:
            StreamInterrupted: When the token is cancelled mid-stream
            UpstreamProviderError: When the provider call cannot be opened
        """
        token.raise_if_cancelled()

        stream = await self.provider.open_chat_stream(
            messages,
            tools=tools,
            temperature=COMPLETION_TEMPERATURE,
            max_tokens=COMPLETION_MAX_TOKENS,
        )

        chunk_count = 0
        async with stream:
            async for chunk in stream:
                token.raise_if_cancelled()
                chunk_count += 1

                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is None:
                    continue

                if delta.content:
                    yield StreamEvent.content(delta.content)

                if delta.tool_calls:
                    if accumulator is None:
                        logger.warning("Tool call delta received on a pass without tools, ignoring")
                        continue
                    for delta_tool_call in delta.tool_calls:
                        accumulator.add_tool_call_delta(delta_tool_call)

        logger.debug(f"[{token.request_id}] Stream pass finished after {chunk_count} chunks")

    async def stream_first_pass(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]],
        token: CancellationToken,
        accumulator: ToolCallAccumulator,
    ) -> AsyncGenerator[StreamEvent, None]:
        """First pass: tools enabled (when given), deltas accumulated.

        The caller reads ``accumulator.finish()`` once this generator is
        exhausted.
        """
        async for event in self.stream_pass(messages, token, tools=tools, accumulator=accumulator):
            yield event

    async def stream_second_pass(
        self,
        messages: List[Dict[str, Any]],
        tool_calls: Sequence[ToolCall],
        tool_results: Sequence[Any],
        token: CancellationToken,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Second pass: tool results appended, tools disabled."""
        followup = build_tool_followup_messages(messages, tool_calls, tool_results)
        logger.info(
            f"🔁 [{token.request_id}] Second pass with {len(tool_calls)} tool result(s)"
        )
        async for event in self.stream_pass(followup, token, tools=None):
            yield event
