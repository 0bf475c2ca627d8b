"""
Chat Stream Service

Control flow for one streamed chat turn:

1. Optional workflow pre-routing: a confident knowledge-workflow match is
   answered by the workflow engine and replayed as content
2. Context augmentation (knowledge + memory) and message assembly
3. First completion pass with the tool catalog
4. If the model asked for tools: one ``toolCall`` indicator per call, the
   batch dispatched concurrently (side-channel events forwarded as they
   happen), then a second pass with the results and tools disabled

The service yields StreamEvents only; the route turns them into SSE frames
and always closes the stream with ``[DONE]``.
"""

import asyncio
import logging
from typing import AsyncGenerator, List, Optional

from application.models.request_models import ChatRequest
from application.services.chat.message_assembler import MessageAssembler
from application.services.retrieval.context_augmenter import ContextAugmenter
from application.services.streaming.cancellation import CancellationToken
from application.services.streaming.completion_driver import CompletionStreamDriver
from application.services.streaming.constants import (
    MAX_TOOL_CALLS_PER_STREAM,
    STREAM_ERROR_MESSAGE,
    WORKFLOW_REPLAY_DELAY_SECONDS,
)
from application.services.streaming.events import StreamEvent
from application.services.streaming.tool_call_accumulator import ToolCall, ToolCallAccumulator
from application.services.tools.base import ToolResult
from application.services.tools.dispatcher import ToolDispatcher
from application.services.tools.registry import ToolRegistry
from application.services.workflows.client import WorkflowClient, format_workflow_response
from application.services.workflows.matcher import WorkflowMatcher
from common.config import config
from common.exception import ChatOrchestratorError, StreamInterrupted, UpstreamProviderError
from common.utils.jwt_utils import Identity

logger = logging.getLogger(__name__)


class ChatStreamService:
    """Orchestrates augmentation, both completion passes and tool dispatch."""

    def __init__(
        self,
        driver: CompletionStreamDriver,
        registry: ToolRegistry,
        dispatcher: ToolDispatcher,
        augmenter: ContextAugmenter,
        assembler: Optional[MessageAssembler] = None,
        workflow_client: Optional[WorkflowClient] = None,
        matcher: Optional[WorkflowMatcher] = None,
        workflow_routing: Optional[bool] = None,
        replay_delay: float = WORKFLOW_REPLAY_DELAY_SECONDS,
    ):
        self.driver = driver
        self.registry = registry
        self.dispatcher = dispatcher
        self.augmenter = augmenter
        self.assembler = assembler or MessageAssembler()
        self.workflow_client = workflow_client
        self.matcher = matcher or WorkflowMatcher()
        self.workflow_routing = (
            config.ENABLE_WORKFLOW_ROUTING if workflow_routing is None else workflow_routing
        )
        self.replay_delay = replay_delay

    async def stream(
        self,
        request: ChatRequest,
        identity: Optional[Identity],
        token: CancellationToken,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream events for one chat turn.

        Cancellation ends the stream quietly. Any other failure is logged
        and reported to the client as a single ``error`` event.
        """
        try:
            async for event in self._run(request, identity, token):
                yield event
        except StreamInterrupted as e:
            logger.info(f"🛑 [{token.request_id}] Stream interrupted: {e.message}")
        except UpstreamProviderError as e:
            logger.error(
                f"❌ [{token.request_id}] Provider error ({e.upstream_status}): {e.detail}"
            )
            yield StreamEvent.error(e.message)
        except ChatOrchestratorError as e:
            logger.error(f"❌ [{token.request_id}] Stream failed: {e.message}")
            yield StreamEvent.error(STREAM_ERROR_MESSAGE)
        except Exception as e:
            logger.exception(f"❌ [{token.request_id}] Unexpected stream error: {e}")
            yield StreamEvent.error(STREAM_ERROR_MESSAGE)

    async def _run(
        self,
        request: ChatRequest,
        identity: Optional[Identity],
        token: CancellationToken,
    ) -> AsyncGenerator[StreamEvent, None]:
        query = request.latest_user_text

        answer = await self._route_to_workflow(request, query, token)
        if answer is not None:
            async for event in self._replay(answer, token):
                yield event
            return

        context = await self.augmenter.augment(query, identity, request.ui_language)
        token.raise_if_cancelled()
        messages = self.assembler.assemble(request, context)

        tools = self.registry.catalog() if request.use_tools and len(self.registry) else None
        accumulator = ToolCallAccumulator()
        async for event in self.driver.stream_first_pass(messages, tools, token, accumulator):
            yield event

        calls = accumulator.finish()
        if not calls:
            return

        if len(calls) > MAX_TOOL_CALLS_PER_STREAM:
            logger.warning(
                f"⚠️ [{token.request_id}] Model requested {len(calls)} tool calls, "
                f"keeping the first {MAX_TOOL_CALLS_PER_STREAM}"
            )
            calls = calls[:MAX_TOOL_CALLS_PER_STREAM]

        for call in calls:
            yield StreamEvent.tool_call(call.name)

        results: List[ToolResult] = []
        async for event in self._dispatch(calls, token, results):
            yield event
        token.raise_if_cancelled()

        async for event in self.driver.stream_second_pass(messages, calls, results, token):
            yield event

    async def _dispatch(
        self,
        calls: List[ToolCall],
        token: CancellationToken,
        results: List[ToolResult],
    ) -> AsyncGenerator[StreamEvent, None]:
        """Run the tool batch, yielding side-channel events while it runs.

        ``results`` is filled in call order once every call has finished.
        """
        side_events: asyncio.Queue = asyncio.Queue()

        async def emit(event: StreamEvent) -> None:
            await side_events.put(event)

        batch = asyncio.create_task(self.dispatcher.dispatch(calls, emit, token.request_id))
        getter: Optional[asyncio.Future] = None
        try:
            while not batch.done() or not side_events.empty():
                getter = asyncio.ensure_future(side_events.get())
                done, _ = await asyncio.wait({getter, batch}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                else:
                    getter.cancel()
                token.raise_if_cancelled()
            results.extend(batch.result())
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            if not batch.done():
                batch.cancel()

    async def _route_to_workflow(
        self, request: ChatRequest, query: str, token: CancellationToken
    ) -> Optional[str]:
        """Formatted workflow answer, or None to continue with the model."""
        if not self.workflow_routing or self.workflow_client is None or not query:
            return None

        match = self.matcher.match(query)
        if not self.matcher.should_route(match):
            return None

        logger.info(
            f"🔀 [{token.request_id}] Routing to workflow {match.workflow.id} "
            f"(confidence {match.confidence:.2f})"
        )
        history = [turn.model_dump() for turn in request.messages[:-1]]
        response = await self.workflow_client.call_workflow(
            match.workflow.id,
            query,
            parameters=match.extracted_params,
            language=request.ui_language,
            previous_messages=history,
        )
        if not response.success:
            logger.warning(
                f"⚠️ [{token.request_id}] Workflow {match.workflow.id} failed "
                f"({response.message}), falling back to the model"
            )
            return None
        return format_workflow_response(response)

    async def _replay(self, text: str, token: CancellationToken) -> AsyncGenerator[StreamEvent, None]:
        for char in text:
            token.raise_if_cancelled()
            yield StreamEvent.content(char)
            if self.replay_delay:
                await asyncio.sleep(self.replay_delay)
