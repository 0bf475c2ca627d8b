"""
Background memory extraction.

Jobs are queued by the chat route once a response stream has closed and
processed by a single worker task owned by the application, so extraction
outlives the HTTP connection that triggered it. Failures are logged and
counted, never raised to callers.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from application.services.memory.extractor import MemoryExtractor
from application.services.retrieval.memory_service import MemoryService
from common.constants import MEMORY_QUEUE_MAX_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryJob:
    user_id: str
    message: str
    request_id: str = ""


class MemoryExtractionSupervisor:
    """Owns the extraction queue and its worker task."""

    def __init__(
        self,
        extractor: MemoryExtractor,
        memory_service: MemoryService,
        max_queue_size: int = MEMORY_QUEUE_MAX_SIZE,
    ):
        self.extractor = extractor
        self.memory_service = memory_service
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None
        self.stats: Dict[str, int] = {"processed": 0, "failed": 0, "stored": 0, "dropped": 0}

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="memory-extraction-worker")
        logger.info("✅ Memory extraction worker started")

    def submit(self, job: MemoryJob) -> bool:
        """Queue a job without waiting. Returns False if it was dropped."""
        if not job.user_id or not job.message.strip():
            return False
        try:
            self._queue.put_nowait(job)
            return True
        except asyncio.QueueFull:
            self.stats["dropped"] += 1
            logger.warning(f"⚠️ Memory queue full, dropping job for request {job.request_id}")
            return False

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued jobs ``drain_timeout`` seconds, then cancel the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Stopping memory worker with {self.pending} jobs pending")

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info(f"🔧 Memory extraction worker stopped: {self.stats}")

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def process(self, job: MemoryJob) -> int:
        """Extract and store memories for one job. Returns how many were stored."""
        try:
            existing = await self.memory_service.list_memories(job.user_id)
            memories = await self.extractor.extract_from_message(
                job.message, existing_memories=[m.content for m in existing]
            )
            stored = await self.memory_service.store(job.user_id, memories) if memories else 0
        except Exception as e:
            self.stats["failed"] += 1
            logger.error(f"❌ Memory extraction failed for request {job.request_id}: {e}")
            return 0

        self.stats["processed"] += 1
        self.stats["stored"] += stored
        if stored:
            logger.info(f"💾 Stored {stored} memories for user {job.user_id}")
        return stored
