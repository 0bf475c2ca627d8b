"""Request-scoped cancellation signal."""

import asyncio
import logging
from typing import Optional

from common.exception import StreamInterrupted

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cancellation signal owned by one request.

    Passed explicitly through every stage of the stream so that concurrent
    requests can never cancel one another. Stream readers call
    ``raise_if_cancelled`` between chunks.
    """

    def __init__(self, request_id: str = ""):
        self.request_id = request_id
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "client disconnected") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
            logger.info(f"🛑 [{self.request_id}] Cancellation requested: {reason}")

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise StreamInterrupted(self.reason or "cancelled")
