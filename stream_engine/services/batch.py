"""Batching of externally pushed samples into the stream buffer."""

import asyncio
import logging
import time
from collections import deque
from typing import Deque, Iterable, Optional

from stream_engine.core.config import settings
from stream_engine.models.sample import Sample
from stream_engine.services.scheduler import ingest_batch
from stream_engine.services.stream_buffer import BoundedStreamBuffer

logger = logging.getLogger(__name__)


class IngestBatcher:
    """Collect external samples and append them to the buffer in batches."""

    def __init__(
        self,
        buffer: BoundedStreamBuffer,
        batch_size: Optional[int] = None,
        batch_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the batcher.

        Args:
            buffer: Buffer receiving the batches.
            batch_size: Pending samples that trigger an immediate flush.
            batch_timeout: Seconds a partial batch may wait before flushing.
        """
        self.buffer = buffer
        self.batch_size = batch_size or settings.ingest_batch_size
        self.batch_timeout = batch_timeout or settings.ingest_batch_timeout_seconds
        self.pending: Deque[Sample] = deque()
        self.last_flush_time = time.monotonic()
        self._task: Optional[asyncio.Task] = None

    async def add(self, samples: Iterable[Sample]) -> int:
        """
        Queue samples, flushing when a full batch is pending.

        Args:
            samples: Samples in arrival order.

        Returns:
            Number of samples still pending after the call.
        """
        self.pending.extend(samples)

        if len(self.pending) >= self.batch_size:
            self._flush()
        elif self.pending and (self._task is None or self._task.done()):
            self._task = asyncio.create_task(self._timeout_flush())
        return len(self.pending)

    async def _timeout_flush(self) -> None:
        """Flush a partial batch once the timeout has passed since the last flush."""
        await asyncio.sleep(self.batch_timeout)
        while self.pending:
            remaining = self.batch_timeout - (time.monotonic() - self.last_flush_time)
            if remaining <= 0:
                self._flush()
                return
            # A size flush happened meanwhile; wait out the rest of its timeout.
            await asyncio.sleep(remaining)

    def _flush(self) -> int:
        if not self.pending:
            return 0

        batch = list(self.pending)
        self.pending.clear()
        self.last_flush_time = time.monotonic()

        ingest_batch(self.buffer, batch)
        logger.info(f"Flushed batch of {len(batch)} external samples")
        return len(batch)

    async def flush(self) -> int:
        """Flush everything pending and cancel the timeout task."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        return self._flush()
