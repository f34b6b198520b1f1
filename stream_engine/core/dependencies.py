"""Dependency wiring for the engine components."""

from typing import Optional

from stream_engine.core.config import Settings, settings
from stream_engine.services.batch import IngestBatcher
from stream_engine.services.metrics_sampler import MetricsSampler
from stream_engine.services.sample_source import SampleGenerator
from stream_engine.services.scheduler import StreamScheduler
from stream_engine.services.stream_buffer import BoundedStreamBuffer


class ServiceContainer:
    """Container for engine component instances."""

    def __init__(self, config: Optional[Settings] = None) -> None:
        """Initialize service container."""
        self.config = config or settings
        self.generator = SampleGenerator()
        # Pass-through source for /api/data, independent of the stream.
        self.source = SampleGenerator()
        self.buffer = BoundedStreamBuffer(self.config.max_buffer_size)
        self.sampler = MetricsSampler(self.config.frame_history)
        self.scheduler = StreamScheduler(
            buffer=self.buffer,
            generator=self.generator,
            sampler=self.sampler,
            config=self.config,
        )
        self.batcher = IngestBatcher(
            self.buffer,
            self.config.ingest_batch_size,
            self.config.ingest_batch_timeout_seconds,
        )

    async def initialize(self) -> None:
        """Seed the buffer and start the ticks."""
        self.scheduler.reset()
        self.scheduler.seed()
        self.scheduler.start()

    async def shutdown(self) -> None:
        """Flush pending samples and stop the ticks."""
        await self.batcher.flush()
        await self.scheduler.stop()


services = ServiceContainer()
