from __future__ import annotations

import asyncio
import time

from stream_engine.api.health import check_all_dependencies, check_readiness
from stream_engine.core.config import Settings
from stream_engine.services.health import check_buffer, check_ingestion, check_render
from stream_engine.services.metrics_sampler import MetricsSampler
from stream_engine.services.sample_source import SampleGenerator
from stream_engine.services.scheduler import StreamScheduler
from stream_engine.services.stream_buffer import BoundedStreamBuffer


def _scheduler() -> StreamScheduler:
    return StreamScheduler(
        buffer=BoundedStreamBuffer(50),
        generator=SampleGenerator(seed=1),
        sampler=MetricsSampler(history=10, memory_probe=None),
        config=Settings(ingestion_interval_ms=20, render_interval_ms=5, initial_count=5),
    )


def test_stopped_scheduler_is_unhealthy() -> None:
    scheduler = _scheduler()
    assert check_ingestion(scheduler)["status"] == "unhealthy"
    assert check_render(scheduler)["status"] == "unhealthy"
    assert check_buffer(scheduler.buffer)["status"] == "empty"

    result = check_all_dependencies(scheduler)
    assert result["status"] == "unhealthy"
    assert set(result["services"]) == {"ingestion", "buffer", "render"}
    assert check_readiness(scheduler)["ready"] is False


def test_running_scheduler_is_healthy() -> None:
    async def run() -> None:
        scheduler = _scheduler()
        scheduler.seed()
        scheduler.start()
        await asyncio.sleep(0.05)
        assert check_ingestion(scheduler)["status"] == "healthy"
        assert check_all_dependencies(scheduler)["status"] == "healthy"
        assert check_readiness(scheduler) == {"ready": True, "ingestion": True, "buffer": True}
        await scheduler.stop()

    asyncio.run(run())


def test_stale_ingestion_is_unhealthy() -> None:
    async def run() -> None:
        scheduler = _scheduler()
        scheduler.start()
        await asyncio.sleep(0.02)
        scheduler.last_ingest_time = time.monotonic() - 10
        status = check_ingestion(scheduler)
        assert status["status"] == "unhealthy"
        assert "No sample ingested" in status["error"]
        await scheduler.stop()

    asyncio.run(run())


def test_check_buffer_reports_capacity() -> None:
    buffer = BoundedStreamBuffer(5)
    buffer.append_batch(SampleGenerator(seed=1).generate_batch(8))
    status = check_buffer(buffer)
    assert status["status"] == "healthy"
    assert status["size"] == 5
    assert status["capacity"] == 5
