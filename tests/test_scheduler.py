from __future__ import annotations

import asyncio

import pytest
from prometheus_client import REGISTRY

from stream_engine.core.config import Settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.frame import ViewState
from stream_engine.models.geometry import RenderMode
from stream_engine.models.sample import (
    AggregationPeriod,
    Bucket,
    FilterSpec,
    QuerySpec,
    Sample,
)
from stream_engine.services.batch import IngestBatcher
from stream_engine.services.metrics_sampler import MetricsSampler
from stream_engine.services.sample_source import SampleGenerator
from stream_engine.services.scheduler import (
    INGESTION,
    METRICS,
    RENDER,
    StreamScheduler,
    ingest_batch,
    ingest_tick,
    render_frame,
)
from stream_engine.services.stream_buffer import BoundedStreamBuffer

FAST = Settings(
    ingestion_interval_ms=5,
    render_interval_ms=5,
    metrics_interval_ms=20,
    initial_count=10,
)


class FailingGenerator(SampleGenerator):
    def generate_next(self, last_timestamp: int) -> Sample:
        raise RuntimeError("sensor offline")


def _scheduler(capacity: int = 100, generator: SampleGenerator | None = None) -> StreamScheduler:
    return StreamScheduler(
        buffer=BoundedStreamBuffer(capacity),
        generator=generator or SampleGenerator(seed=1),
        sampler=MetricsSampler(history=60, memory_probe=None),
        config=FAST,
    )


def _samples(n: int, step: int = 1000) -> list[Sample]:
    return [
        Sample(timestamp=i * step, value=float(10 + i % 50), category="ab"[i % 2])
        for i in range(n)
    ]


def test_ingest_tick_appends_after_cursor() -> None:
    buffer = BoundedStreamBuffer(10)
    buffer.append(Sample(timestamp=1000, value=1.0, category="a"))
    snapshot = ingest_tick(buffer, SampleGenerator(interval_ms=100, seed=1))
    assert len(snapshot) == 2
    assert snapshot[-1].timestamp == 1100
    assert buffer.last_timestamp == 1100


def test_render_frame_line() -> None:
    data = _samples(50)
    frame = render_frame(data, ViewState(width=1200, height=400), config=FAST)
    assert frame.mode == RenderMode.LINE
    assert len(frame.points) == 50
    assert frame.source_count == 50
    assert frame.cells == []
    for x, y in frame.points:
        assert frame.rect.x <= x <= frame.rect.x + frame.rect.width
        assert frame.rect.y <= y <= frame.rect.y + frame.rect.height


def test_render_frame_applies_query() -> None:
    view = ViewState(
        query=QuerySpec(
            filters=FilterSpec(categories=frozenset({"a"})),
            period=AggregationPeriod.ONE_MINUTE,
        ),
    )
    frame = render_frame(_samples(240), view, config=FAST)
    # 120 samples of category "a", one per two seconds, over four minutes.
    assert frame.source_count == 4


def test_render_frame_heatmap() -> None:
    frame = render_frame(_samples(200), ViewState(mode=RenderMode.HEATMAP), config=FAST)
    assert frame.points == []
    assert sum(cell.count for cell in frame.cells) == 200


def test_query_and_window_read_snapshot() -> None:
    scheduler = _scheduler(capacity=1000)
    scheduler.buffer.append_batch(_samples(300, step=60000))
    filtered, buckets = scheduler.query(QuerySpec(period=AggregationPeriod.FIVE_MINUTES))
    assert len(filtered) == 300
    assert all(isinstance(b, Bucket) for b in buckets)
    assert sum(b.sample_count for b in buckets) == 300

    window, rows = scheduler.window(0, item_extent=40, container_extent=400, overscan=5)
    assert (window.visible_start, window.visible_end) == (0, 15)
    assert len(rows) == 16
    assert rows[0].timestamp == 299 * 60000


def test_loops_tick_and_stop() -> None:
    async def run() -> StreamScheduler:
        scheduler = _scheduler()
        scheduler.seed()
        scheduler.start()
        assert scheduler.loop_running(INGESTION)
        assert scheduler.loop_running(RENDER)
        assert scheduler.loop_running(METRICS)
        await asyncio.sleep(0.2)
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(run())
    assert not scheduler.is_running
    assert len(scheduler.buffer) > 10
    assert scheduler.latest_frame is not None
    assert scheduler.sampler.frame_count > 0
    assert scheduler.latest_metrics.frame_count > 0


def test_failing_tick_keeps_loop_alive() -> None:
    async def run() -> None:
        scheduler = _scheduler(generator=FailingGenerator(seed=1))
        scheduler.start()
        await asyncio.sleep(0.05)
        assert scheduler.loop_running(INGESTION)
        assert len(scheduler.buffer) == 0
        await scheduler.stop()

    asyncio.run(run())


def test_start_is_idempotent() -> None:
    async def run() -> int:
        scheduler = _scheduler()
        scheduler.start()
        tasks = dict(scheduler._tasks)
        scheduler.start()
        same = sum(1 for name, task in scheduler._tasks.items() if tasks[name] is task)
        await scheduler.stop()
        return same

    assert asyncio.run(run()) == 3


def test_reset_clears_state() -> None:
    scheduler = _scheduler()
    scheduler.seed()
    scheduler.render_once()
    scheduler.reset()
    assert len(scheduler.buffer) == 0
    assert scheduler.latest_frame is None
    assert scheduler.sampler.frame_count == 0


def _evicted() -> float:
    return REGISTRY.get_sample_value("stream_samples_evicted_total") or 0.0


def test_ingest_batch_counts_evictions() -> None:
    buffer = BoundedStreamBuffer(5)
    buffer.append_batch(_samples(3))
    before = _evicted()
    snapshot = ingest_batch(buffer, _samples(4))
    assert len(snapshot) == 5
    assert _evicted() - before == 2


def test_add_samples_continues_from_cursor() -> None:
    scheduler = _scheduler(capacity=50)
    scheduler.buffer.append(Sample(timestamp=1000, value=1.0, category="a"))
    scheduler.generator.interval_ms = 100
    snapshot = scheduler.add_samples(5)
    assert [s.timestamp for s in snapshot] == [1000, 1100, 1200, 1300, 1400, 1500]
    assert scheduler.buffer.last_timestamp == 1500


def test_add_samples_keeps_capacity() -> None:
    scheduler = _scheduler(capacity=20)
    scheduler.seed()
    before = _evicted()
    snapshot = scheduler.add_samples(100)
    assert len(snapshot) == 20
    assert _evicted() - before == 90
    timestamps = [s.timestamp for s in snapshot]
    assert timestamps == sorted(timestamps)


def test_add_samples_rejects_negative_count() -> None:
    with pytest.raises(ConfigurationError):
        _scheduler().add_samples(-1)


def test_pause_and_resume_ingestion() -> None:
    async def run() -> None:
        scheduler = _scheduler()
        scheduler.seed()
        scheduler.start()
        await asyncio.sleep(0.03)

        await scheduler.pause_ingestion()
        assert not scheduler.is_streaming
        assert scheduler.loop_running(RENDER)
        assert scheduler.loop_running(METRICS)
        paused_size = len(scheduler.buffer)
        frames = scheduler.sampler.frame_count
        await asyncio.sleep(0.05)
        assert len(scheduler.buffer) == paused_size
        assert scheduler.sampler.frame_count > frames

        scheduler.resume_ingestion()
        assert scheduler.is_streaming
        await asyncio.sleep(0.05)
        assert len(scheduler.buffer) > paused_size
        await scheduler.stop()

    asyncio.run(run())


def test_batcher_writes_alongside_running_ingestion() -> None:
    async def run() -> StreamScheduler:
        scheduler = _scheduler(capacity=1000)
        batcher = IngestBatcher(scheduler.buffer, batch_size=3, batch_timeout=10)
        scheduler.start()
        await asyncio.sleep(0.02)
        external = [Sample(timestamp=-i, value=2.0, category="external") for i in range(3)]
        await batcher.add(external)
        await asyncio.sleep(0.02)
        await batcher.flush()
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(run())
    categories = [s.category for s in scheduler.buffer.snapshot]
    assert categories.count("external") == 3
    assert len(categories) > 3
