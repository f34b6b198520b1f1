"""Cooperative tick scheduler driving ingestion, rendering and metrics."""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

from stream_engine.core.config import Settings, settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.frame import RenderFrame, ViewState
from stream_engine.models.geometry import RenderMode, VirtualWindow
from stream_engine.models.metrics import MetricsSnapshot
from stream_engine.models.sample import Bucket, QuerySpec, Sample
from stream_engine.monitoring.metrics import (
    buffer_size,
    frame_time_ms,
    frames_per_second,
    query_counter,
    query_duration_seconds,
    render_frame_seconds,
    rendered_points,
    samples_evicted_total,
    samples_ingested_total,
    tick_errors_total,
)
from stream_engine.services.aggregation import aggregate, bucket_values, run_query
from stream_engine.services.coordinates import chart_rect, to_display_many
from stream_engine.services.filter_engine import apply_filter
from stream_engine.services.lod import density_cells, select_points
from stream_engine.services.metrics_sampler import MetricsSampler
from stream_engine.services.sample_source import SampleGenerator, now_ms
from stream_engine.services.stream_buffer import BoundedStreamBuffer, Snapshot
from stream_engine.services.viewport import compute_viewport
from stream_engine.services.virtualization import compute_window, sort_for_display

logger = logging.getLogger(__name__)

INGESTION = "ingestion"
RENDER = "render"
METRICS = "metrics"


def ingest_tick(buffer: BoundedStreamBuffer, generator: SampleGenerator) -> Snapshot:
    """
    Produce the next sample and append it to the buffer.

    Args:
        buffer: Buffer owned by the ingestion path.
        generator: Sample source.

    Returns:
        The buffer snapshot after the append.
    """
    last = buffer.last_timestamp if buffer.last_timestamp is not None else now_ms()
    was_full = len(buffer) == buffer.max_size
    snapshot = buffer.append(generator.generate_next(last))

    samples_ingested_total.inc()
    if was_full:
        samples_evicted_total.inc()
    buffer_size.set(len(snapshot))
    return snapshot


def ingest_batch(buffer: BoundedStreamBuffer, batch: Sequence[Sample]) -> Snapshot:
    """
    Append a batch to the buffer and record ingestion and eviction counts.

    Args:
        buffer: Target buffer.
        batch: Samples in arrival order.

    Returns:
        The buffer snapshot after the append.
    """
    evicted = max(0, len(buffer) + len(batch) - buffer.max_size)
    snapshot = buffer.append_batch(batch)

    samples_ingested_total.inc(len(batch))
    if evicted:
        samples_evicted_total.inc(evicted)
    buffer_size.set(len(snapshot))
    return snapshot


def render_frame(
    snapshot: Sequence[Sample],
    view: ViewState,
    fps: Optional[float] = None,
    config: Optional[Settings] = None,
) -> RenderFrame:
    """
    Turn a buffer snapshot into display-ready geometry.

    Args:
        snapshot: Buffer state observed by this tick.
        view: Filter, aggregation, render mode and surface size.
        fps: Latest measured frame rate, drives adaptive detail.
        config: Settings, module settings when omitted.

    Returns:
        Render frame with viewport, plot rect and mapped points or cells.
    """
    config = config or settings
    result = run_query(snapshot, view.query)
    if result and isinstance(result[0], Bucket):
        data = bucket_values(result)
    else:
        data = result

    viewport = compute_viewport(data, config.viewport_padding)
    rect = chart_rect(view.width, view.height)
    points, low_detail = select_points(data, view.mode, fps, config)

    if view.mode == RenderMode.HEATMAP:
        return RenderFrame(
            viewport=viewport,
            rect=rect,
            mode=view.mode,
            cells=density_cells(points, rect, viewport, config.heatmap_cell_size),
            source_count=len(data),
            low_detail=low_detail,
        )
    return RenderFrame(
        viewport=viewport,
        rect=rect,
        mode=view.mode,
        points=to_display_many(points, rect, viewport),
        source_count=len(data),
        low_detail=low_detail,
    )


class StreamScheduler:
    """
    Owns the three periodic ticks.

    Every buffer writer runs on the event loop thread: the ingestion tick,
    seed, add_samples, reset and the ingest batcher. Each write publishes a
    whole new snapshot, so readers never see a partial append. The render
    tick is the only writer of the sampler's frame window.
    """

    def __init__(
        self,
        buffer: BoundedStreamBuffer,
        generator: SampleGenerator,
        sampler: MetricsSampler,
        view: Optional[ViewState] = None,
        config: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            buffer: Bounded stream buffer.
            generator: Sample source for the ingestion tick.
            sampler: Frame metrics sampler.
            view: Initial view state.
            config: Settings, module settings when omitted.
        """
        self.buffer = buffer
        self.generator = generator
        self.sampler = sampler
        self.config = config or settings
        self.view = view or ViewState()
        self.latest_frame: Optional[RenderFrame] = None
        self.latest_metrics = MetricsSnapshot()
        self.last_ingest_time: Optional[float] = None
        self.ingestion_paused = False
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    @property
    def is_streaming(self) -> bool:
        return self.loop_running(INGESTION)

    def loop_running(self, name: str) -> bool:
        task = self._tasks.get(name)
        return task is not None and not task.done()

    def seed(self, count: Optional[int] = None) -> Snapshot:
        """Fill the buffer with an initial generated batch."""
        count = self.config.initial_count if count is None else count
        batch = self.generator.generate_batch(count)
        snapshot = ingest_batch(self.buffer, batch)
        logger.info(f"Seeded buffer with {len(batch)} samples")
        return snapshot

    def add_samples(self, count: int) -> Snapshot:
        """
        Append count samples continuing from the newest buffered timestamp.

        Args:
            count: Number of samples to generate.

        Returns:
            The buffer snapshot after a single batch append.

        Raises:
            ConfigurationError: If count is negative.
        """
        if count < 0:
            raise ConfigurationError(f"count must be non-negative, got {count}")
        last = self.buffer.last_timestamp if self.buffer.last_timestamp is not None else now_ms()
        batch = []
        for _ in range(count):
            sample = self.generator.generate_next(last)
            batch.append(sample)
            last = sample.timestamp
        snapshot = ingest_batch(self.buffer, batch)
        logger.info(f"Added {count} generated samples")
        return snapshot

    def set_view(self, view: ViewState) -> None:
        """Replace the view state used by subsequent render ticks."""
        self.view = view

    def ingest_once(self) -> Snapshot:
        snapshot = ingest_tick(self.buffer, self.generator)
        self.last_ingest_time = time.monotonic()
        return snapshot

    def render_once(self) -> RenderFrame:
        started = time.perf_counter()
        snapshot = self.buffer.snapshot
        view = self.view
        fps = self.latest_metrics.fps or None

        frame = self.sampler.measure_processing(
            lambda: render_frame(snapshot, view, fps, self.config))
        self.latest_frame = frame
        self.sampler.tick_frame()

        render_frame_seconds.observe(time.perf_counter() - started)
        rendered_points.set(len(frame.points) or len(frame.cells))
        return frame

    def sample_metrics_once(self) -> MetricsSnapshot:
        metrics = self.sampler.snapshot()
        self.latest_metrics = metrics
        frames_per_second.set(metrics.fps)
        frame_time_ms.set(metrics.frame_time_ms)
        return metrics

    def query(
        self, spec: QuerySpec
    ) -> Tuple[Tuple[Sample, ...], Union[Tuple[Sample, ...], Tuple[Bucket, ...]]]:
        """
        Run an on-demand query against the current snapshot.

        Returns:
            (filtered samples, result) tuple. The result is the filtered
            samples themselves, or their buckets when the spec has a period.
        """
        query_counter.inc()
        with query_duration_seconds.time():
            filtered = apply_filter(self.buffer.snapshot, spec.filters)
            if spec.period is None:
                return filtered, filtered
            return filtered, aggregate(filtered, spec.period.milliseconds)

    def window(
        self,
        scroll_offset: float,
        item_extent: Optional[float] = None,
        container_extent: Optional[float] = None,
        overscan: Optional[int] = None,
    ) -> Tuple[VirtualWindow, Tuple[Sample, ...]]:
        """
        Virtual window over the newest-first buffer.

        Returns:
            (VirtualWindow, visible samples) tuple.
        """
        rows = sort_for_display(self.buffer.snapshot)
        window = compute_window(
            rows,
            scroll_offset,
            self.config.item_extent if item_extent is None else item_extent,
            self.config.container_extent if container_extent is None else container_extent,
            self.config.overscan if overscan is None else overscan,
        )
        return window, rows[window.visible_start:window.visible_end + 1]

    def reset(self) -> None:
        """Clear buffer, generator and sampler without stopping the loops."""
        self.buffer.reset()
        self.generator.reset()
        self.sampler.reset()
        self.latest_frame = None
        self.last_ingest_time = None
        self.latest_metrics = MetricsSnapshot()
        buffer_size.set(0)

    def start(self) -> None:
        """Start every loop that is not already running."""
        self.ingestion_paused = False
        for name, interval_ms, tick in self._loops():
            if not self.loop_running(name):
                self._spawn(name, interval_ms, tick)
        logger.info("Stream scheduler started")

    async def stop(self) -> None:
        """Cancel every loop and wait until their handles are released."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Stream scheduler stopped")

    async def pause_ingestion(self) -> None:
        """Stop producing samples while rendering and metrics keep running."""
        self.ingestion_paused = True
        task = self._tasks.get(INGESTION)
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        logger.info("Ingestion paused")

    def resume_ingestion(self) -> None:
        """Restart the ingestion loop after pause_ingestion."""
        self.ingestion_paused = False
        if not self.loop_running(INGESTION):
            self._spawn(INGESTION, self.config.ingestion_interval_ms, self.ingest_once)
        logger.info("Ingestion resumed")

    def _loops(self) -> Tuple[Tuple[str, int, Callable[[], object]], ...]:
        return (
            (INGESTION, self.config.ingestion_interval_ms, self.ingest_once),
            (RENDER, self.config.render_interval_ms, self.render_once),
            (METRICS, self.config.metrics_interval_ms, self.sample_metrics_once),
        )

    def _spawn(self, name: str, interval_ms: int, tick: Callable[[], object]) -> None:
        self._tasks[name] = asyncio.create_task(
            self._run_periodic(name, interval_ms, tick), name=f"stream-{name}")

    async def _run_periodic(
        self, name: str, interval_ms: int, tick: Callable[[], object]
    ) -> None:
        period = interval_ms / 1000
        try:
            while True:
                started = time.perf_counter()
                try:
                    tick()
                except Exception as e:
                    logger.error(f"{name} tick failed: {str(e)}")
                    tick_errors_total.labels(tick=name).inc()
                elapsed = time.perf_counter() - started
                await asyncio.sleep(max(0.0, period - elapsed))
        finally:
            # A respawned loop may already own the name.
            if self._tasks.get(name) is asyncio.current_task():
                del self._tasks[name]
            logger.info(f"{name} loop stopped")
