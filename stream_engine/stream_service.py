"""Stream Service: HTTP surface over the streaming time-series engine."""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import ValidationError
from starlette.responses import Response

from stream_engine.api.health import check_all_dependencies, check_readiness
from stream_engine.core.config import settings
from stream_engine.core.dependencies import services
from stream_engine.core.exceptions import TransientGenerationFailure
from stream_engine.models.api import (
    BatchResponse,
    GenerateResponse,
    IngestRequest,
    IngestResponse,
    NextSampleRequest,
    NextSampleResponse,
    QueryResponse,
    StreamStatusResponse,
    WindowResponse,
)
from stream_engine.models.frame import RenderFrame, ViewState
from stream_engine.models.metrics import MetricsSnapshot
from stream_engine.models.sample import (
    AggregationPeriod,
    FilterSpec,
    QuerySpec,
    Sample,
    TimeRange,
)
from stream_engine.monitoring.metrics import generation_failures_total
from stream_engine.services.aggregation import summarize
from stream_engine.services.filter_engine import apply_filter
from stream_engine.services.retry import retry_with_backoff
from stream_engine.services.scheduler import render_frame
from stream_engine.services.sample_source import now_ms

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MIN_TIMESTAMP = -(2 ** 63)
MAX_TIMESTAMP = 2 ** 63 - 1


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    await services.initialize()
    logger.info("Stream Service started")
    yield
    await services.shutdown()
    logger.info("Stream Service stopped")


app = FastAPI(title="Stream Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://localhost:5174"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _generate_batch(count: int, category: Optional[str]) -> List[Sample]:
    try:
        data = services.source.generate_batch(count)
    except Exception as e:
        raise TransientGenerationFailure(f"Failed to generate data: {str(e)}") from e
    if not category:
        return data
    return list(apply_filter(data, FilterSpec(categories=frozenset({category}))))


def _generate_next(last_timestamp: int) -> Sample:
    try:
        return services.source.generate_next(last_timestamp)
    except Exception as e:
        raise TransientGenerationFailure(
            f"Failed to generate next data point: {str(e)}") from e


@app.get("/api/data", response_model=BatchResponse)
async def get_batch(
    count: int = Query(1000, ge=0, le=settings.max_batch_count),
    category: Optional[str] = None,
):
    """
    Generate a batch of samples, optionally restricted to one category.

    Args:
        count: Number of samples to generate before filtering.
        category: Category to keep.

    Returns:
        Generated batch.
    """
    try:
        data = await retry_with_backoff(lambda: _generate_batch(count, category))
    except TransientGenerationFailure as e:
        generation_failures_total.inc()
        logger.error(f"Batch generation failed: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to generate data"},
        )
    return BatchResponse(data=data, count=len(data), timestamp=now_ms())


@app.post("/api/data", response_model=NextSampleResponse)
async def get_next_sample(request: NextSampleRequest):
    """
    Generate the sample following a timestamp.

    Args:
        request: Last timestamp seen by the caller, now when omitted.

    Returns:
        Next sample.
    """
    last_timestamp = request.last_timestamp
    if last_timestamp is None:
        last_timestamp = now_ms()
    try:
        sample = await retry_with_backoff(lambda: _generate_next(last_timestamp))
    except TransientGenerationFailure as e:
        generation_failures_total.inc()
        logger.error(f"Next sample generation failed: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to generate next data point"},
        )
    return NextSampleResponse(data=sample, timestamp=now_ms())


@app.post("/api/samples", response_model=IngestResponse, status_code=202)
async def ingest_samples(request: IngestRequest) -> IngestResponse:
    """
    Queue externally produced samples for the buffer.

    Args:
        request: Samples in arrival order.

    Returns:
        Accepted and still pending counts.
    """
    pending = await services.batcher.add(request.samples)
    return IngestResponse(accepted=len(request.samples), pending=pending)


@app.post("/api/samples/generate", response_model=GenerateResponse)
async def generate_samples(
    count: int = Query(1000, ge=0, le=settings.max_batch_count),
) -> GenerateResponse:
    """
    Append generated samples continuing the live stream.

    Args:
        count: Number of samples to add.

    Returns:
        Added count and resulting buffer size.
    """
    snapshot = services.scheduler.add_samples(count)
    return GenerateResponse(
        added=count, size=len(snapshot), last_timestamp=services.buffer.last_timestamp)


@app.get("/api/stream", response_model=StreamStatusResponse)
async def stream_status() -> StreamStatusResponse:
    """Whether the ingestion loop is producing samples."""
    return StreamStatusResponse(
        streaming=services.scheduler.is_streaming, size=len(services.buffer))


@app.post("/api/stream/start", response_model=StreamStatusResponse)
async def start_streaming() -> StreamStatusResponse:
    """Resume the ingestion loop."""
    services.scheduler.resume_ingestion()
    return StreamStatusResponse(streaming=True, size=len(services.buffer))


@app.post("/api/stream/stop", response_model=StreamStatusResponse)
async def stop_streaming() -> StreamStatusResponse:
    """Pause the ingestion loop while rendering and metrics keep running."""
    await services.scheduler.pause_ingestion()
    return StreamStatusResponse(
        streaming=services.scheduler.is_streaming, size=len(services.buffer))


@app.get("/api/query", response_model=QueryResponse)
async def query_buffer(
    categories: List[str] = Query(default=[]),
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
    period: Optional[AggregationPeriod] = None,
) -> QueryResponse:
    """
    Filter the current buffer and optionally aggregate it.

    Args:
        categories: Categories to keep, all when empty.
        min_value: Inclusive lower value bound.
        max_value: Inclusive upper value bound.
        start: Inclusive start timestamp.
        end: Inclusive end timestamp.
        period: Aggregation period.

    Returns:
        Filtered samples or buckets with statistics of the filtered samples.
    """
    time_range = None
    if start is not None or end is not None:
        time_range = TimeRange(
            start=MIN_TIMESTAMP if start is None else start,
            end=MAX_TIMESTAMP if end is None else end,
        )
    try:
        spec = QuerySpec(
            filters=FilterSpec(
                categories=frozenset(categories),
                min_value=min_value,
                max_value=max_value,
                time_range=time_range,
            ),
            period=period,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    filtered, result = services.scheduler.query(spec)
    return QueryResponse(
        data=list(result),
        count=len(result),
        aggregated=spec.period is not None,
        stats=summarize(filtered),
    )


@app.get("/api/frame", response_model=RenderFrame)
async def get_frame() -> RenderFrame:
    """Latest render frame, rendered on demand before the first tick."""
    frame = services.scheduler.latest_frame
    if frame is None:
        frame = render_frame(services.buffer.snapshot, services.scheduler.view)
    return frame


@app.put("/api/view", response_model=ViewState)
async def set_view(view: ViewState) -> ViewState:
    """Replace the view state used by the render tick."""
    services.scheduler.set_view(view)
    logger.info(f"View changed to {view.mode.value} {view.width}x{view.height}")
    return view


@app.get("/api/window", response_model=WindowResponse)
async def get_window(
    scroll_offset: float = 0.0,
    item_extent: Optional[float] = Query(None, gt=0),
    container_extent: Optional[float] = Query(None, ge=0),
    overscan: Optional[int] = Query(None, ge=0),
) -> WindowResponse:
    """
    Visible rows of the newest-first buffer for a scroll offset.

    Args:
        scroll_offset: Scroll position in pixels.
        item_extent: Row height in pixels.
        container_extent: Container height in pixels.
        overscan: Extra rows on each side.

    Returns:
        Window and its rows.
    """
    window, rows = services.scheduler.window(
        scroll_offset, item_extent, container_extent, overscan)
    return WindowResponse(window=window, items=list(rows))


@app.post("/api/reset")
async def reset_stream() -> dict:
    """Clear the buffer and reseed it without stopping the loops."""
    services.scheduler.reset()
    snapshot = services.scheduler.seed()
    return {"status": "reset", "size": len(snapshot)}


@app.get("/api/metrics", response_model=MetricsSnapshot)
async def get_metrics_json() -> MetricsSnapshot:
    """Latest frame metrics snapshot."""
    return services.scheduler.latest_metrics


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health() -> dict:
    """
    Health check endpoint with component verification.

    Returns:
        Health status with component statuses.
    """
    result = check_all_dependencies(services.scheduler)
    return {"service": settings.service_name, **result}


@app.get("/ready")
async def readiness() -> dict:
    """
    Readiness check endpoint.

    Returns:
        Readiness status.
    """
    result = check_readiness(services.scheduler)
    return {"service": settings.service_name, **result}
