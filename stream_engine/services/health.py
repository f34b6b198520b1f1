"""Health check service for the engine loops and buffer."""

import time
from typing import Any, Dict

from stream_engine.services.scheduler import INGESTION, RENDER, StreamScheduler
from stream_engine.services.stream_buffer import BoundedStreamBuffer

# An ingestion loop silent for this many periods is reported as stale.
STALE_INGEST_PERIODS = 10


def check_ingestion(scheduler: StreamScheduler) -> Dict[str, Any]:
    """
    Check that the ingestion loop runs and has ticked recently.

    Args:
        scheduler: StreamScheduler instance.

    Returns:
        Health status dictionary.
    """
    if scheduler.ingestion_paused:
        return {"status": "paused", "last_ingest_age_ms": None}

    if not scheduler.loop_running(INGESTION):
        return {"status": "unhealthy", "error": "Ingestion loop not running"}

    if scheduler.last_ingest_time is None:
        return {"status": "starting", "last_ingest_age_ms": None}

    age_ms = (time.monotonic() - scheduler.last_ingest_time) * 1000
    limit_ms = scheduler.config.ingestion_interval_ms * STALE_INGEST_PERIODS
    if age_ms > limit_ms:
        return {
            "status": "unhealthy",
            "error": f"No sample ingested for {age_ms:.0f} ms",
            "last_ingest_age_ms": round(age_ms, 2),
        }
    return {"status": "healthy", "last_ingest_age_ms": round(age_ms, 2)}


def check_render(scheduler: StreamScheduler) -> Dict[str, Any]:
    """
    Check that the render loop runs.

    Args:
        scheduler: StreamScheduler instance.

    Returns:
        Health status dictionary.
    """
    if not scheduler.loop_running(RENDER):
        return {"status": "unhealthy", "error": "Render loop not running"}
    return {
        "status": "healthy",
        "fps": scheduler.latest_metrics.fps,
        "frame_count": scheduler.sampler.frame_count,
    }


def check_buffer(buffer: BoundedStreamBuffer) -> Dict[str, Any]:
    """
    Check that the buffer holds data within its capacity.

    Args:
        buffer: BoundedStreamBuffer instance.

    Returns:
        Health status dictionary.
    """
    size = len(buffer)
    if size > buffer.max_size:
        return {
            "status": "unhealthy",
            "error": f"Buffer holds {size} samples, capacity {buffer.max_size}",
        }
    return {
        "status": "healthy" if size else "empty",
        "size": size,
        "capacity": buffer.max_size,
        "last_timestamp": buffer.last_timestamp,
    }
