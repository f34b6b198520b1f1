"""Health check utilities."""

from typing import Dict

from stream_engine.services.health import check_buffer, check_ingestion, check_render
from stream_engine.services.scheduler import StreamScheduler


def check_all_dependencies(
    scheduler: StreamScheduler,
    include_render: bool = True,
) -> Dict:
    """
    Check every engine component.

    Args:
        scheduler: Scheduler owning the loops and buffer.
        include_render: Whether to check the render loop.

    Returns:
        Dictionary with overall status and individual component statuses.
    """
    services = {}
    overall_status = "healthy"

    ingestion_status = check_ingestion(scheduler)
    services["ingestion"] = ingestion_status
    if ingestion_status.get("status") == "unhealthy":
        overall_status = "unhealthy"

    buffer_status = check_buffer(scheduler.buffer)
    services["buffer"] = buffer_status
    if buffer_status.get("status") == "unhealthy":
        overall_status = "unhealthy"

    if include_render:
        render_status = check_render(scheduler)
        services["render"] = render_status
        if render_status.get("status") != "healthy":
            overall_status = "unhealthy"

    return {"status": overall_status, "services": services}


def check_readiness(scheduler: StreamScheduler) -> Dict:
    """
    Check whether the engine can serve queries.

    Args:
        scheduler: Scheduler owning the loops and buffer.

    Returns:
        Readiness status dictionary.
    """
    ingestion_ok = check_ingestion(scheduler).get("status") != "unhealthy"
    buffer_ok = check_buffer(scheduler.buffer).get("status") == "healthy"

    return {
        "ready": ingestion_ok and buffer_ok,
        "ingestion": ingestion_ok,
        "buffer": buffer_ok,
    }
