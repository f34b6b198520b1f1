"""Frame metrics model."""

from pydantic import BaseModel, ConfigDict


class MetricsSnapshot(BaseModel):
    """Rolling view of render performance, recomputed each sampling tick."""

    model_config = ConfigDict(frozen=True)

    fps: int = 0
    frame_time_ms: float = 0.0
    memory_mb: float = 0.0
    data_processing_ms: float = 0.0
    frame_count: int = 0
