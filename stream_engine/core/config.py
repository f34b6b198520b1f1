"""Engine configuration using Pydantic settings."""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore")

    service_name: str = "stream-engine"
    service_port: int = 8000

    # Tick periods
    ingestion_interval_ms: int = 100
    render_interval_ms: int = 16
    metrics_interval_ms: int = 1000

    # Buffer
    max_buffer_size: int = 10000
    initial_count: int = 1000

    # Rendering
    viewport_padding: float = Field(default=0.1, ge=0)
    display_width: int = 1200
    display_height: int = 400
    axis_padding_left: float = 60.0
    axis_padding_right: float = 20.0
    axis_padding_top: float = 20.0
    axis_padding_bottom: float = 40.0

    # Level of detail
    line_target_density: int = 2000
    scatter_target_density: int = 10000
    bar_target_density: int = 2000
    heatmap_cell_size: float = 10.0
    low_detail_fps: int = 30
    low_detail_point_count: int = 50000

    # Table virtualization
    item_extent: float = 40.0
    container_extent: float = 400.0
    overscan: int = 5

    # Metrics sampler
    frame_history: int = 60

    # Generator
    categories: List[str] = [
        "temperature", "pressure", "humidity", "voltage", "current"]
    value_min: float = 0.0
    value_max: float = 100.0
    sample_interval_ms: int = 100

    # API limits
    max_batch_count: int = 100000

    # Retry configuration
    max_retries: int = 3
    retry_delay_seconds: float = 0.1
    retry_backoff_multiplier: float = 2.0

    # External ingestion batching
    ingest_batch_size: int = 100
    ingest_batch_timeout_seconds: float = 0.5


settings = Settings()
