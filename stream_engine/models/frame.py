"""View state and render frame models."""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from stream_engine.core.config import settings
from stream_engine.models.geometry import (
    DensityCell,
    DisplayRect,
    RenderMode,
    Viewport,
)
from stream_engine.models.sample import QuerySpec


class ViewState(BaseModel):
    """UI-driven state threaded into every render tick."""

    model_config = ConfigDict(frozen=True)

    query: QuerySpec = Field(default_factory=QuerySpec)
    mode: RenderMode = RenderMode.LINE
    width: int = Field(default=settings.display_width, gt=0)
    height: int = Field(default=settings.display_height, gt=0)


class RenderFrame(BaseModel):
    """Output of one render tick, ready for a drawing surface."""

    model_config = ConfigDict(frozen=True)

    viewport: Viewport
    rect: DisplayRect
    mode: RenderMode
    points: List[Tuple[float, float]] = Field(default_factory=list)
    cells: List[DensityCell] = Field(default_factory=list)
    source_count: int = 0
    low_detail: bool = False
