"""Data-space and display-space geometry models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class Viewport(BaseModel):
    """Data-space rectangle currently mapped onto the display."""

    model_config = ConfigDict(frozen=True)

    x_min: int
    x_max: int
    y_min: float
    y_max: float

    @model_validator(mode="after")
    def _check_ranges(self) -> "Viewport":
        if self.x_max <= self.x_min:
            raise ValueError(
                f"x_max ({self.x_max}) must be greater than x_min ({self.x_min})")
        if self.y_max < self.y_min:
            raise ValueError(
                f"y_max ({self.y_max}) must not be less than y_min ({self.y_min})")
        return self


class DisplayRect(BaseModel):
    """Pixel-space area inside the axis padding."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class DisplayPoint(BaseModel):
    """Pixel position on the display surface."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class DataCoordinate(BaseModel):
    """Position in data space, recovered from a pixel position."""

    model_config = ConfigDict(frozen=True)

    timestamp: float
    value: float


class AxisTick(BaseModel):
    """One grid line: its pixel position and the data value it labels."""

    model_config = ConfigDict(frozen=True)

    position: float
    value: float


class DensityCell(BaseModel):
    """One heatmap cell with the samples binned into it."""

    model_config = ConfigDict(frozen=True)

    column: int
    row: int
    x: float
    y: float
    size: float
    count: int
    mean_value: float


class VirtualWindow(BaseModel):
    """Visible slice of a long list for the current scroll position."""

    model_config = ConfigDict(frozen=True)

    visible_start: int
    visible_end: int
    total_extent: float
    leading_offset: float


class RenderMode(str, Enum):
    """Presentation styles, each with its own point density."""

    LINE = "line"
    SCATTER = "scatter"
    BAR = "bar"
    HEATMAP = "heatmap"
