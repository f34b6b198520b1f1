"""Coordinate mapping between data space and display space."""

from typing import Dict, List, Optional, Sequence, Tuple

from stream_engine.core.config import settings
from stream_engine.models.geometry import (
    AxisTick,
    DataCoordinate,
    DisplayPoint,
    DisplayRect,
    Viewport,
)
from stream_engine.models.sample import Sample


def to_display(sample: Sample, rect: DisplayRect, viewport: Viewport) -> DisplayPoint:
    """
    Map a sample to its pixel position.

    Display y grows downward while value y grows upward, so y is inverted.
    The viewport must be non-degenerate; no guarding is done here.
    """
    x = rect.x + (sample.timestamp - viewport.x_min) / (viewport.x_max - viewport.x_min) * rect.width
    normalized = (sample.value - viewport.y_min) / (viewport.y_max - viewport.y_min)
    y = rect.y + rect.height - normalized * rect.height
    return DisplayPoint(x=x, y=y)


def to_data(point: DisplayPoint, rect: DisplayRect, viewport: Viewport) -> DataCoordinate:
    """Inverse of to_display."""
    timestamp = viewport.x_min + (point.x - rect.x) / rect.width * (viewport.x_max - viewport.x_min)
    value = viewport.y_max - (point.y - rect.y) / rect.height * (viewport.y_max - viewport.y_min)
    return DataCoordinate(timestamp=timestamp, value=value)


def to_display_many(
    sequence: Sequence[Sample], rect: DisplayRect, viewport: Viewport
) -> List[Tuple[float, float]]:
    """Map every sample of a sequence to (x, y) pixel pairs, preserving order."""
    x_scale = rect.width / (viewport.x_max - viewport.x_min)
    y_scale = rect.height / (viewport.y_max - viewport.y_min)
    bottom = rect.y + rect.height
    return [
        (
            rect.x + (sample.timestamp - viewport.x_min) * x_scale,
            bottom - (sample.value - viewport.y_min) * y_scale,
        )
        for sample in sequence
    ]


def chart_rect(
    width: float,
    height: float,
    left: Optional[float] = None,
    right: Optional[float] = None,
    top: Optional[float] = None,
    bottom: Optional[float] = None,
) -> DisplayRect:
    """
    Plot area of a surface once axis padding is taken out.

    Args:
        width: Surface width in pixels.
        height: Surface height in pixels.
        left: Left padding, from settings when omitted.
        right: Right padding, from settings when omitted.
        top: Top padding, from settings when omitted.
        bottom: Bottom padding, from settings when omitted.

    Returns:
        Display rectangle; width and height never drop below one pixel.
    """
    left = settings.axis_padding_left if left is None else left
    right = settings.axis_padding_right if right is None else right
    top = settings.axis_padding_top if top is None else top
    bottom = settings.axis_padding_bottom if bottom is None else bottom
    return DisplayRect(
        x=left,
        y=top,
        width=max(1.0, width - left - right),
        height=max(1.0, height - top - bottom),
    )


def axis_ticks(
    rect: DisplayRect, viewport: Viewport, divisions: int = 10
) -> Dict[str, List[AxisTick]]:
    """
    Evenly spaced grid lines with the data values they label.

    Returns:
        {"x": [...], "y": [...]} lists of AxisTick, divisions + 1 each.
    """
    x_ticks = []
    y_ticks = []
    for i in range(divisions + 1):
        fraction = i / divisions
        x_ticks.append(AxisTick(
            position=rect.x + fraction * rect.width,
            value=viewport.x_min + fraction * (viewport.x_max - viewport.x_min),
        ))
        y_ticks.append(AxisTick(
            position=rect.y + rect.height - fraction * rect.height,
            value=viewport.y_min + fraction * (viewport.y_max - viewport.y_min),
        ))
    return {"x": x_ticks, "y": y_ticks}
