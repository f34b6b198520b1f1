"""Level-of-detail policy: positional decimation and density binning."""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from stream_engine.core.config import Settings, settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.geometry import DensityCell, DisplayRect, RenderMode, Viewport
from stream_engine.models.sample import Sample

logger = logging.getLogger(__name__)

T = TypeVar("T")


def decimate(sequence: Sequence[T], target_density: int) -> Tuple[T, ...]:
    """
    Keep every stride-th element starting at index 0.

    The stride is max(1, len // target_density), so the same input always
    yields the same output and no points are invented.

    Raises:
        ConfigurationError: If target_density is not positive.
    """
    if target_density <= 0:
        raise ConfigurationError(
            f"target_density must be positive, got {target_density}")
    stride = max(1, len(sequence) // target_density)
    return tuple(sequence[::stride])


def should_use_low_detail(
    fps: Optional[float], point_count: int, config: Optional[Settings] = None
) -> bool:
    """Whether rendering should drop detail given frame rate and load."""
    config = config or settings
    if fps is not None and 0 < fps < config.low_detail_fps:
        return True
    return point_count > config.low_detail_point_count


def target_density(mode: RenderMode, config: Optional[Settings] = None) -> int:
    """Configured point density for a render mode."""
    config = config or settings
    if mode == RenderMode.SCATTER:
        return config.scatter_target_density
    if mode == RenderMode.BAR:
        return config.bar_target_density
    return config.line_target_density


def select_points(
    sequence: Sequence[Sample],
    mode: RenderMode,
    fps: Optional[float] = None,
    config: Optional[Settings] = None,
) -> Tuple[Tuple[Sample, ...], bool]:
    """
    Choose the points to render for a mode.

    Line charts keep full detail until the frame rate or point count calls
    for low detail. Scatter and bar charts are always capped at their
    density. Heatmaps bin every point, so nothing is dropped.

    Returns:
        (points, low_detail) tuple.
    """
    low_detail = should_use_low_detail(fps, len(sequence), config)
    if mode == RenderMode.HEATMAP:
        return tuple(sequence), low_detail
    if mode == RenderMode.LINE and not low_detail:
        return tuple(sequence), low_detail

    points = decimate(sequence, target_density(mode, config))
    if len(points) < len(sequence):
        logger.debug(f"Decimated {len(sequence)} -> {len(points)} points for {mode.value}")
    return points, low_detail


def density_cells(
    sequence: Sequence[Sample],
    rect: DisplayRect,
    viewport: Viewport,
    cell_size: Optional[float] = None,
) -> List[DensityCell]:
    """
    Bin samples into square pixel cells for heatmap rendering.

    Args:
        sequence: Samples to bin.
        rect: Plot area.
        viewport: Data-space rectangle mapped onto rect.
        cell_size: Cell edge in pixels.

    Returns:
        Occupied cells ordered by column then row.
    """
    size = settings.heatmap_cell_size if cell_size is None else cell_size
    if size <= 0:
        raise ConfigurationError(f"cell_size must be positive, got {size}")

    x_cells_per_unit = rect.width / size / (viewport.x_max - viewport.x_min)
    y_cells_per_unit = rect.height / size / (viewport.y_max - viewport.y_min)

    cells: Dict[Tuple[int, int], List[float]] = {}
    for sample in sequence:
        column = math.floor((sample.timestamp - viewport.x_min) * x_cells_per_unit)
        row = math.floor((sample.value - viewport.y_min) * y_cells_per_unit)
        entry = cells.setdefault((column, row), [0, 0.0])
        entry[0] += 1
        entry[1] += sample.value

    return [
        DensityCell(
            column=column,
            row=row,
            x=rect.x + column * size,
            y=rect.y + rect.height - (row + 1) * size,
            size=size,
            count=count,
            mean_value=total / count,
        )
        for (column, row), (count, total) in sorted(cells.items())
    ]
