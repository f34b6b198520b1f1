"""Viewport calculator: data-space bounds of a sequence, with padding."""

import logging
import math
import warnings
from typing import Optional, Sequence

from stream_engine.core.exceptions import ConfigurationError, DegenerateInputWarning
from stream_engine.models.geometry import Viewport
from stream_engine.models.sample import Sample
from stream_engine.services.sample_source import now_ms

logger = logging.getLogger(__name__)

FALLBACK_WINDOW_MS = 3600000
FALLBACK_Y_MIN = 0.0
FALLBACK_Y_MAX = 100.0

X_EPSILON_MS = 1000
Y_EPSILON = 1.0


def fallback_viewport(now: Optional[int] = None) -> Viewport:
    """The last hour of time over values [0, 100]."""
    end = now_ms() if now is None else now
    return Viewport(
        x_min=end - FALLBACK_WINDOW_MS,
        x_max=end,
        y_min=FALLBACK_Y_MIN,
        y_max=FALLBACK_Y_MAX,
    )


def compute_viewport(
    sequence: Sequence[Sample],
    padding_fraction: float = 0.1,
    now: Optional[int] = None,
) -> Viewport:
    """
    Compute the padded data-space rectangle enclosing a sequence.

    Args:
        sequence: Samples to enclose, in any order.
        padding_fraction: Fraction of each axis range added on both sides.
        now: Reference time for the empty-input fallback.

    Returns:
        A viewport with x_max > x_min and y_max > y_min. Empty input and
        zero-range axes are replaced by fallback values and reported with
        DegenerateInputWarning.

    Raises:
        ConfigurationError: If padding_fraction is negative.
    """
    if padding_fraction < 0:
        raise ConfigurationError(
            f"padding_fraction must be non-negative, got {padding_fraction}")

    if not sequence:
        warnings.warn(
            "Empty sequence, using fallback viewport",
            DegenerateInputWarning,
            stacklevel=2,
        )
        return fallback_viewport(now)

    first = sequence[0]
    ts_low = ts_high = first.timestamp
    v_low = v_high = first.value
    for sample in sequence:
        if sample.timestamp < ts_low:
            ts_low = sample.timestamp
        elif sample.timestamp > ts_high:
            ts_high = sample.timestamp
        if sample.value < v_low:
            v_low = sample.value
        elif sample.value > v_high:
            v_high = sample.value

    x_range = ts_high - ts_low
    if x_range == 0:
        warnings.warn(
            f"Zero time range at {ts_low}, substituting {X_EPSILON_MS} ms",
            DegenerateInputWarning,
            stacklevel=2,
        )
        x_range = X_EPSILON_MS
        ts_low -= X_EPSILON_MS / 2
        ts_high += X_EPSILON_MS / 2

    y_range = v_high - v_low
    if y_range == 0:
        warnings.warn(
            f"Zero value range at {v_low}, substituting {Y_EPSILON}",
            DegenerateInputWarning,
            stacklevel=2,
        )
        y_range = Y_EPSILON
        v_low -= Y_EPSILON / 2
        v_high += Y_EPSILON / 2

    x_min = math.floor(ts_low - x_range * padding_fraction)
    x_max = math.ceil(ts_high + x_range * padding_fraction)
    y_min = max(0.0, v_low - y_range * padding_fraction)
    y_max = v_high + y_range * padding_fraction

    # Values are expected non-negative; the 0 floor can overtake all-negative data.
    if y_max <= y_min:
        logger.debug(f"Value range below zero floor ({v_low}..{v_high})")
        y_max = y_min + Y_EPSILON

    return Viewport(x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)
