from __future__ import annotations

import warnings

import pytest

from stream_engine.core.config import Settings
from stream_engine.core.exceptions import ConfigurationError, DegenerateInputWarning
from stream_engine.models.geometry import Viewport
from stream_engine.models.sample import Sample
from stream_engine.services.viewport import (
    FALLBACK_WINDOW_MS,
    compute_viewport,
    fallback_viewport,
)


def _sample(ts: int, value: float) -> Sample:
    return Sample(timestamp=ts, value=value, category="temperature")


def test_padded_bounds() -> None:
    data = [_sample(1000, 30), _sample(0, 10), _sample(500, 50)]
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        vp = compute_viewport(data, 0.1)
    assert vp == Viewport(x_min=-100, x_max=1100, y_min=6.0, y_max=54.0)


def test_y_min_is_floored_at_zero() -> None:
    vp = compute_viewport([_sample(0, 1), _sample(1000, 100)], 0.1)
    assert vp.y_min == 0.0
    assert vp.y_max == pytest.approx(109.9)


def test_viewport_contains_every_sample() -> None:
    data = [_sample(ts, (ts * 37) % 91 + 3) for ts in range(0, 10000, 123)]
    vp = compute_viewport(data)
    for s in data:
        assert vp.x_min <= s.timestamp <= vp.x_max
        assert vp.y_min <= s.value <= vp.y_max


def test_empty_sequence_uses_fallback() -> None:
    with pytest.warns(DegenerateInputWarning):
        vp = compute_viewport([], now=5_000_000)
    assert vp == fallback_viewport(5_000_000)
    assert vp.x_max - vp.x_min == FALLBACK_WINDOW_MS
    assert (vp.y_min, vp.y_max) == (0.0, 100.0)


def test_single_sample_gets_non_degenerate_range() -> None:
    with pytest.warns(DegenerateInputWarning):
        vp = compute_viewport([_sample(5000, 20)], 0.1)
    assert vp.x_min < 5000 < vp.x_max
    assert vp.y_min < 20 < vp.y_max
    assert vp.x_min == 4400
    assert vp.x_max == 5600


def test_constant_values_get_epsilon_range() -> None:
    data = [_sample(0, 42), _sample(1000, 42)]
    with pytest.warns(DegenerateInputWarning):
        vp = compute_viewport(data, 0.0)
    assert vp.y_max > vp.y_min
    assert vp.y_min < 42 < vp.y_max
    assert (vp.x_min, vp.x_max) == (0, 1000)


def test_negative_values_still_non_degenerate() -> None:
    vp = compute_viewport([_sample(0, -10), _sample(1000, -5)])
    assert vp.y_min == 0.0
    assert vp.y_max > vp.y_min


def test_viewport_rejects_inverted_x() -> None:
    with pytest.raises(ValueError):
        Viewport(x_min=10, x_max=10, y_min=0, y_max=1)


def test_negative_padding_is_rejected() -> None:
    data = [_sample(0, 10), _sample(1000, 50)]
    with pytest.raises(ConfigurationError):
        compute_viewport(data, -0.6)
    with pytest.raises(ValueError):
        Settings(viewport_padding=-0.1)
