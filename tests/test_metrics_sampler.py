from __future__ import annotations

import psutil
import pytest

from stream_engine.core.exceptions import ConfigurationError
from stream_engine.services.metrics_sampler import MetricsSampler


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def test_fps_from_frame_times() -> None:
    clock = FakeClock()
    sampler = MetricsSampler(history=60, clock=clock, memory_probe=lambda: 12.5)
    for _ in range(10):
        clock.advance(20)
        sampler.tick_frame()
    snap = sampler.snapshot()
    assert snap.fps == 50
    assert snap.frame_time_ms == 20.0
    assert snap.memory_mb == 12.5
    assert snap.frame_count == 10


def test_window_keeps_only_recent_frames() -> None:
    clock = FakeClock()
    sampler = MetricsSampler(history=3, clock=clock, memory_probe=None)
    for delta in (100, 100, 10, 10, 10):
        clock.advance(delta)
        sampler.tick_frame()
    assert sampler.mean_frame_time() == 10
    assert sampler.fps() == 100
    assert sampler.frame_count == 5


def test_no_frames_reports_zero() -> None:
    sampler = MetricsSampler(history=5, clock=FakeClock(), memory_probe=None)
    snap = sampler.snapshot()
    assert snap.fps == 0
    assert snap.frame_time_ms == 0.0
    assert snap.memory_mb == 0.0


def test_explicit_frame_time() -> None:
    sampler = MetricsSampler(history=5, clock=FakeClock(1000), memory_probe=None)
    assert sampler.tick_frame(1040) == 40
    assert sampler.tick_frame(1060) == 20
    assert sampler.fps() == 33


def test_measure_processing_records_duration() -> None:
    clock = FakeClock()
    sampler = MetricsSampler(history=5, clock=clock, memory_probe=None)

    def work() -> str:
        clock.advance(3.456)
        return "done"

    assert sampler.measure_processing(work) == "done"
    assert sampler.snapshot().data_processing_ms == pytest.approx(3.46)


def test_failing_memory_probe_reports_zero() -> None:
    def probe() -> float:
        raise psutil.AccessDenied()

    sampler = MetricsSampler(history=5, clock=FakeClock(), memory_probe=probe)
    assert sampler.snapshot().memory_mb == 0.0


def test_reset_clears_window() -> None:
    clock = FakeClock()
    sampler = MetricsSampler(history=5, clock=clock, memory_probe=None)
    clock.advance(16)
    sampler.tick_frame()
    sampler.reset()
    assert sampler.frame_count == 0
    assert sampler.fps() == 0


def test_rejects_non_positive_history() -> None:
    with pytest.raises(ConfigurationError):
        MetricsSampler(history=0)
