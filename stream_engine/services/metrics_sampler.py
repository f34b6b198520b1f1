"""Frame metrics sampler with a fixed-size rolling window of frame times."""

import logging
import os
import time
from collections import deque
from typing import Callable, Deque, Optional, TypeVar

import psutil

from stream_engine.core.config import settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.metrics import MetricsSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


def perf_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000


def process_memory_mb() -> float:
    """Resident set size of this process in MB."""
    return psutil.Process(os.getpid()).memory_info().rss / 1048576


class MetricsSampler:
    """
    Rolling frame timer.

    tick_frame() runs once per rendered frame; snapshot() runs on the slower
    metrics tick and turns the window into fps, frame time and memory.
    """

    def __init__(
        self,
        history: Optional[int] = None,
        clock: Callable[[], float] = perf_ms,
        memory_probe: Optional[Callable[[], float]] = process_memory_mb,
    ) -> None:
        """
        Initialize the sampler.

        Args:
            history: Number of frame times kept in the rolling window.
            clock: Millisecond clock.
            memory_probe: Returns memory use in MB, or None when unavailable.
        """
        self.history = settings.frame_history if history is None else history
        if self.history <= 0:
            raise ConfigurationError(f"history must be positive, got {self.history}")
        self._clock = clock
        self._memory_probe = memory_probe
        self._frame_times: Deque[float] = deque(maxlen=self.history)
        self.frame_count = 0
        self.last_frame_time = clock()
        self.data_processing_ms = 0.0

    def tick_frame(self, now: Optional[float] = None) -> float:
        """
        Record the time since the previous frame.

        Args:
            now: Frame time in milliseconds, read from the clock when omitted.

        Returns:
            The recorded frame duration in milliseconds.
        """
        now = self._clock() if now is None else now
        delta = now - self.last_frame_time
        self._frame_times.append(delta)
        self.frame_count += 1
        self.last_frame_time = now
        return delta

    def mean_frame_time(self) -> float:
        if not self._frame_times:
            return 0.0
        return sum(self._frame_times) / len(self._frame_times)

    def fps(self) -> int:
        mean = self.mean_frame_time()
        if mean <= 0:
            return 0
        return round(1000 / mean)

    def snapshot(self) -> MetricsSnapshot:
        """Materialize the current rolling window."""
        return MetricsSnapshot(
            fps=self.fps(),
            frame_time_ms=round(self.mean_frame_time(), 2),
            memory_mb=round(self._read_memory(), 2),
            data_processing_ms=round(self.data_processing_ms, 2),
            frame_count=self.frame_count,
        )

    def measure_processing(self, fn: Callable[[], T]) -> T:
        """Run fn and record its duration as data processing time."""
        start = self._clock()
        result = fn()
        self.data_processing_ms = self._clock() - start
        return result

    def reset(self) -> None:
        """Clear the rolling window and frame counter."""
        self._frame_times.clear()
        self.frame_count = 0
        self.data_processing_ms = 0.0
        self.last_frame_time = self._clock()

    def _read_memory(self) -> float:
        if self._memory_probe is None:
            return 0.0
        try:
            return self._memory_probe() or 0.0
        except psutil.Error as e:
            logger.warning(f"Memory probe failed: {str(e)}")
            return 0.0
