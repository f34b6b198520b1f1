"""Synthetic sample source with realistic time-series characteristics."""

import logging
import math
import random
import time
from typing import List, Optional

from stream_engine.core.config import settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.sample import Sample

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class SampleGenerator:
    """Produces timestamped samples on demand."""

    def __init__(
        self,
        categories: Optional[List[str]] = None,
        value_min: Optional[float] = None,
        value_max: Optional[float] = None,
        interval_ms: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            categories: Category tags to draw from.
            value_min: Lower clamp for generated values.
            value_max: Upper clamp for generated values.
            interval_ms: Spacing between consecutive samples.
            seed: Seed for a reproducible stream.
        """
        self._rng = random.Random(seed)
        self.categories = list(categories or settings.categories)
        self.interval_ms = interval_ms or settings.sample_interval_ms
        self.value_min = settings.value_min if value_min is None else value_min
        self.value_max = settings.value_max if value_max is None else value_max
        self.base_time = now_ms()
        self.trend = 0.0

    def generate_point(self, category: Optional[str] = None, offset: int = 0) -> Sample:
        """
        Generate a single sample at base_time + offset.

        Args:
            category: Category tag, random when omitted.
            offset: Milliseconds past the generator base time.

        Returns:
            Generated sample.
        """
        category_name = category or self._rng.choice(self.categories)
        timestamp = self.base_time + offset

        self.trend += (self._rng.random() - 0.5) * 0.1
        self.trend = max(-2.0, min(2.0, self.trend))

        base_value = 50 + self.trend * 10
        noise = (self._rng.random() - 0.5) * 10
        seasonal = math.sin((offset / 1000) * 0.01) * 5
        value = max(self.value_min, min(self.value_max, base_value + noise + seasonal))

        return Sample(
            timestamp=timestamp,
            value=round(value, 2),
            category=category_name,
            metadata={
                "quality": "good" if self._rng.random() > 0.1 else "warning",
                "source": f"sensor-{self._rng.randrange(10)}",
            },
        )

    def generate_batch(self, count: int, start_timestamp: Optional[int] = None) -> List[Sample]:
        """
        Generate an ordered batch of samples spaced one interval apart.

        Args:
            count: Number of samples.
            start_timestamp: Timestamp of the first sample, base time if omitted.

        Returns:
            List of samples in ascending timestamp order.
        """
        if count < 0:
            raise ConfigurationError(f"count must be non-negative, got {count}")
        start = self.base_time if start_timestamp is None else start_timestamp
        return [
            self.generate_point(offset=start - self.base_time + i * self.interval_ms)
            for i in range(count)
        ]

    def generate_next(self, last_timestamp: int) -> Sample:
        """
        Generate the sample following last_timestamp.

        Args:
            last_timestamp: Timestamp of the previous sample.

        Returns:
            Sample one interval after last_timestamp.
        """
        return self.generate_point(offset=last_timestamp + self.interval_ms - self.base_time)

    def set_value_range(self, value_min: float, value_max: float) -> None:
        """Set the clamp range for generated values."""
        if value_min > value_max:
            raise ConfigurationError(
                f"value_min {value_min} is greater than value_max {value_max}")
        self.value_min = value_min
        self.value_max = value_max

    def set_categories(self, categories: List[str]) -> None:
        """Set the category tags to draw from."""
        if not categories:
            raise ConfigurationError("categories must not be empty")
        self.categories = list(categories)

    def reset(self) -> None:
        """Restart the base time and trend."""
        self.base_time = now_ms()
        self.trend = 0.0
        logger.info("Sample generator reset")
