"""Bounded stream buffer with oldest-first eviction."""

import logging
from collections import deque
from typing import Deque, Iterable, Optional, Tuple

from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.sample import Sample

logger = logging.getLogger(__name__)

Snapshot = Tuple[Sample, ...]


class BoundedStreamBuffer:
    """
    Live sequence of samples capped at max_size.

    Samples are held in a fixed-capacity ring. Every change publishes a new
    tuple snapshot; snapshots already handed out are never touched, so a
    reader sees a buffer state from fully before or fully after a change.
    """

    def __init__(self, max_size: int) -> None:
        """
        Initialize the buffer.

        Args:
            max_size: Maximum number of retained samples.

        Raises:
            ConfigurationError: If max_size is not positive.
        """
        if max_size <= 0:
            raise ConfigurationError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._ring: Deque[Sample] = deque(maxlen=max_size)
        self._snapshot: Snapshot = ()
        self.last_timestamp: Optional[int] = None

    @property
    def snapshot(self) -> Snapshot:
        """Current immutable view of the buffer."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def append(self, sample: Sample) -> Snapshot:
        """
        Append one sample, evicting the oldest beyond capacity.

        Args:
            sample: Sample to append.

        Returns:
            The new snapshot.
        """
        self._ring.append(sample)
        self._advance_cursor(sample.timestamp)
        return self._publish()

    def append_batch(self, samples: Iterable[Sample]) -> Snapshot:
        """
        Append a batch with a single trim pass and a single publish.

        Args:
            samples: Samples in arrival order.

        Returns:
            The new snapshot.
        """
        batch = list(samples)
        if not batch:
            return self._snapshot

        if len(batch) >= self.max_size:
            self._ring.clear()
            batch = batch[-self.max_size:]
        self._ring.extend(batch)

        for sample in batch:
            self._advance_cursor(sample.timestamp)
        return self._publish()

    def reset(self) -> Snapshot:
        """Empty the buffer and restart the timestamp cursor."""
        self._ring.clear()
        self.last_timestamp = None
        logger.info("Stream buffer reset")
        return self._publish()

    def _advance_cursor(self, timestamp: int) -> None:
        if self.last_timestamp is None or timestamp > self.last_timestamp:
            self.last_timestamp = timestamp

    def _publish(self) -> Snapshot:
        self._snapshot = tuple(self._ring)
        return self._snapshot
