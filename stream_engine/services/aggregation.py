"""Aggregation engine: time buckets and dataset statistics."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.sample import (
    AggregationPeriod,
    Bucket,
    DatasetStats,
    FilterSpec,
    QuerySpec,
    Sample,
)
from stream_engine.services.filter_engine import apply_filter

logger = logging.getLogger(__name__)


class _Accumulator:
    __slots__ = ("total", "minimum", "maximum", "count", "category")

    def __init__(self, sample: Sample) -> None:
        self.total = sample.value
        self.minimum = sample.value
        self.maximum = sample.value
        self.count = 1
        self.category = sample.category

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1
        if value < self.minimum:
            self.minimum = value
        if value > self.maximum:
            self.maximum = value


def bucket_start(timestamp: int, bucket_width_ms: int) -> int:
    """Left-closed bucket boundary containing timestamp."""
    return (timestamp // bucket_width_ms) * bucket_width_ms


def aggregate(sequence: Sequence[Sample], bucket_width_ms: int) -> Tuple[Bucket, ...]:
    """
    Group samples into fixed-width time buckets.

    Args:
        sequence: Samples in any timestamp order.
        bucket_width_ms: Bucket width in milliseconds.

    Returns:
        Buckets sorted ascending by start timestamp. The representative
        category of a bucket is that of its first member in input order.

    Raises:
        ConfigurationError: If bucket_width_ms is not positive.
    """
    if bucket_width_ms <= 0:
        raise ConfigurationError(
            f"bucket_width_ms must be positive, got {bucket_width_ms}")

    groups: Dict[int, _Accumulator] = {}
    for sample in sequence:
        key = bucket_start(sample.timestamp, bucket_width_ms)
        acc = groups.get(key)
        if acc is None:
            groups[key] = _Accumulator(sample)
        else:
            acc.add(sample.value)

    return tuple(
        Bucket(
            bucket_start_timestamp=key,
            mean_value=acc.total / acc.count,
            min_value=acc.minimum,
            max_value=acc.maximum,
            sample_count=acc.count,
            representative_category=acc.category,
        )
        for key, acc in sorted(groups.items())
    )


def summarize(sequence: Sequence[Sample]) -> DatasetStats:
    """
    Compute count, extrema, mean and categories of a sequence.

    Args:
        sequence: Samples to summarize.

    Returns:
        Dataset statistics; all zero for an empty sequence.
    """
    if not sequence:
        return DatasetStats()

    values = [sample.value for sample in sequence]
    categories: Dict[str, None] = {}
    for sample in sequence:
        categories.setdefault(sample.category, None)

    return DatasetStats(
        count=len(values),
        min=min(values),
        max=max(values),
        avg=sum(values) / len(values),
        categories=list(categories),
    )


def run_query(
    sequence: Sequence[Sample],
    spec: Optional[Union[QuerySpec, FilterSpec]] = None,
    period: Optional[AggregationPeriod] = None,
) -> Union[Tuple[Sample, ...], Tuple[Bucket, ...]]:
    """
    Filter a sequence and, when a period is set, aggregate the result.

    Args:
        sequence: Buffer snapshot to query.
        spec: Query or bare filter.
        period: Aggregation period, overrides the one in a QuerySpec.

    Returns:
        Filtered samples, or buckets when a period applies.
    """
    if isinstance(spec, QuerySpec):
        filters = spec.filters
        period = period or spec.period
    else:
        filters = spec or FilterSpec()

    filtered = apply_filter(sequence, filters)
    if period is None:
        return filtered

    buckets = aggregate(filtered, period.milliseconds)
    logger.debug(
        f"Aggregated {len(filtered)} samples into {len(buckets)} "
        f"buckets of {period.value}")
    return buckets


def bucket_values(buckets: Sequence[Bucket]) -> List[Sample]:
    """
    Express buckets as samples at their start timestamp with the mean value.

    Used to feed aggregated output through the viewport and mapping steps.
    """
    return [
        Sample(
            timestamp=bucket.bucket_start_timestamp,
            value=bucket.mean_value,
            category=bucket.representative_category,
            metadata={
                "count": bucket.sample_count,
                "min": bucket.min_value,
                "max": bucket.max_value,
            },
        )
        for bucket in buckets
    ]
