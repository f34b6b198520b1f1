"""Filter engine: conjunctive predicates over a sample sequence."""

from typing import Iterable, Tuple

from stream_engine.models.sample import FilterSpec, Sample


def is_empty(spec: FilterSpec) -> bool:
    """True when the filter places no constraint at all."""
    return (
        not spec.categories
        and spec.min_value is None
        and spec.max_value is None
        and spec.time_range is None
    )


def matches(sample: Sample, spec: FilterSpec) -> bool:
    """
    Check one sample against every present predicate.

    Args:
        sample: Sample to test.
        spec: Filter to apply.

    Returns:
        True if the sample passes all predicates.
    """
    if spec.categories and sample.category not in spec.categories:
        return False
    if spec.min_value is not None and sample.value < spec.min_value:
        return False
    if spec.max_value is not None and sample.value > spec.max_value:
        return False
    if spec.time_range is not None:
        if sample.timestamp < spec.time_range.start or sample.timestamp > spec.time_range.end:
            return False
    return True


def apply_filter(sequence: Iterable[Sample], spec: FilterSpec) -> Tuple[Sample, ...]:
    """
    Filter a sequence in a single pass, preserving input order.

    Args:
        sequence: Samples to filter. Left untouched.
        spec: Filter to apply.

    Returns:
        New tuple with the matching samples.
    """
    if is_empty(spec):
        return tuple(sequence)
    return tuple(sample for sample in sequence if matches(sample, spec))
