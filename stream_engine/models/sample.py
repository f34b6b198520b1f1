"""Sample, filter and bucket models for the stream engine."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Sample(BaseModel):
    """One timestamped scalar measurement with a category tag."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    value: float = Field(allow_inf_nan=False)
    category: str
    metadata: Optional[Dict[str, Any]] = None


class TimeRange(BaseModel):
    """Inclusive timestamp range in milliseconds."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int


class FilterSpec(BaseModel):
    """Conjunctive filter over category, value bounds and time range."""

    model_config = ConfigDict(frozen=True)

    categories: frozenset[str] = Field(default_factory=frozenset)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    time_range: Optional[TimeRange] = None


class Bucket(BaseModel):
    """Time-aligned summary of the samples sharing one bucket interval."""

    model_config = ConfigDict(frozen=True)

    bucket_start_timestamp: int
    mean_value: float
    min_value: float
    max_value: float
    sample_count: int = Field(ge=1)
    representative_category: str


class DatasetStats(BaseModel):
    """Summary statistics over a whole sequence."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    categories: List[str] = Field(default_factory=list)


class AggregationPeriod(str, Enum):
    """Aggregation periods offered to the UI."""

    ONE_MINUTE = "1min"
    FIVE_MINUTES = "5min"
    ONE_HOUR = "1hour"

    @property
    def milliseconds(self) -> int:
        """Bucket width of this period."""
        return _PERIOD_MILLISECONDS[self]

    @property
    def label(self) -> str:
        """Human readable label."""
        return _PERIOD_LABELS[self]


_PERIOD_MILLISECONDS = {
    AggregationPeriod.ONE_MINUTE: 60000,
    AggregationPeriod.FIVE_MINUTES: 300000,
    AggregationPeriod.ONE_HOUR: 3600000,
}

_PERIOD_LABELS = {
    AggregationPeriod.ONE_MINUTE: "1 Minute",
    AggregationPeriod.FIVE_MINUTES: "5 Minutes",
    AggregationPeriod.ONE_HOUR: "1 Hour",
}


class QuerySpec(BaseModel):
    """A UI-driven query: filter, then optionally aggregate."""

    model_config = ConfigDict(frozen=True)

    filters: FilterSpec = Field(default_factory=FilterSpec)
    period: Optional[AggregationPeriod] = None

    @model_validator(mode="after")
    def _check_value_bounds(self) -> "QuerySpec":
        low, high = self.filters.min_value, self.filters.max_value
        if low is not None and high is not None and low > high:
            raise ValueError(f"min_value {low} is greater than max_value {high}")
        return self
