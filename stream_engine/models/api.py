"""Pydantic models for the HTTP surface."""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from stream_engine.models.geometry import VirtualWindow
from stream_engine.models.sample import Bucket, DatasetStats, Sample


class BatchResponse(BaseModel):
    """Model for a generated batch."""

    success: bool = True
    data: List[Sample]
    count: int
    timestamp: int


class NextSampleRequest(BaseModel):
    """Model for requesting the sample after a timestamp."""

    model_config = ConfigDict(populate_by_name=True)

    last_timestamp: Optional[int] = Field(None, alias="lastTimestamp")


class NextSampleResponse(BaseModel):
    """Model for a single generated sample."""

    success: bool = True
    data: Sample
    timestamp: int


class IngestRequest(BaseModel):
    """Model for pushing external samples."""

    samples: List[Sample] = Field(..., min_length=1)


class IngestResponse(BaseModel):
    """Model for the ingest acknowledgement."""

    accepted: int
    pending: int


class QueryResponse(BaseModel):
    """Model for a query over the current buffer."""

    data: List[Union[Bucket, Sample]]
    count: int
    aggregated: bool
    stats: DatasetStats


class WindowResponse(BaseModel):
    """Model for a virtual window over the newest-first buffer."""

    window: VirtualWindow
    items: List[Sample]


class StreamStatusResponse(BaseModel):
    """Model for the streaming toggle state."""

    streaming: bool
    size: int


class GenerateResponse(BaseModel):
    """Model for samples appended on request."""

    added: int
    size: int
    last_timestamp: Optional[int] = None
