"""
Metadata Domain Models - Read-only metric and dataset descriptions.
"""

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel

from slidewatch.core.domain.granularity import TimeGranularity


class MetricInfo(BaseModel):
    """A metric as registered in the catalog."""

    id: int
    name: str
    dataset: str
    query: str | None = None  # PromQL selector, defaults to the metric name


class DatasetInfo(BaseModel):
    """Granularity and timezone of the dataset a metric belongs to."""

    name: str
    granularity: TimeGranularity = TimeGranularity()
    timezone: str = "UTC"


@dataclass(frozen=True)
class MetricSlice:
    """Metric id, time range and filters of a series request."""

    metric_id: int
    start: datetime
    end: datetime
    filters: dict[str, list[str]] = field(default_factory=dict)
