"""
Result Domain Models - Data structures for anomalies and run results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from slidewatch.core.domain.window import as_utc


@dataclass
class AnomalyRecord:
    """An anomaly reported by a detector for one monitoring window."""

    start: datetime
    end: datetime
    metric: str | None = None
    collection: str | None = None  # dataset name
    metric_urn: str | None = None
    detection_config_id: int | None = None
    dimensions: dict[str, list[str]] = field(default_factory=dict)
    properties: dict[str, Any] = field(default_factory=dict)
    score: float | None = None

    def __post_init__(self):
        self.start = as_utc(self.start)
        self.end = as_utc(self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "metric": self.metric,
            "collection": self.collection,
            "metric_urn": self.metric_urn,
            "detection_config_id": self.detection_config_id,
            "dimensions": self.dimensions,
            "properties": self.properties,
            "score": self.score,
        }


@dataclass
class RunResult:
    """
    Outcome of one detection run.

    ``watermark`` is the timestamp to resume from; None means the data
    availability is unknown and the cursor must not advance.
    """

    anomalies: list[AnomalyRecord] = field(default_factory=list)
    watermark: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "anomalies": [a.to_dict() for a in self.anomalies],
            "watermark": self.watermark.isoformat() if self.watermark else None,
        }
