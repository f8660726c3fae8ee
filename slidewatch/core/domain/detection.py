"""
Detection Domain Model - Configuration of a single sliding-window detection.

Uses Pydantic for validation and schema generation.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from slidewatch.core.domain.granularity import TimeGranularity, TimeUnit

METRIC_URN_PREFIX = "slidewatch:metric:"


@dataclass(frozen=True)
class MetricEntity:
    """Metric id plus the dimension filters encoded in a metric URN."""

    id: int
    filters: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_urn(cls, urn: str) -> "MetricEntity":
        """
        Parse ``slidewatch:metric:<id>[:key=value]*``.

        Repeated keys accumulate, so ``:country=us:country=ca`` filters on
        both values.
        """
        if not urn or not urn.startswith(METRIC_URN_PREFIX):
            raise ValueError(f"Not a metric URN: '{urn}'")

        parts = urn[len(METRIC_URN_PREFIX):].split(":")
        try:
            metric_id = int(parts[0])
        except ValueError:
            raise ValueError(f"Metric URN '{urn}' has a non-numeric id") from None

        filters: dict[str, list[str]] = {}
        for part in parts[1:]:
            key, sep, value = part.partition("=")
            if not sep or not key:
                raise ValueError(f"Malformed filter '{part}' in metric URN '{urn}'")
            filters.setdefault(key, []).append(value)
        return cls(id=metric_id, filters=filters)

    def to_urn(self) -> str:
        tail = "".join(
            f":{key}={value}"
            for key in sorted(self.filters)
            for value in self.filters[key]
        )
        return f"{METRIC_URN_PREFIX}{self.id}{tail}"


class DetectionSpec(BaseModel):
    """
    Configuration bag for one metric/detector pair.

    With ``moving_window`` disabled the whole analysis interval is handed to
    the detector as a single window.
    """

    # --- Identity ---
    id: int | None = None
    name: str
    description: str = ""

    # --- What to analyse ---
    metric_urn: str
    detector: str  # component reference, "$name" or "name"

    # --- Moving Window ---
    moving_window: bool = False
    window_delay: int = 0
    window_delay_unit: TimeUnit = TimeUnit.DAYS
    window_size: int = 1
    window_unit: TimeUnit = TimeUnit.DAYS

    # --- Alignment ---
    # run frequency, only used for sub-hour datasets
    frequency: TimeGranularity = Field(
        default_factory=lambda: TimeGranularity(size=15, unit=TimeUnit.MINUTES)
    )
    timezone: str | None = None  # defaults to dataset timezone
    bucket_period: str | None = None  # ISO-8601, e.g. "PT30M"

    # --- Cache Warm-up ---
    caching_period_lookback: int | None = None  # millis, negative disables

    @property
    def detector_name(self) -> str:
        return component_name(self.detector)


def component_name(reference: str) -> str:
    """Strip the ``$`` marker from a component reference."""
    return reference[1:] if reference.startswith("$") else reference
