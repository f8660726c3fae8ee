"""
Window Domain Models - Analysis intervals, monitoring windows and the
effective window policy derived for one run.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from slidewatch.core.domain.granularity import Period, TimeGranularity, TimeUnit


def as_utc(moment: datetime) -> datetime:
    """Read naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class AnalysisInterval:
    """Outer bound of all work in a run. Naive datetimes are read as UTC."""

    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if not self.start < self.end:
            raise ValueError(f"Interval end {self.end} is not after start {self.start}")

    @property
    def span(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class MonitoringWindow:
    """One ``[start, end)`` interval handed to the detector."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if not self.start < self.end:
            raise ValueError(f"Empty monitoring window {self.start} - {self.end}")

    @classmethod
    def covering(cls, interval: AnalysisInterval) -> "MonitoringWindow":
        return cls(interval.start, interval.end)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}/{self.end.isoformat()}"


@dataclass(frozen=True)
class EffectiveWindowPolicy:
    """Window settings after defaults, overrides and the speed-up are applied."""

    timezone: str
    dataset_unit: TimeUnit
    frequency: TimeGranularity
    bucket_period: Period
    window_size: int = 1
    window_unit: TimeUnit = TimeUnit.DAYS
    window_delay: int = 0
    window_delay_unit: TimeUnit = TimeUnit.DAYS
    caching_lookback: int = -1  # millis, negative disables the warm-up
    max_minute_frequency: int = 30
    sped_up: bool = False

    @property
    def window_size_period(self) -> Period:
        return Period.of(self.window_size, self.window_unit)

    @property
    def window_delay_period(self) -> Period:
        return Period.of(self.window_delay, self.window_delay_unit)

    def with_daily_buckets(self) -> "EffectiveWindowPolicy":
        return replace(
            self,
            bucket_period=Period(days=1),
            window_size=1,
            window_unit=TimeUnit.DAYS,
            sped_up=True,
        )
