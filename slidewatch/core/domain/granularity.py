"""
Time Granularity Domain Models - Units, granularities and calendar-aware periods.

Periods split into calendar fields (weeks, days) that are applied on the wall
clock of the target timezone, and exact fields (hours and finer) that are
applied as absolute durations. A one day step from local midnight therefore
lands on the next local midnight even across a DST change.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, model_validator


class TimeUnit(str, Enum):
    """Granularity units understood by datasets and detection configs."""

    MILLISECONDS = "MILLISECONDS"
    SECONDS = "SECONDS"
    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"

    @property
    def is_sub_hour(self) -> bool:
        return self in (TimeUnit.MILLISECONDS, TimeUnit.SECONDS, TimeUnit.MINUTES)


_ISO_PERIOD = re.compile(
    r"^P(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d{1,3})?)S)?)?$"
)


@dataclass(frozen=True)
class Period:
    """A span of time expressed in fields, like an ISO-8601 duration."""

    weeks: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    millis: int = 0

    @classmethod
    def of(cls, amount: int, unit: TimeUnit) -> "Period":
        if unit == TimeUnit.DAYS:
            return cls(days=amount)
        if unit == TimeUnit.HOURS:
            return cls(hours=amount)
        if unit == TimeUnit.MINUTES:
            return cls(minutes=amount)
        if unit == TimeUnit.SECONDS:
            return cls(seconds=amount)
        return cls(millis=amount)

    @classmethod
    def parse(cls, text: str) -> "Period":
        """
        Parse an ISO-8601 duration such as ``PT15M``, ``P1D`` or ``P1DT12H``.

        Years and months have no fixed length and are rejected.
        """
        value = text.strip().upper()
        match = _ISO_PERIOD.match(value)
        if not match or value in ("P", "PT") or value.endswith("T"):
            raise ValueError(f"Unsupported period '{text}'")

        fields = {k: v for k, v in match.groupdict().items() if v is not None}
        seconds_text = fields.pop("seconds", "0")
        whole, _, fraction = seconds_text.partition(".")
        millis = int(fraction.ljust(3, "0")) if fraction else 0
        return cls(
            weeks=int(fields.get("weeks", 0)),
            days=int(fields.get("days", 0)),
            hours=int(fields.get("hours", 0)),
            minutes=int(fields.get("minutes", 0)),
            seconds=int(whole),
            millis=millis,
        )

    def to_timedelta(self) -> timedelta:
        """Standard duration, assuming every day is 24 hours long."""
        return timedelta(
            weeks=self.weeks,
            days=self.days,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
            milliseconds=self.millis,
        )

    def add_to(self, moment: datetime) -> datetime:
        return self._shift(moment, 1)

    def subtract_from(self, moment: datetime) -> datetime:
        return self._shift(moment, -1)

    def _shift(self, moment: datetime, sign: int) -> datetime:
        tz = moment.tzinfo
        result = moment

        calendar_days = self.weeks * 7 + self.days
        if calendar_days:
            wall = result.replace(tzinfo=None) + sign * timedelta(days=calendar_days)
            result = wall.replace(tzinfo=tz)
            if tz is not None:
                # normalise wall times that fall into a DST gap
                result = result.astimezone(timezone.utc).astimezone(tz)

        exact = timedelta(
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
            milliseconds=self.millis,
        )
        if exact:
            if tz is None:
                result = result + sign * exact
            else:
                result = (result.astimezone(timezone.utc) + sign * exact).astimezone(tz)
        return result

    def __str__(self) -> str:
        date_part = ""
        if self.weeks:
            date_part += f"{self.weeks}W"
        if self.days:
            date_part += f"{self.days}D"
        time_part = ""
        if self.hours:
            time_part += f"{self.hours}H"
        if self.minutes:
            time_part += f"{self.minutes}M"
        if self.seconds or self.millis:
            time_part += f"{self.seconds}.{self.millis:03d}S" if self.millis else f"{self.seconds}S"
        if not date_part and not time_part:
            return "PT0S"
        return "P" + date_part + (f"T{time_part}" if time_part else "")


class TimeGranularity(BaseModel):
    """A size and unit pair, e.g. 5 MINUTES or 1 DAYS."""

    size: int = 1
    unit: TimeUnit = TimeUnit.DAYS

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data):
        # accepts "5_MINUTES" as shorthand
        if isinstance(data, str):
            size, _, unit = data.partition("_")
            return {"size": int(size), "unit": unit.upper()}
        return data

    def to_period(self) -> Period:
        return Period.of(self.size, self.unit)

    def __str__(self) -> str:
        return f"{self.size}_{self.unit.value}"
