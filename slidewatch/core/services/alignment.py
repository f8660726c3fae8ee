"""
Boundary Alignment - Rounds timestamps down to the bucket boundary of a dataset.

Datasets finer than an hour are aligned by the detection run frequency when
it is a whole number of minutes no larger than half an hour, so 12:53 on a
5 minute dataset with a 15 minute frequency becomes 12:45. Coarser
frequencies fall back to the hour. Hourly and daily datasets are aligned to
their own granularity in the given timezone.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from slidewatch.core.domain.granularity import TimeGranularity, TimeUnit

MAX_MINUTE_FREQUENCY = 30


def uses_minute_frequency(
    dataset_unit: TimeUnit,
    frequency: TimeGranularity,
    max_minute_frequency: int = MAX_MINUTE_FREQUENCY,
) -> bool:
    return (
        dataset_unit.is_sub_hour
        and frequency.unit == TimeUnit.MINUTES
        and frequency.size <= max_minute_frequency
    )


def align_to_boundary(
    moment: datetime,
    tz: str,
    dataset_unit: TimeUnit,
    frequency: TimeGranularity,
    max_minute_frequency: int = MAX_MINUTE_FREQUENCY,
) -> datetime:
    """
    Round a timestamp down to the nearest bucket boundary.

    Args:
        moment: Timestamp to align
        tz: Timezone id used for calendar arithmetic
        dataset_unit: Granularity unit of the dataset
        frequency: Detection run frequency
        max_minute_frequency: Largest minute frequency aligned within the hour

    Returns:
        Aligned timestamp in the given timezone
    """
    local = moment.astimezone(ZoneInfo(tz))

    if dataset_unit.is_sub_hour:
        if uses_minute_frequency(dataset_unit, frequency, max_minute_frequency):
            size = frequency.size
            rounded = (local.minute // size) * size
            return local.replace(minute=rounded, second=0, microsecond=0)
        return floor_to_unit(local, TimeUnit.HOURS)

    return floor_to_unit(local, dataset_unit)


def floor_to_unit(local: datetime, unit: TimeUnit) -> datetime:
    """Truncate a zoned timestamp to the start of its unit."""
    if unit == TimeUnit.DAYS:
        floored = local.replace(hour=0, minute=0, second=0, microsecond=0)
        # midnight may not exist on DST change days
        return floored.astimezone(timezone.utc).astimezone(local.tzinfo)
    if unit == TimeUnit.HOURS:
        return local.replace(minute=0, second=0, microsecond=0)
    if unit == TimeUnit.MINUTES:
        return local.replace(second=0, microsecond=0)
    if unit == TimeUnit.SECONDS:
        return local.replace(microsecond=0)
    return local.replace(microsecond=(local.microsecond // 1000) * 1000)
