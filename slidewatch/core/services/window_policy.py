"""
Window Policy - Bucket sizing, cache lookback and the minute level speed-up.

The bucket period is the step between consecutive monitoring window end
times: the run frequency for sub-hour datasets (or one hour when the
frequency is too coarse), otherwise one unit of the dataset granularity.
"""

import logging

from slidewatch.core.domain.detection import DetectionSpec
from slidewatch.core.domain.granularity import Period, TimeGranularity, TimeUnit
from slidewatch.core.domain.metadata import DatasetInfo
from slidewatch.core.domain.settings import SchedulingPolicy
from slidewatch.core.domain.window import AnalysisInterval, EffectiveWindowPolicy
from slidewatch.core.services.alignment import MAX_MINUTE_FREQUENCY, uses_minute_frequency

logger = logging.getLogger(__name__)


def bucket_period_for(
    dataset_unit: TimeUnit,
    frequency: TimeGranularity,
    max_minute_frequency: int = MAX_MINUTE_FREQUENCY,
) -> Period:
    if uses_minute_frequency(dataset_unit, frequency, max_minute_frequency):
        return Period(minutes=frequency.size)
    if dataset_unit.is_sub_hour:
        return Period(hours=1)
    return Period.of(1, dataset_unit)


def caching_lookback_for(dataset_unit: TimeUnit, policy: SchedulingPolicy) -> int:
    """Default cache warm-up lookback in millis, negative when disabled."""
    if dataset_unit == TimeUnit.DAYS:
        return policy.caching_lookback_daily
    if dataset_unit == TimeUnit.HOURS:
        return policy.caching_lookback_hourly
    if dataset_unit == TimeUnit.MINUTES:
        return policy.caching_lookback_minutely
    return policy.caching_lookback_default


def speed_up(
    window_policy: EffectiveWindowPolicy,
    interval: AnalysisInterval,
    policy: SchedulingPolicy,
) -> EffectiveWindowPolicy:
    """
    Collapse small buckets over long intervals into daily windows.

    Bucket period, window size and window unit change together since a
    window spans ``[end - window_size * window_unit, end]``.
    """
    if (
        window_policy.bucket_period.to_timedelta() <= policy.speed_up_max_bucket
        and interval.span >= policy.speed_up_min_span
    ):
        logger.info(
            f"Speeding up detection: bucket {window_policy.bucket_period} over "
            f"{interval.span} replaced by daily windows"
        )
        return window_policy.with_daily_buckets()
    return window_policy


def derive_window_policy(
    spec: DetectionSpec,
    dataset: DatasetInfo,
    interval: AnalysisInterval,
    policy: SchedulingPolicy | None = None,
) -> EffectiveWindowPolicy:
    """
    Resolve the window settings of a run.

    Args:
        spec: Detection configuration
        dataset: Dataset of the analysed metric
        interval: Analysis interval of the run
        policy: Scheduling constants

    Returns:
        Immutable policy with overrides and the speed-up applied

    Raises:
        ValueError: the explicit bucket period cannot be parsed
    """
    policy = policy or SchedulingPolicy()
    dataset_unit = dataset.granularity.unit

    if spec.bucket_period:
        bucket_period = Period.parse(spec.bucket_period)
    else:
        bucket_period = bucket_period_for(dataset_unit, spec.frequency, policy.max_minute_frequency)

    if spec.caching_period_lookback is not None:
        caching_lookback = spec.caching_period_lookback
    else:
        caching_lookback = caching_lookback_for(dataset_unit, policy)

    window_policy = EffectiveWindowPolicy(
        timezone=spec.timezone or dataset.timezone,
        dataset_unit=dataset_unit,
        frequency=spec.frequency,
        bucket_period=bucket_period,
        window_size=spec.window_size,
        window_unit=spec.window_unit,
        window_delay=spec.window_delay,
        window_delay_unit=spec.window_delay_unit,
        caching_lookback=caching_lookback,
        max_minute_frequency=policy.max_minute_frequency,
    )
    return speed_up(window_policy, interval, policy)
