"""
Watermark Resolver - Estimates how far data is actually available.

If the data is complete the next run starts at the end of this interval,
otherwise at the latest available point plus one dataset granularity.
"""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import pandas as pd

from slidewatch.core.domain.metadata import DatasetInfo, MetricSlice
from slidewatch.core.domain.window import AnalysisInterval
from slidewatch.core.ports.data_provider import DataProvider

logger = logging.getLogger(__name__)


def resolve_watermark(
    provider: DataProvider,
    interval: AnalysisInterval,
    metric_id: int,
    filters: dict[str, list[str]],
    dataset: DatasetInfo | None,
) -> datetime | None:
    """
    Last fully observed timestamp of a run.

    Args:
        provider: Port to read the metric series
        interval: Analysis interval of the run
        metric_id: Metric under analysis
        filters: Dimension filters of the metric
        dataset: Dataset of the metric

    Returns:
        Watermark clamped to the interval end, or None when no data was found
    """
    if dataset is None:
        return interval.end

    metric_slice = MetricSlice(metric_id, interval.start, interval.end, filters)
    series = provider.fetch_series(metric_slice)
    if series.empty:
        logger.warning(f"No data for metric {metric_id} between {interval.start} and {interval.end}, watermark unknown")
        return None

    last = pd.Timestamp(series["ds"].iloc[-1])
    if last.tzinfo is None:
        last = last.tz_localize("UTC")
    last_local = last.to_pydatetime().astimezone(ZoneInfo(dataset.timezone))

    estimate = dataset.granularity.to_period().add_to(last_local)
    return min(estimate, interval.end)
