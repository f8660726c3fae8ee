"""
Window Generator - Splits an analysis interval into monitoring windows.

Window end anchors walk from the aligned interval start to the aligned
interval end in bucket period steps. Each anchor yields the window
``[anchor - delay - size, anchor - delay]``, so consecutive windows may
overlap or leave gaps depending on window size versus bucket period.
"""

import logging
from datetime import datetime, timedelta

from slidewatch.core.domain.window import AnalysisInterval, EffectiveWindowPolicy, MonitoringWindow
from slidewatch.core.services.alignment import align_to_boundary

logger = logging.getLogger(__name__)


def window_end_anchors(interval: AnalysisInterval, window_policy: EffectiveWindowPolicy) -> list[datetime]:
    """
    Ordered window end anchors of an interval.

    The walk steps first and collects afterwards, so the first anchor is one
    bucket after the aligned start and the last one is the first anchor not
    before the aligned end.
    """
    if window_policy.bucket_period.to_timedelta() <= timedelta(0):
        raise ValueError(f"Bucket period {window_policy.bucket_period} does not advance")

    def align(moment: datetime) -> datetime:
        return align_to_boundary(
            moment,
            window_policy.timezone,
            window_policy.dataset_unit,
            window_policy.frequency,
            window_policy.max_minute_frequency,
        )

    aligned_end = align(interval.end)
    anchor = align(interval.start)

    anchors = []
    while anchor < aligned_end:
        anchor = window_policy.bucket_period.add_to(anchor)
        anchors.append(anchor)
    return anchors


def monitoring_windows(
    interval: AnalysisInterval,
    window_policy: EffectiveWindowPolicy,
    moving_window: bool,
) -> list[MonitoringWindow]:
    """
    Monitoring windows of a run, in chronological order.

    Without moving window detection, or when the sliding windows cannot be
    computed, the whole interval is returned as a single window.
    """
    if moving_window:
        try:
            delay = window_policy.window_delay_period
            size = window_policy.window_size_period
            windows = []
            for anchor in window_end_anchors(interval, window_policy):
                end = delay.subtract_from(anchor)
                start = size.subtract_from(end)
                windows.append(MonitoringWindow(start, end))
            for window in windows:
                logger.info(f"Will run detection in window {window}")
            return windows
        except Exception as e:
            logger.info(f"Can't generate moving monitoring windows, calling with single detection window: {e}")

    return [MonitoringWindow.covering(interval)]
