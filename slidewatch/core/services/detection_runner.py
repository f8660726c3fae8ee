"""
Detection Runner - The core engine of slidewatch.

Runs a detector over the monitoring windows of an analysis interval:
1. Warm up the data cache over a lookback-extended range
2. Generate the monitoring windows
3. Invoke the detector once per window, tolerating partial failure
4. Enrich anomalies with metric identity and detector name
5. Resolve the watermark and drop anomalies beyond it
"""

import logging
import time
from collections.abc import Mapping
from datetime import timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slidewatch.core.domain.detection import DetectionSpec, MetricEntity
from slidewatch.core.domain.metadata import MetricSlice
from slidewatch.core.domain.result import AnomalyRecord, RunResult
from slidewatch.core.domain.settings import SchedulingPolicy
from slidewatch.core.domain.window import AnalysisInterval, MonitoringWindow
from slidewatch.core.errors import (
    ConfigurationError,
    DetectionAborted,
    DetectionFailed,
    DetectorDataInsufficientError,
)
from slidewatch.core.ports.data_provider import DataProvider
from slidewatch.core.ports.detector import AnomalyDetector
from slidewatch.core.services.watermark import resolve_watermark
from slidewatch.core.services.window_policy import derive_window_policy
from slidewatch.core.services.windows import monitoring_windows

logger = logging.getLogger(__name__)

PROP_DETECTOR_COMPONENT_NAME = "detectorComponentName"


class DetectionRunner:
    """
    Executes one detection over one analysis interval.

    Instances hold no state shared with other runners; run them side by side
    to evaluate several metrics or detectors concurrently.
    """

    def __init__(
        self,
        provider: DataProvider,
        spec: DetectionSpec,
        interval: AnalysisInterval,
        detectors: Mapping[str, AnomalyDetector],
        policy: SchedulingPolicy | None = None,
    ):
        """
        Resolve metric, dataset and detector of a detection.

        Args:
            provider: Port to read metadata and series
            spec: Detection configuration
            interval: Analysis interval of this run
            detectors: Registered detector components by name
            policy: Scheduling constants

        Raises:
            ConfigurationError: metric, dataset, detector or timezone cannot be resolved
        """
        self.provider = provider
        self.spec = spec
        self.interval = interval
        self.policy = policy or SchedulingPolicy()

        try:
            self.metric_entity = MetricEntity.from_urn(spec.metric_urn)
        except ValueError as e:
            raise ConfigurationError(f"Detection '{spec.name}': {e}") from e

        self.metric = provider.fetch_metric(self.metric_entity.id)
        if self.metric is None:
            raise ConfigurationError(f"Detection '{spec.name}': metric {self.metric_entity.id} not found")

        self.dataset = provider.fetch_dataset(self.metric.dataset)
        if self.dataset is None:
            raise ConfigurationError(f"Detection '{spec.name}': dataset '{self.metric.dataset}' not found")

        self.detector_name = spec.detector_name
        if self.detector_name not in detectors:
            raise ConfigurationError(f"Detection '{spec.name}': detector '{self.detector_name}' is not registered")
        self.detector = detectors[self.detector_name]

        try:
            self.window_policy = derive_window_policy(spec, self.dataset, interval, self.policy)
        except ValueError as e:
            raise ConfigurationError(f"Detection '{spec.name}': {e}") from e

        for tz in (self.window_policy.timezone, self.dataset.timezone):
            try:
                ZoneInfo(tz)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Detection '{spec.name}': unknown timezone '{tz}'") from e

    @property
    def metric_urn(self) -> str:
        return self.spec.metric_urn

    def monitoring_windows(self) -> list[MonitoringWindow]:
        return monitoring_windows(self.interval, self.window_policy, self.spec.moving_window)

    def run(self) -> RunResult:
        """
        Execute the detector over all monitoring windows.

        Returns:
            Anomalies confirmed by the watermark, and the watermark itself

        Raises:
            DetectionAborted: the leading windows all failed
            DetectionFailed: every window failed
        """
        self._warm_up_cache()

        windows = self.monitoring_windows()
        total = len(windows)
        succeeded = 0
        last_error: Exception | None = None
        anomalies: list[AnomalyRecord] = []

        for i, window in enumerate(windows):
            self._check_early_stop(total, succeeded, i, last_error)

            try:
                logger.info(
                    f"[Detection {self.spec.id}] start detection for metric {self.metric_urn} "
                    f"window ({i + 1}/{total}) - start {window.start} end {window.end}"
                )
                started = time.monotonic()
                found = self.detector.run_detection(window, self.metric_urn)
                elapsed_ms = int((time.monotonic() - started) * 1000)
                logger.info(
                    f"[Detection {self.spec.id}] end detection for metric {self.metric_urn} "
                    f"window ({i + 1}/{total}) - used {elapsed_ms} milliseconds, detected {len(found)} anomalies"
                )
                succeeded += 1
                anomalies.extend(found)
            except DetectorDataInsufficientError as e:
                logger.warning(f"[Detection {self.spec.id}] Insufficient data to run detection for window {window}")
                last_error = e
            except Exception as e:
                logger.warning(f"[Detection {self.spec.id}] detecting anomalies for window {window} failed", exc_info=True)
                last_error = e

        self._check_detection_status(total, succeeded, last_error)

        for anomaly in anomalies:
            self._enrich(anomaly)

        watermark = resolve_watermark(
            self.provider,
            self.interval,
            self.metric_entity.id,
            self.metric_entity.filters,
            self.dataset,
        )
        confirmed = [a for a in anomalies if watermark is not None and a.end <= watermark]
        if len(confirmed) < len(anomalies):
            logger.info(f"Dropped {len(anomalies) - len(confirmed)} anomalies ending after watermark {watermark}")
        return RunResult(anomalies=confirmed, watermark=watermark)

    def _warm_up_cache(self) -> None:
        lookback = self.window_policy.caching_lookback
        if lookback < 0:
            return
        cache_slice = MetricSlice(
            self.metric_entity.id,
            self.interval.start - timedelta(milliseconds=lookback),
            self.interval.end,
            self.metric_entity.filters,
        )
        self.provider.fetch_series(cache_slice)

    def _check_early_stop(self, total: int, succeeded: int, index: int, last_error: Exception | None) -> None:
        limit = self.policy.early_terminate_window
        if index == limit and succeeded == 0:
            raise DetectionAborted(
                f"Successive first {limit}/{total} detection windows failed for detection {self.spec.id} "
                f"metric {self.metric_urn} for monitoring window {self.interval.start} to {self.interval.end}. "
                f"Discard remaining windows",
                last_error,
            ) from last_error

    def _check_detection_status(self, total: int, succeeded: int, last_error: Exception | None) -> None:
        if succeeded == 0 and total > 0:
            raise DetectionFailed(
                f"Detection failed for all windows for detection {self.spec.id} detector {self.detector_name} "
                f"for monitoring window {self.interval.start} to {self.interval.end}",
                last_error,
            ) from last_error

    def _enrich(self, anomaly: AnomalyRecord) -> None:
        anomaly.detection_config_id = self.spec.id
        anomaly.metric_urn = self.metric_urn
        anomaly.metric = self.metric.name
        anomaly.collection = self.metric.dataset
        anomaly.dimensions = {k: list(v) for k, v in self.metric_entity.filters.items()}
        anomaly.properties[PROP_DETECTOR_COMPONENT_NAME] = self.detector_name
