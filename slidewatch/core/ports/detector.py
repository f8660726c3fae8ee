"""
AnomalyDetector Port - Interface for pluggable point detectors.

The scheduler hands one monitoring window at a time to a detector and treats
the anomaly-finding algorithm as opaque.
"""

from abc import ABC, abstractmethod

from slidewatch.core.domain.result import AnomalyRecord
from slidewatch.core.domain.window import MonitoringWindow


class AnomalyDetector(ABC):
    """
    Abstract interface for a detector component.

    Implementations:
    - RemoteDetectorAdapter: HTTP detection endpoint
    """

    @abstractmethod
    def run_detection(self, window: MonitoringWindow, metric_urn: str) -> list[AnomalyRecord]:
        """
        Detect anomalies of a metric within one window.

        Args:
            window: Monitoring window to analyse
            metric_urn: Metric and filters under analysis

        Returns:
            Anomalies found in the window

        Raises:
            DetectorDataInsufficientError: not enough data for this window
        """
        ...

    def close(self) -> None:
        """Release resources held by the detector."""
        pass
