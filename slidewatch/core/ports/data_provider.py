"""
DataProvider Port - Interface for metric metadata and time series access.
Returns Pandas DataFrames for easy integration with detectors.
"""

from abc import ABC, abstractmethod

import pandas as pd

from slidewatch.core.domain.metadata import DatasetInfo, MetricInfo, MetricSlice


class DataProvider(ABC):
    """
    Abstract interface for metadata lookup and series reads.

    Implementations:
    - CatalogDataProvider: YAML catalog + Prometheus-compatible TSDB
    """

    @abstractmethod
    def fetch_metric(self, metric_id: int) -> MetricInfo | None:
        """Look up a metric by id. Returns None if unknown."""
        ...

    @abstractmethod
    def fetch_dataset(self, name: str) -> DatasetInfo | None:
        """Look up a dataset by name. Returns None if unknown."""
        ...

    @abstractmethod
    def fetch_series(self, metric_slice: MetricSlice) -> pd.DataFrame:
        """
        Read the points of a metric slice.

        Args:
            metric_slice: Metric, time range and filters

        Returns:
            DataFrame with columns ['ds', 'y'], ``ds`` tz-aware and ascending
        """
        ...
