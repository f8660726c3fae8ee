"""
Shared fixtures for slidewatch tests.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pandas as pd
import pytest

from slidewatch.core.domain.detection import DetectionSpec
from slidewatch.core.domain.granularity import TimeGranularity, TimeUnit
from slidewatch.core.domain.metadata import DatasetInfo, MetricInfo
from slidewatch.core.ports.data_provider import DataProvider
from slidewatch.core.ports.detector import AnomalyDetector


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def series(*timestamps: datetime) -> pd.DataFrame:
    return pd.DataFrame({
        "ds": pd.to_datetime(list(timestamps), utc=True),
        "y": [1.0] * len(timestamps),
    })


@pytest.fixture
def daily_dataset():
    return DatasetInfo(name="sales", granularity=TimeGranularity(size=1, unit=TimeUnit.DAYS), timezone="UTC")


@pytest.fixture
def hourly_dataset():
    return DatasetInfo(name="sales", granularity=TimeGranularity(size=1, unit=TimeUnit.HOURS), timezone="UTC")


@pytest.fixture
def metric():
    return MetricInfo(id=7, name="revenue", dataset="sales")


@pytest.fixture
def mock_provider(metric, daily_dataset):
    provider = MagicMock(spec=DataProvider)
    provider.fetch_metric.return_value = metric
    provider.fetch_dataset.return_value = daily_dataset
    provider.fetch_series.return_value = pd.DataFrame(columns=["ds", "y"])
    return provider


@pytest.fixture
def mock_detector():
    detector = MagicMock(spec=AnomalyDetector)
    detector.run_detection.return_value = []
    return detector


@pytest.fixture
def daily_spec():
    return DetectionSpec(
        id=42,
        name="revenue-daily",
        metric_urn="slidewatch:metric:7:country=us",
        detector="$zscore",
        moving_window=True,
    )
