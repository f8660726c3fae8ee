"""
Catalog Data Provider - Serves metadata from the YAML catalog and series from
a Prometheus-compatible TSDB.
"""

import logging

import pandas as pd

from slidewatch.adapters.config.yaml_store import YamlConfigStore
from slidewatch.adapters.tsdb.prometheus import PrometheusAdapter
from slidewatch.core.domain.granularity import TimeGranularity, TimeUnit
from slidewatch.core.domain.metadata import DatasetInfo, MetricInfo, MetricSlice
from slidewatch.core.ports.data_provider import DataProvider

logger = logging.getLogger(__name__)

_STEP_SUFFIX = {
    TimeUnit.MILLISECONDS: "ms",
    TimeUnit.SECONDS: "s",
    TimeUnit.MINUTES: "m",
    TimeUnit.HOURS: "h",
    TimeUnit.DAYS: "d",
}


def step_for(granularity: TimeGranularity) -> str:
    """Prometheus-style step string of a dataset granularity."""
    return f"{granularity.size}{_STEP_SUFFIX[granularity.unit]}"


def selector_for(metric: MetricInfo, filters: dict[str, list[str]]) -> str:
    """
    PromQL selector of a metric with dimension filters as label matchers.

    Multi-valued filters become a regex alternation.
    """
    base = metric.query or metric.name
    if not filters:
        return base

    matchers = []
    for key in sorted(filters):
        values = filters[key]
        if len(values) == 1:
            matchers.append(f'{key}="{values[0]}"')
        else:
            matchers.append(f'{key}=~"{"|".join(values)}"')

    if base.endswith("}"):
        inner = base[base.index("{") + 1:-1]
        prefix = base[:base.index("{")]
        labels = ",".join(([inner] if inner else []) + matchers)
        return f"{prefix}{{{labels}}}"
    return f"{base}{{{','.join(matchers)}}}"


class CatalogDataProvider(DataProvider):
    """
    DataProvider joining catalog metadata with TSDB range queries.
    """

    def __init__(self, store: YamlConfigStore, tsdb: PrometheusAdapter):
        self.store = store
        self.tsdb = tsdb

    def fetch_metric(self, metric_id: int) -> MetricInfo | None:
        return self.store.get_metric(metric_id)

    def fetch_dataset(self, name: str) -> DatasetInfo | None:
        return self.store.get_dataset(name)

    def fetch_series(self, metric_slice: MetricSlice) -> pd.DataFrame:
        metric = self.store.get_metric(metric_slice.metric_id)
        if metric is None:
            raise KeyError(f"Unknown metric {metric_slice.metric_id}")
        dataset = self.store.get_dataset(metric.dataset)
        granularity = dataset.granularity if dataset else TimeGranularity(size=1, unit=TimeUnit.HOURS)

        query = selector_for(metric, metric_slice.filters)
        logger.info(f"Fetching series '{query}' start={metric_slice.start} end={metric_slice.end}")
        df = self.tsdb.query_range(
            query=query,
            start=metric_slice.start,
            end=metric_slice.end,
            step=step_for(granularity),
        )
        if df.empty:
            return pd.DataFrame(columns=["ds", "y"])

        # several matching series collapse into one aggregate
        series = df.groupby("ds", as_index=False)["y"].sum()
        return series.sort_values("ds", ignore_index=True)
