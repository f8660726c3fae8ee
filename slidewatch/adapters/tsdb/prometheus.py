"""
Prometheus Adapter - Range query client for Prometheus-compatible databases.

Supports VictoriaMetrics, Thanos, Mimir, Cortex, and native Prometheus.
"""

from datetime import datetime

import httpx
import pandas as pd
from pydantic import BaseModel, ConfigDict, PrivateAttr

SERIES_COLUMNS = ["unique_id", "ds", "y"]


class PrometheusAdapter(BaseModel):
    """
    TSDB adapter for Prometheus-compatible databases.
    Configured via Pydantic model fields.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    read_url: str
    timeout: float = 30.0
    headers: dict[str, str] = {}

    _client: httpx.Client | None = PrivateAttr(default=None)

    def model_post_init(self, __context):
        """Normalize URL after initialization."""
        self.read_url = self.read_url.rstrip("/")

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client for reading."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                headers=self.headers,
            )
        return self._client

    def query_range(
        self,
        query: str,
        start: datetime,
        end: datetime,
        step: str,
    ) -> pd.DataFrame:
        """
        Execute a range query and return a DataFrame.

        Returns:
            DataFrame with columns ['unique_id', 'ds', 'y'], ``ds`` in UTC
        """
        client = self._get_client()

        params = {
            "query": query,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "step": step,
        }

        response = client.get(
            f"{self.read_url}/api/v1/query_range",
            params=params,
        )
        response.raise_for_status()

        data = response.json()

        if data.get("status") != "success":
            raise RuntimeError(f"Prometheus query failed: {data.get('error', 'Unknown error')}")

        frames = []
        for result in data.get("data", {}).get("result", []):
            metric = result.get("metric", {})
            name = metric.pop("__name__", "metric")

            labels_str = ",".join(f'{k}="{v}"' for k, v in sorted(metric.items()))
            unique_id = f"{name}{{{labels_str}}}" if labels_str else name

            values = result.get("values", [])
            if not values:
                continue

            df_series = pd.DataFrame(values, columns=["timestamp", "value"])
            df_series["ds"] = pd.to_datetime(df_series["timestamp"].astype(float), unit="s", utc=True)
            df_series["y"] = pd.to_numeric(df_series["value"], errors="coerce")
            df_series["unique_id"] = unique_id

            frames.append(df_series[SERIES_COLUMNS])

        if not frames:
            return pd.DataFrame(columns=SERIES_COLUMNS)

        return pd.concat(frames, ignore_index=True)

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
