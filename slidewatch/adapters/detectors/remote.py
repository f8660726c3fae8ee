"""
Remote Detector Adapter - HTTP client for external detection endpoints.
"""

from datetime import datetime, timezone

import httpx
from pydantic import BaseModel, PrivateAttr

from slidewatch.core.domain.result import AnomalyRecord
from slidewatch.core.domain.window import MonitoringWindow
from slidewatch.core.errors import DetectorDataInsufficientError
from slidewatch.core.ports.detector import AnomalyDetector

INSUFFICIENT_DATA = "insufficient_data"


def _parse_time(value: str | int | float) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RemoteDetectorAdapter(BaseModel, AnomalyDetector):
    """
    Detector that calls an external detection endpoint via HTTP.
    Configured via Pydantic model fields.

    The endpoint receives ``{"metric_urn", "start", "end"}`` and answers with
    ``{"anomalies": [{"start", "end", "score", "properties"}]}``. A 422 status
    or ``"status": "insufficient_data"`` marks a window without enough data.
    """
    endpoint: str
    timeout: float = 30.0
    headers: dict[str, str] = {}
    parameters: dict = {}

    _client: httpx.Client | None = PrivateAttr(default=None)

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                headers=self.headers,
            )
        return self._client

    def run_detection(self, window: MonitoringWindow, metric_urn: str) -> list[AnomalyRecord]:
        """Call the remote detection endpoint for one window."""
        client = self._get_client()

        payload = {
            "metric_urn": metric_urn,
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "parameters": self.parameters,
        }

        response = client.post(self.endpoint, json=payload)
        if response.status_code == 422:
            raise DetectorDataInsufficientError(f"Detector rejected window {window}: {response.text}")
        response.raise_for_status()

        data = response.json()
        if data.get("status") == INSUFFICIENT_DATA:
            raise DetectorDataInsufficientError(f"Insufficient data for window {window}")

        anomalies = []
        for item in data.get("anomalies", []):
            anomalies.append(AnomalyRecord(
                start=_parse_time(item["start"]),
                end=_parse_time(item["end"]),
                score=item.get("score"),
                properties=dict(item.get("properties", {})),
            ))
        return anomalies

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
