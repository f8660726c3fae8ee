import pandas as pd
import pytest
from unittest.mock import patch, MagicMock
from fastapi.testclient import TestClient

from slidewatch import main
from slidewatch.main import app
from slidewatch.core.domain.result import AnomalyRecord, RunResult
from slidewatch.core.errors import ConfigurationError, DetectionFailed

from conftest import utc

client = TestClient(app)

INTERVAL = {"start": "2024-01-01T00:00:00Z", "end": "2024-01-03T00:00:00Z"}

CATALOG = """
datasets:
  - name: sales
    granularity: {size: 1, unit: DAYS}
metrics:
  - id: 2
    name: revenue
    dataset: sales
detectors:
  - name: zscore
    endpoint: http://detector/detect
detections:
  - id: 11
    name: revenue
    metric_urn: "slidewatch:metric:2"
    detector: $zscore
"""


@pytest.fixture
def mock_celery():
    with patch("slidewatch.main.run_detection_task") as task_mock:
        task = MagicMock()
        task.id = "detection-task-123"
        task_mock.delay.return_value = task
        yield task_mock


@pytest.fixture
def mock_store():
    with patch("slidewatch.main.YamlConfigStore") as store_mock:
        yield store_mock.return_value


@pytest.fixture
def mock_execute():
    with patch("slidewatch.main.execute_detection") as execute_mock:
        execute_mock.return_value = RunResult(
            anomalies=[AnomalyRecord(start=utc(2024, 1, 1), end=utc(2024, 1, 2), metric="revenue")],
            watermark=utc(2024, 1, 3),
        )
        yield execute_mock


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_schedule_detection_endpoint(mock_celery):
    response = client.post("/detections/revenue/schedule", params=INTERVAL)

    assert response.status_code == 200
    assert response.json()["task_id"] == "detection-task-123"
    mock_celery.delay.assert_called_once_with(
        "revenue", "2024-01-01T00:00:00+00:00", "2024-01-03T00:00:00+00:00"
    )


def test_run_detection_endpoint(mock_store, mock_execute):
    mock_store.get_detection.return_value = MagicMock(name="spec")

    response = client.post("/detections/revenue/run", params=INTERVAL)

    assert response.status_code == 200
    body = response.json()
    assert body["watermark"] == "2024-01-03T00:00:00+00:00"
    assert body["anomalies"][0]["metric"] == "revenue"
    mock_store.get_detection.assert_called_once_with("revenue")


def test_run_unknown_detection(mock_store, mock_execute):
    mock_store.get_detection.return_value = None

    response = client.post("/detections/missing/run", params=INTERVAL)

    assert response.status_code == 404
    mock_execute.assert_not_called()


def test_run_detection_configuration_error(mock_store, mock_execute):
    mock_execute.side_effect = ConfigurationError("detector 'zscore' is not registered")

    response = client.post("/detections/revenue/run", params=INTERVAL)

    assert response.status_code == 400
    assert "zscore" in response.json()["detail"]


def test_run_detection_failure(mock_store, mock_execute):
    mock_execute.side_effect = DetectionFailed("Detection failed for all windows", RuntimeError("down"))

    response = client.post("/detections/revenue/run", params=INTERVAL)

    assert response.status_code == 502


def test_execute_adhoc_detection(mock_store, mock_execute):
    payload = {
        "spec": {
            "name": "adhoc",
            "metric_urn": "slidewatch:metric:2",
            "detector": "$zscore",
            "moving_window": True,
        },
        **INTERVAL,
    }

    response = client.post("/execute/detection", json=payload)

    assert response.status_code == 200
    spec, start, end, _ = mock_execute.call_args[0]
    assert spec.name == "adhoc"
    assert spec.moving_window is True
    assert start == utc(2024, 1, 1)


def test_execute_adhoc_detection_invalid_spec():
    response = client.post("/execute/detection", json={"spec": {"name": "adhoc"}, **INTERVAL})

    assert response.status_code == 422


def test_detection_task(mock_store, mock_execute):
    result = main.run_detection_task("revenue", "2024-01-01T00:00:00+00:00", "2024-01-03T00:00:00+00:00")

    assert result["watermark"] == "2024-01-03T00:00:00+00:00"
    _, start, end, _ = mock_execute.call_args[0]
    assert (start, end) == (utc(2024, 1, 1), utc(2024, 1, 3))


def test_detection_task_unknown_detection(mock_store, mock_execute):
    mock_store.get_detection.return_value = None

    assert main.run_detection_task("missing", "2024-01-01T00:00:00", "2024-01-03T00:00:00") is None
    mock_execute.assert_not_called()


def test_run_detection_against_catalog(tmp_path, monkeypatch):
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(CATALOG)
    monkeypatch.setattr(main.settings, "catalog_file", str(catalog))

    detector = MagicMock()
    detector.run_detection.return_value = [
        AnomalyRecord(start=utc(2024, 1, 1), end=utc(2024, 1, 2)),
        AnomalyRecord(start=utc(2024, 1, 2), end=utc(2024, 1, 4)),
    ]

    with patch("slidewatch.main.PrometheusAdapter") as tsdb_mock, \
         patch("slidewatch.main.build_detectors", return_value={"zscore": detector}):
        tsdb = tsdb_mock.return_value
        tsdb.query_range.return_value = pd.DataFrame({
            "unique_id": ["revenue", "revenue"],
            "ds": pd.to_datetime(["2024-01-01", "2024-01-02"], utc=True),
            "y": [10.0, 12.0],
        })

        response = client.post("/detections/revenue/run", params=INTERVAL)

    assert response.status_code == 200
    body = response.json()
    assert body["watermark"] == "2024-01-03T00:00:00+00:00"
    assert len(body["anomalies"]) == 1
    anomaly = body["anomalies"][0]
    assert anomaly["detection_config_id"] == 11
    assert anomaly["collection"] == "sales"
    assert anomaly["properties"]["detectorComponentName"] == "zscore"
    detector.run_detection.assert_called_once()
    detector.close.assert_called_once()
    tsdb.close.assert_called_once()


def test_detectors_closed_when_run_fails(tmp_path, monkeypatch):
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(CATALOG)
    monkeypatch.setattr(main.settings, "catalog_file", str(catalog))

    detector = MagicMock()
    detector.run_detection.side_effect = RuntimeError("detector down")

    with patch("slidewatch.main.PrometheusAdapter") as tsdb_mock, \
         patch("slidewatch.main.build_detectors", return_value={"zscore": detector}):
        tsdb_mock.return_value.query_range.return_value = pd.DataFrame(columns=["unique_id", "ds", "y"])

        response = client.post("/detections/revenue/run", params=INTERVAL)

    assert response.status_code == 502
    detector.close.assert_called_once()
    tsdb_mock.return_value.close.assert_called_once()


@pytest.fixture
def catalog_settings(tmp_path, monkeypatch):
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(CATALOG)
    monkeypatch.setattr(main.settings, "catalog_file", str(catalog))
    return catalog


def test_list_and_get_detections(catalog_settings):
    response = client.get("/detections")

    assert response.status_code == 200
    assert [d["name"] for d in response.json()] == ["revenue"]

    response = client.get("/detections/revenue")
    assert response.status_code == 200
    assert response.json()["metric_urn"] == "slidewatch:metric:2"

    assert client.get("/detections/missing").status_code == 404


def test_save_detection(catalog_settings):
    payload = {
        "name": "revenue-hourly",
        "metric_urn": "slidewatch:metric:2",
        "detector": "$zscore",
        "moving_window": True,
        "window_unit": "HOURS",
    }

    response = client.put("/detections/revenue-hourly", json=payload)

    assert response.status_code == 200
    saved = client.get("/detections/revenue-hourly").json()
    assert saved["moving_window"] is True
    assert saved["window_unit"] == "HOURS"
    assert sorted(d["name"] for d in client.get("/detections").json()) == ["revenue", "revenue-hourly"]


def test_save_detection_name_mismatch(catalog_settings):
    payload = {"name": "other", "metric_urn": "slidewatch:metric:2", "detector": "$zscore"}

    response = client.put("/detections/revenue", json=payload)

    assert response.status_code == 400
    assert client.get("/detections/other").status_code == 404


def test_delete_detection(catalog_settings):
    assert client.delete("/detections/revenue").status_code == 200
    assert client.get("/detections/revenue").status_code == 404
    assert client.delete("/detections/revenue").status_code == 404
