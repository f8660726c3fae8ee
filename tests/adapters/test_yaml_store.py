"""
Tests for YamlConfigStore.
"""
import pytest
import yaml

from slidewatch.adapters.config.yaml_store import YamlConfigStore
from slidewatch.core.domain.detection import DetectionSpec
from slidewatch.core.domain.granularity import TimeUnit

CATALOG = """
datasets:
  - name: web
    granularity: 5_MINUTES
    timezone: America/Los_Angeles
  - name: sales
    granularity: {size: 1, unit: DAYS}
metrics:
  - id: 1
    name: page_views
    dataset: web
    query: 'http_requests_total{job="web"}'
  - id: 2
    name: revenue
    dataset: sales
detectors:
  - name: zscore
    type: remote
    endpoint: http://detector/detect
detections:
  - name: views
    metric_urn: "slidewatch:metric:1:country=us"
    detector: $zscore
    moving_window: true
    window_size: 6
    window_unit: HOURS
  - name: broken
    detector: $zscore
"""


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG)
    return path


def test_loads_catalog(catalog_file):
    store = YamlConfigStore(catalog_file)

    web = store.get_dataset("web")
    assert web.granularity.size == 5
    assert web.granularity.unit == TimeUnit.MINUTES
    assert web.timezone == "America/Los_Angeles"
    assert store.get_dataset("sales").timezone == "UTC"

    assert store.get_metric(1).query == 'http_requests_total{job="web"}'
    assert store.get_metric(2).name == "revenue"
    assert store.get_metric(3) is None

    assert store.detector_configs()[0]["name"] == "zscore"


def test_invalid_detections_are_skipped(catalog_file):
    store = YamlConfigStore(catalog_file)

    detections = store.list_detections()

    assert [d.name for d in detections] == ["views"]
    views = store.get_detection("views")
    assert views.moving_window is True
    assert views.window_unit == TimeUnit.HOURS
    assert store.get_detection("broken") is None


def test_missing_file_is_empty(tmp_path):
    store = YamlConfigStore(tmp_path / "missing.yaml")
    assert store.list_detections() == []
    assert store.get_metric(1) is None


def test_save_and_delete_detection(catalog_file):
    store = YamlConfigStore(catalog_file)
    spec = DetectionSpec(name="revenue", metric_urn="slidewatch:metric:2", detector="$zscore", bucket_period="P1D")

    store.save_detection(spec)

    reloaded = YamlConfigStore(catalog_file)
    assert reloaded.get_detection("revenue") == spec
    assert reloaded.get_dataset("web").granularity.size == 5
    assert reloaded.get_metric(1).dataset == "web"

    assert reloaded.delete_detection("revenue") is True
    assert reloaded.delete_detection("revenue") is False

    data = yaml.safe_load(catalog_file.read_text())
    assert [d["name"] for d in data["detections"]] == ["views"]
