"""
YAML Config Store Adapter - File-based catalog.

Loads datasets, metrics, detector components and detection configs from a
single YAML file:

    datasets:
      - {name: web, granularity: 5_MINUTES, timezone: America/Los_Angeles}
    metrics:
      - {id: 1, name: page_views, dataset: web}
    detectors:
      - {name: zscore, type: remote, endpoint: http://detector/detect}
    detections:
      - {name: views, metric_urn: "slidewatch:metric:1", detector: $zscore}
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from slidewatch.core.domain.detection import DetectionSpec
from slidewatch.core.domain.metadata import DatasetInfo, MetricInfo
from slidewatch.core.ports.config_store import DetectionStore

logger = logging.getLogger(__name__)


class YamlConfigStore(DetectionStore):
    """
    Config store that reads the catalog from a YAML file.
    """

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path)
        self._detections: dict[str, DetectionSpec] = {}
        self._metrics: dict[int, MetricInfo] = {}
        self._datasets: dict[str, DatasetInfo] = {}
        self._detectors: list[dict[str, Any]] = []
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load_catalog()
            self._loaded = True

    def _load_catalog(self) -> None:
        if not self.config_path.exists():
            logger.warning(f"Catalog file {self.config_path} not found")
            return

        with open(self.config_path) as f:
            data = yaml.safe_load(f) or {}

        for dataset_data in data.get("datasets", []):
            try:
                dataset = DatasetInfo(**dataset_data)
                self._datasets[dataset.name] = dataset
            except ValidationError as e:
                logger.error(f"Error loading dataset: {e}")

        for metric_data in data.get("metrics", []):
            try:
                metric = MetricInfo(**metric_data)
                self._metrics[metric.id] = metric
            except ValidationError as e:
                logger.error(f"Error loading metric: {e}")

        self._detectors = list(data.get("detectors", []))

        for detection_data in data.get("detections", []):
            try:
                spec = DetectionSpec(**detection_data)
                self._detections[spec.name] = spec
            except ValidationError as e:
                logger.error(f"Error loading detection: {e}")

    def get_metric(self, metric_id: int) -> MetricInfo | None:
        self._ensure_loaded()
        return self._metrics.get(metric_id)

    def get_dataset(self, name: str) -> DatasetInfo | None:
        self._ensure_loaded()
        return self._datasets.get(name)

    def detector_configs(self) -> list[dict[str, Any]]:
        self._ensure_loaded()
        return list(self._detectors)

    def list_detections(self) -> list[DetectionSpec]:
        self._ensure_loaded()
        return list(self._detections.values())

    def get_detection(self, name: str) -> DetectionSpec | None:
        self._ensure_loaded()
        return self._detections.get(name)

    def save_detection(self, spec: DetectionSpec) -> None:
        self._ensure_loaded()
        self._detections[spec.name] = spec
        self._save_to_file()

    def delete_detection(self, name: str) -> bool:
        self._ensure_loaded()
        if name in self._detections:
            del self._detections[name]
            self._save_to_file()
            return True
        return False

    def _save_to_file(self) -> None:
        data = {
            "datasets": [d.model_dump(mode="json") for d in self._datasets.values()],
            "metrics": [m.model_dump(mode="json", exclude_none=True) for m in self._metrics.values()],
            "detectors": self._detectors,
            "detections": [
                s.model_dump(mode="json", exclude_none=True)
                for s in self._detections.values()
            ],
        }

        with open(self.config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)
