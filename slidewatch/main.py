import logging
from datetime import datetime

from celery import Celery
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from slidewatch.adapters.config.settings_loader import load_settings
from slidewatch.adapters.config.yaml_store import YamlConfigStore
from slidewatch.adapters.data.catalog_provider import CatalogDataProvider
from slidewatch.adapters.detectors.registry import build_detectors
from slidewatch.adapters.tsdb.prometheus import PrometheusAdapter
from slidewatch.core.domain.detection import DetectionSpec
from slidewatch.core.domain.result import RunResult
from slidewatch.core.domain.window import AnalysisInterval
from slidewatch.core.errors import ConfigurationError, DetectionPipelineError
from slidewatch.core.services.detection_runner import DetectionRunner

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Configuration (Load from YAML with Env Overrides)
settings = load_settings()

# Celery Application
celery_app = Celery("slidewatch", broker=settings.redis_url, backend=settings.redis_url)

# FastAPI Application
app = FastAPI(title="slidewatch")


class AdHocDetection(BaseModel):
    """Detection configuration plus the interval to analyse."""
    spec: DetectionSpec
    start: datetime
    end: datetime


def execute_detection(spec: DetectionSpec, start: datetime, end: datetime, store: YamlConfigStore) -> RunResult:
    """
    Run a detection over one interval against the configured TSDB.
    """
    interval = AnalysisInterval(start, end)
    tsdb = PrometheusAdapter(read_url=settings.prometheus_url, timeout=settings.tsdb_timeout)
    detectors = {}
    try:
        provider = CatalogDataProvider(store, tsdb)
        detectors = build_detectors(store.detector_configs())
        runner = DetectionRunner(provider, spec, interval, detectors, settings.scheduling)
        return runner.run()
    finally:
        for detector in detectors.values():
            detector.close()
        tsdb.close()


def _run_or_raise(spec: DetectionSpec, start: datetime, end: datetime, store: YamlConfigStore) -> dict:
    try:
        result = execute_detection(spec, start, end, store)
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DetectionPipelineError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return result.to_dict()


@app.get("/health")
def health_check():
    return {"status": "ok", "version": "0.1.0"}


@app.get("/detections")
def list_detections():
    store = YamlConfigStore(config_path=settings.catalog_file)
    return [d.model_dump(mode="json") for d in store.list_detections()]


@app.get("/detections/{name}")
def get_detection(name: str):
    store = YamlConfigStore(config_path=settings.catalog_file)
    spec = store.get_detection(name)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"Detection '{name}' not found")
    return spec.model_dump(mode="json")


@app.put("/detections/{name}")
def save_detection(name: str, spec: DetectionSpec):
    """
    Create or replace a detection in the catalog.
    """
    if spec.name != name:
        raise HTTPException(status_code=400, detail=f"Detection name '{spec.name}' does not match '{name}'")
    store = YamlConfigStore(config_path=settings.catalog_file)
    store.save_detection(spec)
    logger.info(f"Saved detection '{name}'")
    return spec.model_dump(mode="json")


@app.delete("/detections/{name}")
def delete_detection(name: str):
    store = YamlConfigStore(config_path=settings.catalog_file)
    if not store.delete_detection(name):
        raise HTTPException(status_code=404, detail=f"Detection '{name}' not found")
    logger.info(f"Deleted detection '{name}'")
    return {"message": f"Detection '{name}' deleted"}


@app.post("/detections/{name}/run")
def run_detection(name: str, start: datetime, end: datetime):
    """
    Run a configured detection synchronously and return its result.
    """
    store = YamlConfigStore(config_path=settings.catalog_file)
    spec = store.get_detection(name)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"Detection '{name}' not found")
    return _run_or_raise(spec, start, end, store)


@app.post("/detections/{name}/schedule")
def schedule_detection(name: str, start: datetime, end: datetime):
    """
    Dispatch a configured detection to the background worker.
    """
    task = run_detection_task.delay(name, start.isoformat(), end.isoformat())
    return {"message": "Detection run triggered", "task_id": str(task.id)}


@app.post("/execute/detection")
def execute_adhoc_detection(request: AdHocDetection):
    """
    Run a stateless ad-hoc detection using the provided spec.
    Metrics, datasets and detectors still come from the catalog.
    """
    store = YamlConfigStore(config_path=settings.catalog_file)
    return _run_or_raise(request.spec, request.start, request.end, store)


# Celery Tasks
@celery_app.task(name="slidewatch.tasks.run_detection")
def run_detection_task(name: str, start: str, end: str):
    """
    Background task to run a configured detection over one interval.
    """
    logger.info(f"Starting detection task for: {name}")

    store = YamlConfigStore(config_path=settings.catalog_file)
    spec = store.get_detection(name)
    if not spec:
        logger.error(f"Detection '{name}' not found in catalog.")
        return None

    try:
        result = execute_detection(spec, datetime.fromisoformat(start), datetime.fromisoformat(end), store)
    except Exception as e:
        logger.error(f"Detection task failed: {e}")
        raise e
    logger.info(f"Detection '{name}' found {len(result.anomalies)} anomalies, watermark {result.watermark}")
    return result.to_dict()
