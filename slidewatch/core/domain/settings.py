from datetime import timedelta

from pydantic import BaseModel, Field

DAY_MILLIS = int(timedelta(days=1).total_seconds() * 1000)


class SchedulingPolicy(BaseModel):
    """
    Constants governing window scheduling and failure handling.
    """
    # fail the run when this many leading windows all failed
    early_terminate_window: int = Field(default=5, description="Leading failed windows before a run aborts")

    # cache warm-up lookback in millis per dataset unit, negative disables
    caching_lookback_daily: int = Field(default=90 * DAY_MILLIS, description="Warm-up lookback for daily datasets")
    caching_lookback_hourly: int = Field(default=60 * DAY_MILLIS, description="Warm-up lookback for hourly datasets")
    caching_lookback_minutely: int = Field(default=-1, description="Warm-up lookback for minute datasets")
    caching_lookback_default: int = Field(default=-1, description="Warm-up lookback for other datasets")

    # minute level speed-up
    speed_up_max_bucket: timedelta = Field(default=timedelta(minutes=15), description="Largest bucket that triggers the speed-up")
    speed_up_min_span: timedelta = Field(default=timedelta(days=1), description="Shortest interval that triggers the speed-up")

    # largest minute frequency used for sub-hour alignment
    max_minute_frequency: int = Field(default=30, description="Frequencies above this align to the hour")


class SystemSettings(BaseModel):
    """
    Global system configuration settings.
    """
    # Common
    redis_url: str = Field(default="redis://localhost:6379/0", description="Celery broker and backend URL")

    # Timeseries DB
    prometheus_url: str = Field(default="http://localhost:8428", description="Prometheus-compatible read URL")
    tsdb_timeout: float = Field(default=30.0, description="TSDB request timeout in seconds")

    # Catalog (datasets, metrics, detectors, detections)
    catalog_file: str = Field(default="catalog.yaml", description="Path to the YAML catalog")

    scheduling: SchedulingPolicy = Field(default_factory=SchedulingPolicy)
