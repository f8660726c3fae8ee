import os
import yaml
from slidewatch.core.domain.settings import SystemSettings

def load_settings(path: str | None = None) -> SystemSettings:
    """
    Load system settings from a YAML file.
    Falls back to environment variables if file doesn't exist or is not provided.

    Args:
        path: Path to config.yaml. Defaults to SW_CONFIG_FILE env var or "config.yaml".
    """
    if path is None:
        path = os.getenv("SW_CONFIG_FILE", "config.yaml")

    config_data = {}

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RuntimeError(f"Failed to load configuration from {path}: {e}")

    # Env vars > File > Defaults
    if os.getenv("REDIS_URL"):
        config_data["redis_url"] = os.getenv("REDIS_URL")

    if os.getenv("PROMETHEUS_URL"):
        config_data["prometheus_url"] = os.getenv("PROMETHEUS_URL")

    if os.getenv("SW_CATALOG_FILE"):
        config_data["catalog_file"] = os.getenv("SW_CATALOG_FILE")

    return SystemSettings(**config_data)
