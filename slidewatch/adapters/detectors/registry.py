"""
Detector Registry - Builds detector components from catalog entries.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from slidewatch.adapters.detectors.remote import RemoteDetectorAdapter
from slidewatch.core.errors import ConfigurationError
from slidewatch.core.ports.detector import AnomalyDetector

logger = logging.getLogger(__name__)


class DetectorConfig(BaseModel):
    """Configuration of one detector component."""

    name: str
    type: str = "remote"
    endpoint: str | None = None
    timeout: float = 30.0
    headers: dict[str, str] = Field(default_factory=dict)
    parameters: dict[str, Any] = Field(default_factory=dict)


def build_detector(config: DetectorConfig) -> AnomalyDetector:
    if config.type == "remote":
        if not config.endpoint:
            raise ConfigurationError(f"Endpoint required for remote detector '{config.name}'")
        return RemoteDetectorAdapter(
            endpoint=config.endpoint,
            timeout=config.timeout,
            headers=config.headers,
            parameters=config.parameters,
        )
    raise ConfigurationError(f"Unknown detector type '{config.type}'")


def build_detectors(entries: list[dict[str, Any]]) -> dict[str, AnomalyDetector]:
    """
    Instantiate the detector components of a catalog, keyed by name.

    Raises:
        ConfigurationError: an entry is invalid or names an unknown type
    """
    detectors = {}
    for entry in entries:
        try:
            config = DetectorConfig(**entry)
        except ValueError as e:
            raise ConfigurationError(f"Invalid detector entry {entry}: {e}") from e
        detectors[config.name] = build_detector(config)
        logger.info(f"Registered detector '{config.name}' ({config.type})")
    return detectors
