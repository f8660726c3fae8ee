"""
DetectionStore Port - Interface for loading and persisting detection configs.

Implementations can be file-based (YAML) or database-backed.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slidewatch.core.domain.detection import DetectionSpec


class DetectionStore(ABC):
    """
    Abstract interface for detection configuration storage.

    Implementations:
    - YamlConfigStore: File-based catalog
    """

    @abstractmethod
    def list_detections(self) -> list["DetectionSpec"]:
        """
        List all configured detections.

        Returns:
            List of DetectionSpec objects
        """
        ...

    @abstractmethod
    def get_detection(self, name: str) -> "DetectionSpec | None":
        """
        Get a specific detection by name.

        Args:
            name: Detection name

        Returns:
            DetectionSpec if found, None otherwise
        """
        ...

    @abstractmethod
    def save_detection(self, spec: "DetectionSpec") -> None:
        """
        Save or update a detection.

        Args:
            spec: DetectionSpec to save
        """
        ...

    @abstractmethod
    def delete_detection(self, name: str) -> bool:
        """
        Delete a detection by name.

        Args:
            name: Detection name

        Returns:
            True if deleted, False if not found
        """
        ...
