"""External collaborators consulted by the detection pipeline."""

from .base import (
    AvailabilityCache,
    DetectionService,
    PluginRegistry,
    StaticAvailabilityCache,
    StaticPluginRegistry,
)

__all__ = [
    "PluginRegistry",
    "DetectionService",
    "AvailabilityCache",
    "StaticPluginRegistry",
    "StaticAvailabilityCache",
]
