"""
Error classification system for the repository lifecycle engine.

Errors raised inside the engine are caught at the public boundary and turned
into state (UNKNOWN or ERROR) plus audit entries; these classes exist so
collaborators and storage backends can signal what kind of failure occurred.
"""

from .system_failures import (
    SystemFailureError,
    PersistenceError,
    ConfigurationError,
)
from .detection import DetectionError
from .recovery import GracefulDegradationError

__all__ = [
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "ConfigurationError",
    # Detection
    "DetectionError",
    # Degradation
    "GracefulDegradationError",
]
