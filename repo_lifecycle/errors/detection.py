"""Detection service failures."""

from typing import Any, Dict, Optional

from .recovery import GracefulDegradationError


class DetectionError(GracefulDegradationError):
    """
    A detection service could not inspect a candidate.

    The engine never propagates this; the candidate degrades to UNKNOWN.
    """

    def __init__(self, message: str, repository: Optional[str] = None,
                 scan_method: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            degraded_functionality="plugin_detection",
            fallback_strategy="unknown_state",
        )
        self.repository = repository
        self.scan_method = scan_method
        self.context = context or {}
        self.recoverable = True
