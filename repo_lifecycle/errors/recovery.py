"""
Degradation category for collaborator failures.

A failure in this category never stops the engine: the affected repository
falls back to a weaker answer (UNKNOWN for detection) and the cause is kept
in the event log.
"""

from typing import Optional


class GracefulDegradationError(Exception):
    """A collaborator failed; the engine continues with reduced information."""

    def __init__(self, message: str, degraded_functionality: Optional[str] = None,
                 fallback_strategy: Optional[str] = None):
        super().__init__(message)
        self.degraded_functionality = degraded_functionality
        self.fallback_strategy = fallback_strategy
        self.allows_degradation = True
