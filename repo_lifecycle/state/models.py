"""
State machine data models for repository lifecycle tracking.

This module defines the closed set of plugin states and the immutable records
persisted alongside them: error contexts, event log entries and broadcast
entries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

# Values allowed in the per-repository metadata bag
MetadataValue = Union[bool, str, int, float]

_FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


def parse_recoverable(value: Any) -> bool:
    """Read a recoverable flag from loosely typed input; missing means recoverable."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return True


class PluginState(str, Enum):
    """Lifecycle states of a discovered repository."""
    UNKNOWN = "unknown"
    CHECKING = "checking"
    AVAILABLE = "available"
    NOT_PLUGIN = "not_plugin"
    INSTALLED_INACTIVE = "installed_inactive"
    INSTALLED_ACTIVE = "installed_active"
    ERROR = "error"

    @classmethod
    def try_from(cls, value: Any) -> Optional["PluginState"]:
        """Parse a stored value, returning None for anything unrecognised."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    def is_installed(self) -> bool:
        return self in (PluginState.INSTALLED_ACTIVE, PluginState.INSTALLED_INACTIVE)


@dataclass(frozen=True)
class ErrorContext:
    """Structured metadata for a repository in the ERROR state."""

    timestamp: int
    message: str = "Unknown error"
    source: str = "unknown"
    recoverable: bool = True
    retry_count: int = 0
    last_retry_at: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        data = {
            "timestamp": self.timestamp,
            "message": self.message,
            "source": self.source,
            "recoverable": self.recoverable,
            "retry_count": self.retry_count,
        }
        if self.last_retry_at is not None:
            data["last_retry_at"] = self.last_retry_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ErrorContext":
        """Create from a stored dictionary, tolerating missing fields."""
        return cls(
            timestamp=int(data.get("timestamp", 0)),
            message=str(data.get("message", "Unknown error")),
            source=str(data.get("source", "unknown")),
            recoverable=parse_recoverable(data.get("recoverable")),
            retry_count=int(data.get("retry_count", 0)),
            last_retry_at=data.get("last_retry_at"),
        )


@dataclass(frozen=True)
class EventLogEntry:
    """One entry in a repository's event history."""

    timestamp: int
    event_name: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "event_name": self.event_name,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventLogEntry":
        return cls(
            timestamp=int(data["timestamp"]),
            event_name=str(data["event_name"]),
            data=data.get("data") or {},
        )


@dataclass(frozen=True)
class BroadcastEntry:
    """A state-change notification in the global broadcast queue."""

    id: int
    event_name: str
    payload: dict[str, Any]
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event_name": self.event_name,
            "payload": self.payload,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BroadcastEntry":
        return cls(
            id=int(data["id"]),
            event_name=str(data["event_name"]),
            payload=data.get("payload") or {},
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class DetectionCandidate:
    """What the detection service is asked to inspect."""

    identifier: str
    slug: str


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome reported by a detection service.

    ``is_plugin`` is None when the scan was inconclusive.
    """

    is_plugin: Optional[bool] = None
    scan_method: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> "DetectionResult":
        """Accept either a DetectionResult or a plain mapping."""
        if isinstance(data, DetectionResult):
            return data
        if not isinstance(data, dict):
            return cls()
        is_plugin = data.get("is_plugin")
        return cls(
            is_plugin=is_plugin if isinstance(is_plugin, bool) else None,
            scan_method=str(data.get("scan_method", "")),
        )
