"""Base classes for storage collaborators."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class TTLStore(ABC):
    """
    Key-value storage with per-key expiration.

    Reads and writes are best-effort: an absent, expired or unreadable key
    reads as ``None`` and a failed write returns ``False``.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store a value that expires after ttl_seconds."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        pass


class OptionStore(ABC):
    """Key-value storage without expiration, used for durable counters."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value or default."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        """Persist a value across restarts."""
        pass
