"""In-memory storage backends, used for request-scoped setups and tests."""

import copy
import threading
from typing import Any, Optional

from ..utils.time import Clock, is_expired, system_clock
from .base import OptionStore, TTLStore


class InMemoryTTLStore(TTLStore):
    """
    Dictionary-backed TTL store.

    Values are deep-copied on the way in and out so callers never share
    mutable structure with the store, as with a serializing backend.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock
        self._data: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if is_expired(expires_at, self._clock):
                del self._data[key]
                return None

            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        with self._lock:
            self._data[key] = (copy.deepcopy(value), self._clock() + ttl_seconds)
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Live (unexpired) keys, mainly for inspection in tests."""
        now = self._clock()
        with self._lock:
            return [k for k, (_, exp) in self._data.items() if now < exp]


class InMemoryOptionStore(OptionStore):
    """Dictionary-backed option store with no expiration."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            self._data[key] = copy.deepcopy(value)
        return True
