"""Advisory, TTL-based processing locks for bulk operations."""

from contextlib import contextmanager
from typing import Iterator, Optional

from ..events.event_log import EventLog
from ..persistence.base import TTLStore
from ..persistence.keys import StorageKeys


class ProcessingLock:
    """
    Per-repository mutual exclusion via key presence in the TTL store.

    The engine never consults these locks itself; callers running bulk
    operations acquire and release them around their work.
    """

    def __init__(
        self,
        store: TTLStore,
        event_log: EventLog,
        keys: Optional[StorageKeys] = None,
        default_ttl: int = 60,
    ):
        self.store = store
        self.event_log = event_log
        self.keys = keys or StorageKeys()
        self.default_ttl = default_ttl

    def is_locked(self, repository: str) -> bool:
        return self.store.get(self.keys.processing_lock(repository)) is not None

    def acquire(self, repository: str, ttl_seconds: Optional[int] = None) -> bool:
        """Take the lock; returns False if it is already held."""
        if ttl_seconds is None:
            ttl_seconds = self.default_ttl

        if self.is_locked(repository):
            return False

        self.store.set(self.keys.processing_lock(repository), 1, ttl_seconds)
        self.event_log.log_event(repository, "lock_acquired", {"ttl": ttl_seconds})
        return True

    def release(self, repository: str) -> None:
        """Drop the lock; safe to call when no lock is held."""
        self.store.delete(self.keys.processing_lock(repository))
        self.event_log.log_event(repository, "lock_released")

    @contextmanager
    def hold(self, repository: str, ttl_seconds: Optional[int] = None) -> Iterator[bool]:
        """
        Acquire for the duration of a block.

        Yields whether the lock was acquired; it is released on exit only
        when this block took it.
        """
        acquired = self.acquire(repository, ttl_seconds)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(repository)
