"""Bounded, TTL-expiring event history per repository."""

from typing import Any, Optional

import structlog

from ..persistence.base import TTLStore
from ..persistence.keys import StorageKeys
from ..state.models import EventLogEntry
from ..utils.time import Clock, system_clock, unix_now

logger = structlog.get_logger(__name__)


class EventLog:
    """
    Append-only ring buffer of FSM events, one per repository.

    Each append reads the stored sequence, adds the entry, keeps the most
    recent ``limit`` entries and writes the sequence back with a fresh TTL.
    """

    def __init__(
        self,
        store: TTLStore,
        keys: Optional[StorageKeys] = None,
        ttl_seconds: int = 24 * 60 * 60,
        limit: int = 30,
        default_read: int = 10,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.keys = keys or StorageKeys()
        self.ttl_seconds = ttl_seconds
        self.limit = limit
        self.default_read = default_read
        self._clock = clock
        self.logger = logger

    def _read(self, repository: str) -> list[dict[str, Any]]:
        raw = self.store.get(self.keys.event_log(repository))
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    def log_event(
        self,
        repository: str,
        event_name: str,
        data: Optional[dict[str, Any]] = None
    ) -> EventLogEntry:
        """
        Append an event to the repository's history.

        Args:
            repository: Repository identifier
            event_name: Event name (transition, error_occurred, ...)
            data: Event payload

        Returns:
            The appended entry
        """
        entry = EventLogEntry(
            timestamp=unix_now(self._clock),
            event_name=event_name,
            data=dict(data or {}),
        )

        events = self._read(repository)
        events.append(entry.to_dict())
        if len(events) > self.limit:
            events = events[-self.limit:]

        if not self.store.set(self.keys.event_log(repository), events, self.ttl_seconds):
            self.logger.warning(
                "event_log_write_failed",
                repository=repository,
                event_name=event_name,
            )

        return entry

    def get_events(self, repository: str, limit: Optional[int] = None) -> list[EventLogEntry]:
        """Return the most recent events, oldest first."""
        if limit is None:
            limit = self.default_read
        if limit <= 0:
            return []

        entries = []
        for item in self._read(repository)[-limit:]:
            try:
                entries.append(EventLogEntry.from_dict(item))
            except (KeyError, TypeError, ValueError):
                continue
        return entries
