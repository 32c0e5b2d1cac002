"""
Global broadcast queue for live-update consumers.

Entries carry ids drawn from a durable counter that never expires, so ids keep
increasing even when the queue itself expires and restarts empty. Consumers
poll with the last id they saw.
"""

from typing import Any, Optional

import structlog

from ..persistence.base import OptionStore, TTLStore
from ..persistence.keys import StorageKeys
from ..state.models import BroadcastEntry
from ..utils.time import Clock, system_clock, unix_now
from .event_log import EventLog

logger = structlog.get_logger(__name__)


class BroadcastQueue:
    """Size-bounded, TTL-expiring ring buffer of notifications."""

    def __init__(
        self,
        store: TTLStore,
        options: OptionStore,
        event_log: EventLog,
        keys: Optional[StorageKeys] = None,
        counter_key: str = "sbi_broadcast_last_id",
        ttl_seconds: int = 24 * 60 * 60,
        limit: int = 100,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.options = options
        self.event_log = event_log
        self.keys = keys or StorageKeys()
        self.counter_key = counter_key
        self.ttl_seconds = ttl_seconds
        self.limit = limit
        self._clock = clock
        self.logger = logger

    def _next_id(self) -> int:
        raw = self.options.get(self.counter_key, 0)
        try:
            last_id = int(raw)
        except (TypeError, ValueError):
            self.logger.warning("broadcast_counter_corrupt", value=repr(raw))
            last_id = 0

        next_id = last_id + 1
        self.options.set(self.counter_key, next_id)
        return next_id

    def _read(self) -> list[dict[str, Any]]:
        raw = self.store.get(self.keys.broadcast_queue)
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    def broadcast(self, event_name: str, payload: Optional[dict[str, Any]] = None) -> BroadcastEntry:
        """
        Publish an event.

        The event is also appended to the event log of the repository named in
        ``payload["repository"]`` (``"unknown"`` when absent).

        Returns:
            The enqueued entry
        """
        payload = dict(payload or {})
        repository = str(payload.get("repository") or "unknown")
        self.event_log.log_event(repository, event_name, payload)

        entry = BroadcastEntry(
            id=self._next_id(),
            event_name=event_name,
            payload=payload,
            timestamp=unix_now(self._clock),
        )

        queue = self._read()
        queue.append(entry.to_dict())
        if len(queue) > self.limit:
            queue = queue[-self.limit:]

        if not self.store.set(self.keys.broadcast_queue, queue, self.ttl_seconds):
            self.logger.warning("broadcast_write_failed", event_name=event_name, id=entry.id)

        return entry

    def get_events_since(self, last_id: int) -> list[BroadcastEntry]:
        """Entries with id greater than last_id, in queue order."""
        entries = []
        for item in self._read():
            try:
                entry = BroadcastEntry.from_dict(item)
            except (KeyError, TypeError, ValueError):
                continue
            if entry.id > last_id:
                entries.append(entry)
        return entries

    def last_id(self) -> int:
        """Most recently issued id (0 before the first broadcast)."""
        try:
            return int(self.options.get(self.counter_key, 0))
        except (TypeError, ValueError):
            return 0
