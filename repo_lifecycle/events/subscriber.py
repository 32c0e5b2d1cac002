"""Polling consumer of the broadcast queue."""

from typing import Callable, Optional

import structlog

from ..state.models import BroadcastEntry, PluginState

logger = structlog.get_logger(__name__)

Listener = Callable[[str, PluginState], None]
EventSource = Callable[[int], list[BroadcastEntry]]


class BroadcastSubscriber:
    """
    Mirrors repository states from ``state_changed`` broadcasts.

    Args:
        source: Callable returning entries newer than a given id, typically
            ``StateEngine.get_broadcast_events_since``
        last_id: Id to resume from
    """

    def __init__(self, source: EventSource, last_id: int = 0):
        self.source = source
        self.last_id = last_id
        self.states: dict[str, PluginState] = {}
        self._listeners: list[Listener] = []
        self.logger = logger

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get(self, repository: str) -> Optional[PluginState]:
        return self.states.get(repository)

    def poll(self) -> list[BroadcastEntry]:
        """Fetch and apply new entries; returns them in order."""
        entries = self.source(self.last_id)

        for entry in entries:
            if entry.id > self.last_id + 1:
                # Queue expired or was trimmed while the counter kept advancing
                self.logger.debug("broadcast_gap", expected=self.last_id + 1, received=entry.id)
            self.last_id = max(self.last_id, entry.id)

            if entry.event_name == "state_changed":
                self._apply(entry)

        return entries

    def _apply(self, entry: BroadcastEntry) -> None:
        repository = entry.payload.get("repository")
        state = PluginState.try_from(entry.payload.get("to"))
        if not repository or state is None:
            self.logger.warning("malformed_state_changed", id=entry.id)
            return

        self.states[repository] = state
        for listener in list(self._listeners):
            listener(repository, state)
