"""
Error context tracking for repositories in the ERROR state.

Contexts are persisted per repository in the TTL store so retry accounting
survives across request-scoped engine instances.
"""

from typing import Any, Optional

from ..events.event_log import EventLog
from ..logging.config import get_state_logger
from ..persistence.base import TTLStore
from ..persistence.keys import StorageKeys
from ..utils.time import Clock, system_clock, unix_now
from .models import ErrorContext, PluginState, parse_recoverable

state_logger = get_state_logger(__name__)


class ErrorContextTracker:
    """Persists, retrieves and clears error contexts and retry counts."""

    def __init__(
        self,
        store: TTLStore,
        event_log: EventLog,
        keys: Optional[StorageKeys] = None,
        ttl_seconds: int = 24 * 60 * 60,
        max_retries: int = 3,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.event_log = event_log
        self.keys = keys or StorageKeys()
        self.ttl_seconds = ttl_seconds
        self.max_retries = max_retries
        self._clock = clock
        self.logger = state_logger

    def _read(self, repository: str) -> dict[str, Any]:
        raw = self.store.get(self.keys.error_context(repository))
        return raw if isinstance(raw, dict) else {}

    def _write(self, repository: str, data: dict[str, Any]) -> None:
        self.store.set(self.keys.error_context(repository), data, self.ttl_seconds)

    def get(self, repository: str) -> Optional[ErrorContext]:
        """Stored error context, or None when absent or expired."""
        raw = self._read(repository)
        if not raw:
            return None
        try:
            return ErrorContext.from_dict(raw)
        except (TypeError, ValueError):
            return None

    def get_retry_count(self, repository: str) -> int:
        try:
            return int(self._read(repository).get("retry_count", 0))
        except (TypeError, ValueError):
            return 0

    def clear(self, repository: str) -> None:
        self.store.delete(self.keys.error_context(repository))

    def record_error(self, repository: str, context: Optional[dict[str, Any]] = None) -> ErrorContext:
        """
        Handle entry into ERROR.

        Builds the error context from the transition context, persists it,
        appends an ``error_occurred`` event and emits an error record.

        Args:
            repository: Repository identifier
            context: Transition context (error/message, source, recoverable)

        Returns:
            The persisted error context
        """
        context = context or {}
        error = ErrorContext(
            timestamp=unix_now(self._clock),
            message=str(context.get("error") or context.get("message") or "Unknown error"),
            source=str(context.get("source") or "unknown"),
            recoverable=parse_recoverable(context.get("recoverable")),
            retry_count=self.get_retry_count(repository),
        )

        self._write(repository, error.to_dict())
        self.event_log.log_event(repository, "error_occurred", error.to_dict())

        self.logger.error(
            "repository_error",
            repository=repository,
            message=error.message,
            source=error.source,
            recoverable=error.recoverable,
        )
        return error

    def record_recovery(
        self,
        repository: str,
        to_state: PluginState,
        context: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Handle exit from ERROR.

        Appends an ``error_recovered`` event and clears the stored context.

        Returns:
            The recovery record
        """
        context = context or {}
        previous = self._read(repository)

        recovery = {
            "timestamp": unix_now(self._clock),
            "recovered_to": to_state.value,
            "recovery_source": context.get("source") or "unknown",
            "previous_error": previous.get("message", "unknown"),
            "retry_count": previous.get("retry_count", 0),
        }

        self.event_log.log_event(repository, "error_recovered", recovery)
        self.clear(repository)

        self.logger.info(
            "repository_recovered",
            repository=repository,
            recovered_to=to_state.value,
            previous_error=recovery["previous_error"],
        )
        return recovery

    def increment_retry_count(self, repository: str) -> int:
        """Bump the retry counter, stamp the attempt and return the new count."""
        data = self._read(repository)
        try:
            retry_count = int(data.get("retry_count", 0)) + 1
        except (TypeError, ValueError):
            retry_count = 1

        data["retry_count"] = retry_count
        data["last_retry_at"] = unix_now(self._clock)
        self._write(repository, data)

        self.logger.debug("retry_incremented", repository=repository, retry_count=retry_count)
        return retry_count

    def can_retry(self, repository: str) -> bool:
        """True while a recoverable error is under the retry budget."""
        error = self.get(repository)
        if error is None:
            return False
        return error.recoverable and error.retry_count < self.max_retries
