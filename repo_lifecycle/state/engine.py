"""
Repository lifecycle state engine.

The engine is the source of truth for "what is the current status of
repository X". It validates and applies transitions, persists the state table
with a short TTL, keeps per-repository event history, publishes state changes
to the broadcast queue and runs the detection pipeline on refresh.

Instances are meant to be request-scoped: construct, hydrate from the store,
operate, discard. Durability lives entirely in the injected stores.
"""

from typing import Any, Iterable, Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..events.broadcast import BroadcastQueue
from ..events.event_log import EventLog
from ..integrations.base import AvailabilityCache, DetectionService, PluginRegistry
from ..logging.config import get_state_logger, log_blocked_transition, log_state_transition
from ..persistence.base import OptionStore, TTLStore
from ..persistence.keys import StorageKeys
from ..persistence.memory_store import InMemoryOptionStore, InMemoryTTLStore
from ..persistence.sqlite_store import SqliteOptionStore, SqliteTTLStore
from ..utils.time import Clock, system_clock, unix_now
from .detection import PluginDetector
from .error_tracking import ErrorContextTracker
from .locks import ProcessingLock
from .models import (
    BroadcastEntry,
    DetectionCandidate,
    DetectionResult,
    ErrorContext,
    EventLogEntry,
    MetadataValue,
    PluginState,
)
from .protection import SelfProtectionDetector
from .transitions import is_transition_allowed

state_logger = get_state_logger(__name__)

REFRESH_SOURCE = "refresh_state"


class StateEngine:
    """Finite state machine over repository lifecycle states."""

    def __init__(
        self,
        registry: PluginRegistry,
        detection_service: DetectionService,
        availability_cache: Optional[AvailabilityCache] = None,
        store: Optional[TTLStore] = None,
        options: Optional[OptionStore] = None,
        config: Optional[DefaultConfig] = None,
        clock: Clock = system_clock,
    ) -> None:
        """
        Initialize the engine and hydrate the state table.

        Args:
            registry: Installed package registry
            detection_service: Candidate inspection service
            availability_cache: Optional fast availability heuristic
            store: TTL key-value store (in-memory if omitted)
            options: Durable option store for the broadcast counter
            config: Engine configuration (defaults if omitted)
            clock: Time source, injectable for tests
        """
        self.config = config or get_default_config()
        self.store = store if store is not None else InMemoryTTLStore(clock)
        self.options = options if options is not None else InMemoryOptionStore()
        self.keys = StorageKeys(self.config.storage.key_prefix)
        self._clock = clock
        self.logger = state_logger

        cache = self.config.cache
        limits = self.config.limits

        self.event_log = EventLog(
            self.store,
            keys=self.keys,
            ttl_seconds=cache.event_log_ttl,
            limit=limits.event_log_limit,
            default_read=limits.default_event_read,
            clock=clock,
        )
        self.broadcast_queue = BroadcastQueue(
            self.store,
            self.options,
            self.event_log,
            keys=self.keys,
            counter_key=self.config.storage.broadcast_counter_key,
            ttl_seconds=cache.broadcast_ttl,
            limit=limits.broadcast_limit,
            clock=clock,
        )
        self.errors = ErrorContextTracker(
            self.store,
            self.event_log,
            keys=self.keys,
            ttl_seconds=cache.error_context_ttl,
            max_retries=self.config.retry.max_retries,
            clock=clock,
        )
        self.locks = ProcessingLock(
            self.store,
            self.event_log,
            keys=self.keys,
            default_ttl=self.config.lock.default_ttl,
        )
        self.protection = SelfProtectionDetector(self.config.protection)
        self.detector = PluginDetector(
            registry,
            detection_service,
            self.event_log,
            availability_cache=availability_cache,
        )

        self.states: dict[str, PluginState] = {}
        self.state_metadata: dict[str, dict[str, MetadataValue]] = {}

        self._load_cached_states()

    @classmethod
    def from_config(
        cls,
        config: DefaultConfig,
        registry: PluginRegistry,
        detection_service: DetectionService,
        availability_cache: Optional[AvailabilityCache] = None,
        clock: Clock = system_clock,
    ) -> "StateEngine":
        """Build an engine with the storage backend named in the configuration."""
        storage = config.storage
        if storage.backend == "sqlite":
            store: TTLStore = SqliteTTLStore(storage.sqlite_path, clock=clock)
            options: OptionStore = SqliteOptionStore(storage.sqlite_path)
        else:
            store = InMemoryTTLStore(clock)
            options = InMemoryOptionStore()

        return cls(
            registry,
            detection_service,
            availability_cache=availability_cache,
            store=store,
            options=options,
            config=config,
            clock=clock,
        )

    # -- persistence -------------------------------------------------------

    def _load_cached_states(self) -> None:
        """Hydrate the in-memory table from the persisted copy."""
        cached = self.store.get(self.keys.state_table)
        if not isinstance(cached, dict):
            return

        for repository, value in cached.items():
            state = PluginState.try_from(value)
            if state is not None:
                self.states[repository] = state

        self.logger.debug("states_loaded", count=len(self.states))

    def _save_cached_states(self) -> None:
        table = {repository: state.value for repository, state in self.states.items()}
        if not self.store.set(self.keys.state_table, table, self.config.cache.state_table_ttl):
            self.logger.warning("state_table_write_failed", count=len(table))

    def clear_cache(self) -> None:
        """Forget every repository state, in memory and persisted."""
        self.states = {}
        self.store.delete(self.keys.state_table)

    def clear_repository_cache(self, repository: str) -> None:
        """Forget one repository's state, in memory and persisted."""
        self.states.pop(repository, None)

        cached = self.store.get(self.keys.state_table)
        if isinstance(cached, dict) and repository in cached:
            del cached[repository]
            self.store.set(self.keys.state_table, cached, self.config.cache.state_table_ttl)

    # -- state access ------------------------------------------------------

    def get_state(self, repository: str, force_refresh: bool = False) -> PluginState:
        """
        Current state, running the detection pipeline when the repository is
        unknown to this instance or a refresh is requested.
        """
        if force_refresh or repository not in self.states:
            self.refresh_state(repository)

        return self.states.get(repository, PluginState.UNKNOWN)

    def set_state(self, repository: str, state: PluginState) -> None:
        """Write a state directly, without validation, events or broadcast."""
        self.states[repository] = state
        self._save_cached_states()

    def is_in_state(self, repository: str, state: PluginState) -> bool:
        """Compare against the known state without triggering a refresh."""
        return self.states.get(repository, PluginState.UNKNOWN) == state

    def get_batch_states(
        self,
        repositories: Iterable[str],
        force_refresh: bool = False
    ) -> dict[str, PluginState]:
        return {
            repository: self.get_state(repository, force_refresh)
            for repository in repositories
        }

    def get_statistics(self) -> dict[str, int]:
        """Number of known repositories, in total and per state."""
        stats = {"total": len(self.states)}
        for state in PluginState:
            stats[state.value] = 0
        for state in self.states.values():
            stats[state.value] += 1
        return stats

    # -- transitions -------------------------------------------------------

    def transition(
        self,
        repository: str,
        to_state: PluginState,
        context: Optional[dict[str, Any]] = None,
        force: bool = False
    ) -> bool:
        """
        Move a repository to a new state.

        Transitions missing from the allowed table are rejected without
        raising: a ``transition_blocked`` event is recorded and nothing else
        changes. ``force`` bypasses the table.

        Side effects run in a fixed order: error entry/recovery handling,
        state write, ``transition`` event, ``state_changed`` broadcast.

        Returns:
            True if the transition was applied
        """
        context = dict(context or {})
        from_state = self.states.get(repository, PluginState.UNKNOWN)

        if not force and not is_transition_allowed(from_state, to_state):
            self.event_log.log_event(repository, "transition_blocked", {
                "from": from_state.value,
                "to": to_state.value,
                "reason": "invalid_transition",
                "context": context,
            })
            log_blocked_transition(
                self.logger, repository, from_state.value, to_state.value, context
            )
            return False

        if to_state == PluginState.ERROR:
            self.errors.record_error(repository, context)
        elif from_state == PluginState.ERROR:
            self.errors.record_recovery(repository, to_state, context)

        self.set_state(repository, to_state)
        self.event_log.log_event(repository, "transition", {
            "from": from_state.value,
            "to": to_state.value,
            "context": context,
        })
        self.broadcast("state_changed", {
            "repository": repository,
            "from": from_state.value,
            "to": to_state.value,
            "context": context,
            "ts": unix_now(self._clock),
        })

        log_state_transition(
            self.logger, repository, from_state.value, to_state.value, force, context
        )
        return True

    # -- refresh pipeline --------------------------------------------------

    def refresh_state(self, repository: str) -> PluginState:
        """
        Determine a repository's state from first principles.

        Always forced: CHECKING first, then whatever detection concludes.
        """
        context = {"source": REFRESH_SOURCE}
        self.transition(repository, PluginState.CHECKING, context, force=True)

        state = self.detector.determine_plugin_state(repository)
        if state == PluginState.UNKNOWN:
            state = self.detector.detect_plugin_state(repository)

        plugin_file = None
        if state.is_installed():
            plugin_file = self.detector.get_installed_plugin_file(repository)
        self.detect_and_mark_self_protection(repository, plugin_file)

        self.transition(repository, state, context, force=True)
        return state

    def batch_refresh_states(self, repositories: Iterable[str]) -> dict[str, PluginState]:
        """Refresh each repository in turn; one failure does not stop the rest."""
        results = {}
        for repository in repositories:
            try:
                results[repository] = self.refresh_state(repository)
            except Exception as e:
                self.logger.exception("refresh_failed", repository=repository)
                self.transition(repository, PluginState.ERROR, {
                    "error": str(e),
                    "source": "batch_refresh_states",
                    "recoverable": getattr(e, "recoverable", True),
                }, force=True)
                results[repository] = PluginState.ERROR
        return results

    def detect_plugin_info(
        self,
        candidate: DetectionCandidate,
        force_refresh: bool = False
    ) -> Optional[DetectionResult]:
        return self.detector.detect_plugin_info(candidate, force_refresh)

    # -- installed package queries -----------------------------------------

    def get_installed_plugin_file(self, repository: str) -> Optional[str]:
        return self.detector.get_installed_plugin_file(repository)

    def is_installed(self, repository: str) -> bool:
        if self.get_state(repository).is_installed():
            return True
        return self.get_installed_plugin_file(repository) is not None

    def is_active(self, repository: str) -> bool:
        state = self.get_state(repository)
        if state == PluginState.INSTALLED_ACTIVE:
            return True
        if state == PluginState.INSTALLED_INACTIVE:
            return False

        plugin_file = self.get_installed_plugin_file(repository)
        if plugin_file is None:
            return False
        return self.detector.is_plugin_active(plugin_file)

    def get_plugin_file(self, repository: str) -> Optional[str]:
        """Installed plugin file, only when the repository is installed."""
        if self.is_installed(repository):
            return self.get_installed_plugin_file(repository)
        return None

    # -- metadata and self-protection --------------------------------------

    def set_state_metadata(self, repository: str, metadata: dict[str, MetadataValue]) -> None:
        """Merge keys into the repository's metadata bag."""
        self.state_metadata.setdefault(repository, {}).update(metadata)

    def get_state_metadata(self, repository: str, key: Optional[str] = None) -> Any:
        """Whole metadata bag, or a single value (None when missing)."""
        metadata = self.state_metadata.get(repository, {})
        if key is not None:
            return metadata.get(key)
        return dict(metadata)

    def is_self_protected(self, repository: str) -> bool:
        return self.get_state_metadata(repository, "self_protected") is True

    def detect_and_mark_self_protection(
        self,
        repository: str,
        plugin_file: Optional[str] = None
    ) -> bool:
        """Flag the repository if it is the managing system itself."""
        rule = self.protection.matching_rule(repository, plugin_file)
        if rule is None:
            return False

        self.set_state_metadata(repository, {
            "self_protected": True,
            "protection_reason": self.config.protection.protection_reason,
            "detected_at": unix_now(self._clock),
        })
        self.logger.info("self_protection_detected", repository=repository, rule=rule)
        return True

    # -- error context -----------------------------------------------------

    def get_error_context(self, repository: str) -> Optional[ErrorContext]:
        return self.errors.get(repository)

    def increment_retry_count(self, repository: str) -> int:
        return self.errors.increment_retry_count(repository)

    def can_retry(self, repository: str) -> bool:
        return self.errors.can_retry(repository)

    # -- locks -------------------------------------------------------------

    def acquire_processing_lock(self, repository: str, ttl_seconds: Optional[int] = None) -> bool:
        return self.locks.acquire(repository, ttl_seconds)

    def release_processing_lock(self, repository: str) -> None:
        self.locks.release(repository)

    # -- events ------------------------------------------------------------

    def get_events(self, repository: str, limit: Optional[int] = None) -> list[EventLogEntry]:
        return self.event_log.get_events(repository, limit)

    def broadcast(self, event_name: str, payload: Optional[dict[str, Any]] = None) -> BroadcastEntry:
        return self.broadcast_queue.broadcast(event_name, payload)

    def get_broadcast_events_since(self, last_id: int) -> list[BroadcastEntry]:
        return self.broadcast_queue.get_events_since(last_id)
