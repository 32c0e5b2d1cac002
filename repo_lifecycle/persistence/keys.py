"""Storage key naming."""

import hashlib
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageKeys:
    """
    Builds store keys for every persisted structure.

    Per-repository keys hash the identifier so arbitrary repository names
    produce bounded, backend-safe keys.
    """

    prefix: str = "sbi_"

    @staticmethod
    def digest(repository: str) -> str:
        return hashlib.md5(str(repository).encode("utf-8")).hexdigest()

    @property
    def state_table(self) -> str:
        return f"{self.prefix}plugin_states"

    @property
    def broadcast_queue(self) -> str:
        return f"{self.prefix}broadcast_events"

    def event_log(self, repository: str) -> str:
        return f"{self.prefix}state_events_{self.digest(repository)}"

    def error_context(self, repository: str) -> str:
        return f"{self.prefix}error_context_{self.digest(repository)}"

    def processing_lock(self, repository: str) -> str:
        return f"{self.prefix}lock_{self.digest(repository)}"
