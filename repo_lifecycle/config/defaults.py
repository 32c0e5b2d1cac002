"""Default configuration parameters for the repository lifecycle engine."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CacheParams:
    """TTL settings for persisted state (seconds)."""
    state_table_ttl: int = 5 * 60                   # Persisted state table
    event_log_ttl: int = 24 * 60 * 60               # Per-repository event log
    error_context_ttl: int = 24 * 60 * 60           # Per-repository error context
    broadcast_ttl: int = 24 * 60 * 60               # Global broadcast queue


@dataclass(frozen=True)
class LimitParams:
    """Ring buffer capacities."""
    event_log_limit: int = 30
    broadcast_limit: int = 100
    default_event_read: int = 10


@dataclass(frozen=True)
class LockParams:
    """Processing lock parameters."""
    default_ttl: int = 60


@dataclass(frozen=True)
class RetryParams:
    """Retry budget for repositories in the ERROR state."""
    max_retries: int = 3


@dataclass(frozen=True)
class ProtectionParams:
    """Identity patterns that mark the managing system itself."""
    name_fragments: tuple[str, ...] = (
        "kiss-smart-batch-installer",
        "smart-batch-installer",
        "batch-installer",
        "sbi",
        "kiss-sbi",
    )
    code_name_fragment: str = "mkii"
    code_name_companions: tuple[str, ...] = ("installer", "batch")
    exact_identifiers: tuple[str, ...] = (
        "kiss-smart-batch-installer-mkii",
        "KISS-Smart-Batch-Installer-MKII",
        "kiss-smart-batch-installer",
        "KISS-Smart-Batch-Installer",
    )
    protection_reason: str = "Smart Batch Installer self-protection"
    system_dir: Optional[str] = "kiss-smart-batch-installer-mkii"


@dataclass(frozen=True)
class StorageParams:
    """Storage backend selection and key naming."""
    backend: str = "memory"                          # memory | sqlite
    sqlite_path: str = "repo_lifecycle.db"
    key_prefix: str = "sbi_"
    broadcast_counter_key: str = "sbi_broadcast_last_id"


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    cache: CacheParams = field(default_factory=CacheParams)
    limits: LimitParams = field(default_factory=LimitParams)
    lock: LockParams = field(default_factory=LockParams)
    retry: RetryParams = field(default_factory=RetryParams)
    protection: ProtectionParams = field(default_factory=ProtectionParams)
    storage: StorageParams = field(default_factory=StorageParams)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig()
