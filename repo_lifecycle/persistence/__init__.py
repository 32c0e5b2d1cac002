"""Storage collaborators: TTL key-value store and durable option store."""

from .base import OptionStore, TTLStore
from .keys import StorageKeys
from .memory_store import InMemoryOptionStore, InMemoryTTLStore
from .sqlite_store import SqliteOptionStore, SqliteTTLStore

__all__ = [
    "TTLStore",
    "OptionStore",
    "StorageKeys",
    "InMemoryTTLStore",
    "InMemoryOptionStore",
    "SqliteTTLStore",
    "SqliteOptionStore",
]
