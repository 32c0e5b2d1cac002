"""SQLite-backed storage so state survives process restarts."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import PersistenceError
from ..utils.time import Clock, is_expired, system_clock
from .base import OptionStore, TTLStore

logger = structlog.get_logger(__name__)


class _SqliteBackend:
    """Shared connection handling for the sqlite stores."""

    def __init__(self, db_path: str, schema: str):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self.logger = logger.bind(db_path=str(self.db_path))

        try:
            with self._get_connection() as conn:
                conn.execute(schema)
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to initialise database: {e}",
                operation="init",
                target=str(self.db_path),
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("database_error", error=str(e))
            raise
        finally:
            if conn:
                conn.close()


class SqliteTTLStore(_SqliteBackend, TTLStore):
    """TTL store keeping JSON values with an absolute expiry column."""

    def __init__(self, db_path: str = "repo_lifecycle.db", clock: Clock = system_clock):
        self._clock = clock
        super().__init__(db_path, """
            CREATE TABLE IF NOT EXISTS ttl_cache (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                expires_at REAL NOT NULL
            )
        """)

    def get(self, key: str) -> Optional[Any]:
        try:
            with self._lock, self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value, expires_at FROM ttl_cache WHERE key = ?", (key,)
                ).fetchone()

                if row is None:
                    return None

                if is_expired(row["expires_at"], self._clock):
                    conn.execute("DELETE FROM ttl_cache WHERE key = ?", (key,))
                    conn.commit()
                    return None

                raw = row["value"]
        except sqlite3.Error:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning("corrupt_value", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.logger.error("unserializable_value", key=key, error=str(e))
            return False

        try:
            with self._lock, self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO ttl_cache (key, value, expires_at)
                    VALUES (?, ?, ?)
                """, (key, encoded, self._clock() + ttl_seconds))
                conn.commit()
                return True
        except sqlite3.Error:
            return False

    def delete(self, key: str) -> None:
        try:
            with self._lock, self._get_connection() as conn:
                conn.execute("DELETE FROM ttl_cache WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error:
            pass

    def purge_expired(self) -> int:
        """Remove every expired row and return how many were deleted."""
        try:
            with self._lock, self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM ttl_cache WHERE expires_at <= ?", (self._clock(),)
                )
                conn.commit()
                deleted = cursor.rowcount
        except sqlite3.Error:
            return 0

        self.logger.info("expired_entries_purged", count=deleted)
        return deleted


class SqliteOptionStore(_SqliteBackend, OptionStore):
    """Option store for values that must never expire."""

    def __init__(self, db_path: str = "repo_lifecycle.db"):
        super().__init__(db_path, """
            CREATE TABLE IF NOT EXISTS options (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self._lock, self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM options WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error:
            return default

        if row is None:
            return default

        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            self.logger.warning("corrupt_option", key=key, error=str(e))
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            with self._lock, self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO options (key, value) VALUES (?, ?)",
                    (key, json.dumps(value)),
                )
                conn.commit()
                return True
        except (sqlite3.Error, TypeError, ValueError) as e:
            self.logger.error("option_write_failed", key=key, error=str(e))
            return False
