"""Tests for the SQLite storage backends."""

import sqlite3

import pytest

from repo_lifecycle.errors import PersistenceError
from repo_lifecycle.persistence.sqlite_store import SqliteOptionStore, SqliteTTLStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "lifecycle.db")


class TestSqliteTTLStore:
    """Test SqliteTTLStore."""

    def test_init_database(self, db_path, clock):
        SqliteTTLStore(db_path, clock=clock)

        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )}
        assert "ttl_cache" in tables

    def test_round_trip_json(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        value = {"acme/widget": "available", "nested": [1, {"x": True}]}

        assert store.set("k", value, 60) is True
        assert store.get("k") == value

    def test_survives_reopen(self, db_path, clock):
        SqliteTTLStore(db_path, clock=clock).set("k", [1, 2], 60)

        assert SqliteTTLStore(db_path, clock=clock).get("k") == [1, 2]

    def test_expired_row_deleted_on_read(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        store.set("k", 1, 5)
        clock.advance(5)

        assert store.get("k") is None
        with sqlite3.connect(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM ttl_cache").fetchone()[0] == 0

    def test_corrupt_value_reads_absent(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO ttl_cache (key, value, expires_at) VALUES (?, ?, ?)",
                ("k", "{not json", clock() + 60),
            )

        assert store.get("k") is None

    def test_unserializable_value_rejected(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)

        assert store.set("k", object(), 60) is False
        assert store.get("k") is None

    def test_purge_expired(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        store.set("short", 1, 5)
        store.set("long", 2, 500)
        clock.advance(10)

        assert store.purge_expired() == 1
        assert store.get("long") == 2

    def test_delete(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        store.set("k", 1, 60)
        store.delete("k")

        assert store.get("k") is None

    def test_unusable_path_raises(self, tmp_path, clock):
        with pytest.raises(PersistenceError) as exc_info:
            SqliteTTLStore(str(tmp_path / "missing" / "lifecycle.db"), clock=clock)

        assert exc_info.value.operation == "init"
        assert exc_info.value.recoverable is False


class TestSqliteOptionStore:
    """Test SqliteOptionStore."""

    def test_default_and_set(self, db_path):
        options = SqliteOptionStore(db_path)

        assert options.get("sbi_broadcast_last_id", 0) == 0
        assert options.set("sbi_broadcast_last_id", 42) is True
        assert SqliteOptionStore(db_path).get("sbi_broadcast_last_id") == 42

    def test_shares_file_with_ttl_store(self, db_path, clock):
        store = SqliteTTLStore(db_path, clock=clock)
        options = SqliteOptionStore(db_path)

        store.set("k", "ttl", 60)
        options.set("k", "option")

        assert store.get("k") == "ttl"
        assert options.get("k") == "option"
