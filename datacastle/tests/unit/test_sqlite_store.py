"""Unit tests for SQLiteKeyValueStore."""

from __future__ import annotations

import sqlite3
import stat
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from datacastle.adapters.outbound import SQLiteKeyValueStore
from datacastle.infrastructure.metrics import MetricsRegistry
from datacastle.ports.outbound import (
    BucketCreateError,
    StoreClosedError,
    StoreError,
    StoreOpenError,
    TransactionNotWritableError,
)


@pytest.mark.unit
class TestOpen:
    """Tests for opening store files."""

    def test_creates_file(self, temp_dir: Path) -> None:
        """A missing file is created."""
        db_path = temp_dir / "new.db"

        with SQLiteKeyValueStore.open(db_path) as store:
            assert store.path == db_path
            assert db_path.exists()

    def test_file_mode(self, temp_dir: Path) -> None:
        """A new file gets the requested permission bits."""
        db_path = temp_dir / "mode.db"

        SQLiteKeyValueStore.open(db_path, mode=0o600).close()

        assert stat.S_IMODE(db_path.stat().st_mode) & 0o077 == 0

    def test_creates_parent_directories(self, temp_dir: Path) -> None:
        """Missing parent directories are created."""
        db_path = temp_dir / "a" / "b" / "store.db"

        SQLiteKeyValueStore.open(db_path).close()

        assert db_path.exists()

    def test_reopen_existing(self, temp_dir: Path) -> None:
        """Data survives close and reopen."""
        db_path = temp_dir / "existing.db"

        with SQLiteKeyValueStore.open(db_path) as store:
            with store.update() as tx:
                tx.create_bucket_if_not_exists("questions").put(b"k", b"v")

        with SQLiteKeyValueStore.open(db_path) as store:
            with store.view() as tx:
                bucket = tx.bucket("questions")
                assert bucket is not None
                assert bucket.get(b"k") == b"v"

    def test_not_a_database(self, temp_dir: Path) -> None:
        """A file with foreign content is rejected."""
        db_path = temp_dir / "garbage.db"
        db_path.write_bytes(b"this is not a database file" * 200)

        with pytest.raises(StoreOpenError):
            SQLiteKeyValueStore.open(db_path)

    def test_foreign_sqlite_database(self, temp_dir: Path) -> None:
        """A SQLite file from another application is rejected."""
        db_path = temp_dir / "other.db"
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE t (x INTEGER)")
        conn.execute("PRAGMA application_id = 1234")
        conn.commit()
        conn.close()

        with pytest.raises(StoreOpenError, match="application id"):
            SQLiteKeyValueStore.open(db_path)

    def test_unsupported_version(self, temp_dir: Path) -> None:
        """A store written by a newer format version is rejected."""
        db_path = temp_dir / "future.db"
        SQLiteKeyValueStore.open(db_path).close()
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA user_version = 99")
        conn.commit()
        conn.close()

        with pytest.raises(StoreOpenError, match="version"):
            SQLiteKeyValueStore.open(db_path)

    def test_locked_file_times_out(self, temp_dir: Path) -> None:
        """Opening waits at most the timeout for another writer."""
        db_path = temp_dir / "locked.db"
        SQLiteKeyValueStore.open(db_path).close()

        holder = sqlite3.connect(db_path, isolation_level=None)
        holder.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(StoreOpenError, match="locked"):
                SQLiteKeyValueStore.open(db_path, timeout=0.1)
        finally:
            holder.execute("ROLLBACK")
            holder.close()

    def test_close_is_idempotent(self, store: SQLiteKeyValueStore) -> None:
        """close() can be called twice."""
        store.close()
        store.close()
        assert store.closed

    def test_closed_store_rejects_transactions(self, store: SQLiteKeyValueStore) -> None:
        """Transactions on a closed store raise StoreClosedError."""
        store.close()

        with pytest.raises(StoreClosedError):
            with store.view():
                pass
        with pytest.raises(StoreClosedError):
            with store.update():
                pass


@pytest.mark.unit
class TestBuckets:
    """Tests for bucket management."""

    def test_missing_bucket_is_none(self, store: SQLiteKeyValueStore) -> None:
        """Looking up an absent bucket returns None."""
        with store.view() as tx:
            assert tx.bucket("questions") is None

    def test_create_if_not_exists(self, store: SQLiteKeyValueStore) -> None:
        """Creating a bucket twice keeps its contents."""
        with store.update() as tx:
            tx.create_bucket_if_not_exists("questions").put(b"k", b"v")

        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            assert bucket.get(b"k") == b"v"

    def test_empty_name_rejected(self, store: SQLiteKeyValueStore) -> None:
        """An empty bucket name raises ValueError."""
        with store.update() as tx:
            with pytest.raises(ValueError, match="bucket name"):
                tx.create_bucket_if_not_exists("")

    def test_create_in_view_rejected(self, store: SQLiteKeyValueStore) -> None:
        """Buckets cannot be created in a read-only transaction."""
        with store.view() as tx:
            assert not tx.writable
            with pytest.raises(TransactionNotWritableError):
                tx.create_bucket_if_not_exists("questions")

    def test_buckets_are_isolated(self, store: SQLiteKeyValueStore) -> None:
        """The same key in two buckets holds two values."""
        with store.update() as tx:
            tx.create_bucket_if_not_exists("a").put(b"k", b"1")
            tx.create_bucket_if_not_exists("b").put(b"k", b"2")

        with store.view() as tx:
            assert tx.bucket("a").get(b"k") == b"1"
            assert tx.bucket("b").get(b"k") == b"2"

    def test_create_failure_is_bucket_error(self, store: SQLiteKeyValueStore) -> None:
        """A failed bucket insert is reported as BucketCreateError."""
        with store.update() as tx:
            tx._conn.execute("DROP TABLE entries")
            tx._conn.execute("DROP TABLE buckets")
            with pytest.raises(BucketCreateError, match="questions"):
                tx.create_bucket_if_not_exists("questions")


@pytest.mark.unit
class TestBucketOperations:
    """Tests for get, put and iteration."""

    def test_get_missing_key(self, store: SQLiteKeyValueStore) -> None:
        """An absent key returns None, not an error."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            assert bucket.get(b"\x00" * 8) is None

    def test_put_overwrites(self, store: SQLiteKeyValueStore) -> None:
        """Putting an existing key replaces its value."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            bucket.put(b"k", b"old")
            bucket.put(b"k", b"new")
            assert bucket.get(b"k") == b"new"
            assert len(bucket) == 1

    def test_empty_value(self, store: SQLiteKeyValueStore) -> None:
        """An empty value is stored and distinct from absent."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            bucket.put(b"k", b"")
            assert bucket.get(b"k") == b""

    def test_empty_key_rejected(self, store: SQLiteKeyValueStore) -> None:
        """An empty key raises ValueError."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            with pytest.raises(ValueError, match="key required"):
                bucket.put(b"", b"v")

    def test_non_bytes_rejected(self, store: SQLiteKeyValueStore) -> None:
        """Keys and values must be bytes."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            with pytest.raises(TypeError):
                bucket.put("k", b"v")  # type: ignore[arg-type]
            with pytest.raises(TypeError):
                bucket.put(b"k", "v")  # type: ignore[arg-type]

    def test_put_in_view_rejected(self, store: SQLiteKeyValueStore) -> None:
        """Writes in a read-only transaction raise TransactionNotWritableError."""
        with store.update() as tx:
            tx.create_bucket_if_not_exists("questions")

        with store.view() as tx:
            bucket = tx.bucket("questions")
            with pytest.raises(TransactionNotWritableError):
                bucket.put(b"k", b"v")

    def test_items_in_key_order(self, store: SQLiteKeyValueStore) -> None:
        """Iteration is in byte-wise key order regardless of insert order."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            for key in (b"\x02", b"\x00\x01", b"\x01", b"\x00"):
                bucket.put(key, key)

        with store.view() as tx:
            keys = [k for k, _ in tx.bucket("questions").items()]

        assert keys == [b"\x00", b"\x00\x01", b"\x01", b"\x02"]

    def test_len(self, store: SQLiteKeyValueStore) -> None:
        """len() counts keys in the bucket."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")
            assert len(bucket) == 0
            bucket.put(b"a", b"1")
            bucket.put(b"b", b"2")
            assert len(bucket) == 2

    def test_bucket_unusable_after_transaction(self, store: SQLiteKeyValueStore) -> None:
        """A bucket handle cannot outlive its transaction."""
        with store.update() as tx:
            bucket = tx.create_bucket_if_not_exists("questions")

        with pytest.raises(StoreError, match="closed"):
            bucket.get(b"k")


@pytest.mark.unit
class TestTransactions:
    """Tests for commit and rollback."""

    def test_update_commits(self, store: SQLiteKeyValueStore) -> None:
        """A normal exit from update() commits."""
        with store.update() as tx:
            tx.create_bucket_if_not_exists("questions").put(b"k", b"v")

        with store.view() as tx:
            assert tx.bucket("questions").get(b"k") == b"v"

    def test_exception_rolls_back(self, store: SQLiteKeyValueStore) -> None:
        """An exception in update() discards every staged write."""
        with store.update() as tx:
            tx.create_bucket_if_not_exists("questions").put(b"a", b"1")

        with pytest.raises(RuntimeError, match="boom"):
            with store.update() as tx:
                bucket = tx.create_bucket_if_not_exists("questions")
                bucket.put(b"a", b"changed")
                bucket.put(b"b", b"2")
                tx.create_bucket_if_not_exists("other")
                raise RuntimeError("boom")

        with store.view() as tx:
            bucket = tx.bucket("questions")
            assert bucket.get(b"a") == b"1"
            assert bucket.get(b"b") is None
            assert tx.bucket("other") is None

    def test_store_usable_after_rollback(self, store: SQLiteKeyValueStore) -> None:
        """A rolled back transaction does not poison the store."""
        with pytest.raises(ValueError):
            with store.update() as tx:
                tx.create_bucket_if_not_exists("questions").put(b"", b"v")

        with store.update() as tx:
            tx.create_bucket_if_not_exists("questions").put(b"k", b"v")

        with store.view() as tx:
            assert tx.bucket("questions").get(b"k") == b"v"

    def test_second_writer_blocked(self, temp_dir: Path) -> None:
        """Only one writer at a time; the second one times out."""
        db_path = temp_dir / "writers.db"
        first = SQLiteKeyValueStore.open(db_path)
        second = SQLiteKeyValueStore.open(db_path, timeout=0.1)
        try:
            with first.update():
                with pytest.raises(StoreError, match="locked"):
                    with second.update():
                        pass
        finally:
            first.close()
            second.close()

    def test_transaction_metrics(
        self,
        temp_dir: Path,
        metrics_registry: MetricsRegistry,
        collector_registry: CollectorRegistry,
    ) -> None:
        """Commits and rollbacks are counted per transaction kind."""
        with SQLiteKeyValueStore.open(temp_dir / "m.db", metrics=metrics_registry) as store:
            with store.update() as tx:
                tx.create_bucket_if_not_exists("questions")
            with pytest.raises(RuntimeError):
                with store.update():
                    raise RuntimeError("boom")
            with store.view():
                pass

        def sample(kind: str, status: str) -> float | None:
            return collector_registry.get_sample_value(
                "datacastle_store_transactions_total", {"kind": kind, "status": status}
            )

        assert sample("update", "commit") == 1
        assert sample("update", "rollback") == 1
        assert sample("view", "commit") == 1
