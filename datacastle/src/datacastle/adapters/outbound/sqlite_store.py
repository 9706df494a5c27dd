"""SQLite-backed key-value store.

This adapter implements the KeyValueStore protocol on top of a single
SQLite database file. SQLite supplies the durability, the file locking
(one writer, many readers) and the all-or-nothing transactions; this module
maps buckets and byte keys onto two tables.

File Format:
    - application_id: STORE_APPLICATION_ID, marks the file as a key-value store
    - user_version: STORE_FORMAT_VERSION
    - buckets(name TEXT PRIMARY KEY)
    - entries(bucket, key BLOB, value BLOB), primary key (bucket, key)

BLOB keys compare with memcmp(), so iteration order is byte-wise key order.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import Iterator

from datacastle.infrastructure.logging import get_logger
from datacastle.infrastructure.metrics import MetricsRegistry
from datacastle.ports.outbound.key_value_store import (
    BucketCreateError,
    StoreClosedError,
    StoreError,
    StoreOpenError,
    TransactionNotWritableError,
)

logger = get_logger(__name__)

# "DCKV"
STORE_APPLICATION_ID = 0x44434B56
STORE_FORMAT_VERSION = 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS buckets (
        name TEXT PRIMARY KEY
    ) WITHOUT ROWID
    """,
    """
    CREATE TABLE IF NOT EXISTS entries (
        bucket TEXT NOT NULL REFERENCES buckets(name) ON DELETE CASCADE,
        key BLOB NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (bucket, key)
    ) WITHOUT ROWID
    """,
)


def _check_bucket_name(name: str) -> None:
    if not name:
        raise ValueError("bucket name required")


def _check_key(key: bytes) -> None:
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise TypeError(f"key must be bytes, got {type(key).__name__}")
    if len(key) == 0:
        raise ValueError("key required")


class SQLiteBucket:
    """Bucket handle bound to one open transaction."""

    def __init__(self, tx: SQLiteTransaction, name: str) -> None:
        self._tx = tx
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: bytes) -> bytes | None:
        _check_key(key)
        row = self._tx._execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?",
            (self._name, bytes(key)),
        ).fetchone()
        return None if row is None else bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        self._tx._require_writable()
        _check_key(key)
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"value must be bytes, got {type(value).__name__}")
        self._tx._execute(
            "INSERT OR REPLACE INTO entries (bucket, key, value) VALUES (?, ?, ?)",
            (self._name, bytes(key), bytes(value)),
        )

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        cursor = self._tx._execute(
            "SELECT key, value FROM entries WHERE bucket = ? ORDER BY key",
            (self._name,),
        )
        for key, value in cursor:
            yield bytes(key), bytes(value)

    def __len__(self) -> int:
        row = self._tx._execute(
            "SELECT COUNT(*) FROM entries WHERE bucket = ?", (self._name,)
        ).fetchone()
        return int(row[0])

    def __repr__(self) -> str:
        return f"SQLiteBucket({self._name!r})"


class SQLiteTransaction:
    """A transaction over an open SQLite connection.

    Only valid inside the update() or view() block that created it.
    """

    def __init__(self, conn: sqlite3.Connection, writable: bool) -> None:
        self._conn = conn
        self._writable = writable
        self._done = False

    @property
    def writable(self) -> bool:
        return self._writable

    def bucket(self, name: str) -> SQLiteBucket | None:
        _check_bucket_name(name)
        row = self._execute("SELECT 1 FROM buckets WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return SQLiteBucket(self, name)

    def create_bucket_if_not_exists(self, name: str) -> SQLiteBucket:
        _check_bucket_name(name)
        self._require_writable()
        try:
            self._execute("INSERT OR IGNORE INTO buckets (name) VALUES (?)", (name,))
        except StoreError as e:
            raise BucketCreateError(f"could not create bucket {name!r}: {e}") from e
        return SQLiteBucket(self, name)

    def _require_writable(self) -> None:
        if not self._writable:
            raise TransactionNotWritableError("transaction is read-only")

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._done:
            raise StoreError("transaction is closed")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e


class SQLiteKeyValueStore:
    """SQLite implementation of the KeyValueStore protocol.

    Example:
        >>> with SQLiteKeyValueStore.open("datacastle.db") as store:
        ...     with store.update() as tx:
        ...         tx.create_bucket_if_not_exists("questions").put(b"k", b"v")
        ...     with store.view() as tx:
        ...         tx.bucket("questions").get(b"k")
        b'v'

    Attributes:
        path: Path to the store file.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        path: Path,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Wrap an already initialized connection. Use open() instead."""
        self._conn: sqlite3.Connection | None = conn
        self._path = path
        self._metrics = metrics

    @classmethod
    def open(
        cls,
        path: str | Path,
        timeout: float = 1.0,
        mode: int = 0o600,
        metrics: MetricsRegistry | None = None,
    ) -> SQLiteKeyValueStore:
        """Open the store file, creating it if it does not exist.

        Args:
            path: Store file path.
            timeout: Seconds to wait for a lock held by another process.
            mode: Permission bits for a newly created file.
            metrics: Optional metrics registry.

        Raises:
            StoreOpenError: If the file cannot be created or opened, is not a
                store, or stays locked past the timeout.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_RDWR | os.O_CREAT, mode)
            os.close(fd)
        except OSError as e:
            raise StoreOpenError(f"could not open {path}: {e}") from e

        try:
            conn = sqlite3.connect(str(path), timeout=timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreOpenError(f"could not open {path}: {e}") from e

        try:
            cls._initialize(conn)
        except (sqlite3.Error, StoreOpenError) as e:
            conn.close()
            if isinstance(e, StoreOpenError):
                raise
            raise StoreOpenError(f"could not open {path}: {e}") from e

        logger.debug("store_opened", path=str(path), timeout=timeout)
        return cls(conn, path, metrics)

    @staticmethod
    def _initialize(conn: sqlite3.Connection) -> None:
        """Validate the file header and install the schema."""
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("BEGIN IMMEDIATE")
        try:
            application_id = conn.execute("PRAGMA application_id").fetchone()[0]
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            has_tables = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' LIMIT 1"
            ).fetchone() is not None
            if application_id == 0 and version == 0 and not has_tables:
                for statement in _SCHEMA:
                    conn.execute(statement)
                conn.execute(f"PRAGMA application_id = {STORE_APPLICATION_ID}")
                conn.execute(f"PRAGMA user_version = {STORE_FORMAT_VERSION}")
            elif application_id != STORE_APPLICATION_ID:
                raise StoreOpenError(
                    f"not a key-value store: bad application id {application_id:#x}"
                )
            elif version != STORE_FORMAT_VERSION:
                raise StoreOpenError(f"unsupported store version: {version}")
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._conn is None

    @contextmanager
    def update(self) -> Iterator[SQLiteTransaction]:
        """Open a read-write transaction.

        BEGIN IMMEDIATE takes the write lock up front, so at most one
        update() runs at a time across processes.
        """
        with self._transaction("BEGIN IMMEDIATE", writable=True) as tx:
            yield tx

    @contextmanager
    def view(self) -> Iterator[SQLiteTransaction]:
        """Open a read-only transaction."""
        with self._transaction("BEGIN", writable=False) as tx:
            yield tx

    @contextmanager
    def _transaction(self, begin: str, writable: bool) -> Iterator[SQLiteTransaction]:
        conn = self._connection()
        kind = "update" if writable else "view"
        try:
            conn.execute(begin)
        except sqlite3.Error as e:
            raise StoreError(f"could not begin {kind} transaction: {e}") from e

        tx = SQLiteTransaction(conn, writable=writable)
        try:
            yield tx
        except BaseException:
            tx._done = True
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            self._record_transaction(kind, "rollback")
            raise

        tx._done = True
        if not writable:
            conn.execute("ROLLBACK")
            self._record_transaction(kind, "commit")
            return

        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            self._record_transaction(kind, "rollback")
            raise StoreError(f"commit failed: {e}") from e
        self._record_transaction(kind, "commit")

    def _record_transaction(self, kind: str, status: str) -> None:
        if self._metrics:
            self._metrics.store_transactions_total.labels(kind=kind, status=status).inc()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreClosedError("store is closed")
        return self._conn

    def close(self) -> None:
        """Close the underlying connection. Safe to call more than once."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("store_closed", path=str(self._path))

    def __enter__(self) -> SQLiteKeyValueStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
