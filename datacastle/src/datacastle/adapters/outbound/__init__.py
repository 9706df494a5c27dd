"""Outbound adapters (driven adapters).

Implementations of outbound ports:
- SQLiteKeyValueStore: KeyValueStore backed by a single SQLite file
"""

from datacastle.adapters.outbound.sqlite_store import (
    SQLiteBucket,
    SQLiteKeyValueStore,
    SQLiteTransaction,
)

__all__ = [
    "SQLiteBucket",
    "SQLiteKeyValueStore",
    "SQLiteTransaction",
]
