"""Outbound ports (driven adapters interfaces).

These ports define interfaces for infrastructure that the application
depends on:
- KeyValueStore: Embedded transactional key-value database
"""

from datacastle.ports.outbound.key_value_store import (
    Bucket,
    BucketCreateError,
    KeyValueStore,
    StoreClosedError,
    StoreError,
    StoreOpenError,
    Transaction,
    TransactionNotWritableError,
)

__all__ = [
    "Bucket",
    "BucketCreateError",
    "KeyValueStore",
    "StoreClosedError",
    "StoreError",
    "StoreOpenError",
    "Transaction",
    "TransactionNotWritableError",
]
