"""Key-value store port for transactional, bucketed byte storage.

This outbound port defines the contract for an embedded key-value database
kept in a single file. Data lives in named buckets; each bucket maps byte
keys to byte values. All access happens inside a transaction:

- update(): one read-write transaction at a time (single writer).
  Committed when the block exits normally, rolled back if it raises.
- view(): read-only transaction. Any number may run alongside a writer.
"""

from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractContextManager
from typing import Iterator, Protocol


class StoreError(Exception):
    """Base class for key-value store failures."""


class StoreOpenError(StoreError):
    """Raised when the store file cannot be opened or initialized."""


class StoreClosedError(StoreError):
    """Raised when a closed store is used."""


class BucketCreateError(StoreError):
    """Raised when a bucket cannot be created."""


class TransactionNotWritableError(StoreError):
    """Raised on a write attempt inside a read-only transaction."""


class Bucket(Protocol):
    """A named collection of key/value pairs inside a transaction.

    A bucket handle is only valid while its transaction is open.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the bucket name."""
        ...

    @abstractmethod
    def get(self, key: bytes) -> bytes | None:
        """Return the value stored at key, or None if absent."""
        ...

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Store value at key, replacing any existing value.

        Raises:
            ValueError: If key is empty.
            TransactionNotWritableError: If the transaction is read-only.
        """
        ...

    @abstractmethod
    def items(self) -> Iterator[tuple[bytes, bytes]]:
        """Iterate over (key, value) pairs in byte-wise key order."""
        ...

    @abstractmethod
    def __len__(self) -> int:
        """Return the number of keys in the bucket."""
        ...


class Transaction(Protocol):
    """A read-only or read-write view of the store."""

    @property
    @abstractmethod
    def writable(self) -> bool:
        """Return True for transactions opened by update()."""
        ...

    @abstractmethod
    def bucket(self, name: str) -> Bucket | None:
        """Return the named bucket, or None if it does not exist."""
        ...

    @abstractmethod
    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        """Return the named bucket, creating it first if needed.

        Raises:
            ValueError: If name is empty.
            TransactionNotWritableError: If the transaction is read-only.
            BucketCreateError: If the bucket cannot be created.
        """
        ...


class KeyValueStore(Protocol):
    """Protocol for an embedded transactional key-value database."""

    @abstractmethod
    def update(self) -> AbstractContextManager[Transaction]:
        """Open a read-write transaction.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        ...

    @abstractmethod
    def view(self) -> AbstractContextManager[Transaction]:
        """Open a read-only transaction.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the store file. Safe to call more than once."""
        ...
