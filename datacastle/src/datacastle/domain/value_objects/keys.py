"""Record keys for the question store.

Every question is stored under its zero-based position in the loaded
sequence. On disk the position is an 8-byte big-endian unsigned integer, so
byte-wise key order matches numeric order.
"""

from __future__ import annotations

from typing import NewType


RecordKey = NewType("RecordKey", int)
"""Zero-based position of a question at write time."""

KEY_SIZE = 8
MAX_RECORD_KEY = RecordKey(2**64 - 1)


def encode_key(key: int) -> bytes:
    """Encode a record key as 8 bytes big-endian.

    Args:
        key: Non-negative integer below 2**64.

    Returns:
        The 8-byte key.

    Raises:
        ValueError: If the key does not fit in an unsigned 64-bit integer.

    Example:
        >>> encode_key(1)
        b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if key < 0 or key > MAX_RECORD_KEY:
        raise ValueError(f"Record key must be in [0, {MAX_RECORD_KEY}], got {key}")
    return key.to_bytes(KEY_SIZE, byteorder="big", signed=False)


def decode_key(data: bytes) -> RecordKey:
    """Decode an 8-byte big-endian key.

    Raises:
        ValueError: If data is not exactly 8 bytes.
    """
    if len(data) != KEY_SIZE:
        raise ValueError(f"Record key requires {KEY_SIZE} bytes, got {len(data)}")
    return RecordKey(int.from_bytes(data, byteorder="big", signed=False))
