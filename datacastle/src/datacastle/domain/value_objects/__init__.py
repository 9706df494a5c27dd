"""Value objects for the question store."""

from datacastle.domain.value_objects.keys import (
    KEY_SIZE,
    MAX_RECORD_KEY,
    RecordKey,
    decode_key,
    encode_key,
)

__all__ = [
    "KEY_SIZE",
    "MAX_RECORD_KEY",
    "RecordKey",
    "decode_key",
    "encode_key",
]
