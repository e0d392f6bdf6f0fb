"""
Record store access.

The engine depends on the abstract RecordStore; production wires in the
Google Sheets store, tests use the in-memory one.
"""

from .base import Collection, KEY_FIELDS, Record, RecordStore, key_field, normalize_key
from .memory import InMemoryRecordStore
from .exceptions import (
    StoreError,
    StoreConnectionError,
    StoreOperationError,
    DuplicateRecordError,
)

__all__ = [
    "Collection",
    "KEY_FIELDS",
    "Record",
    "RecordStore",
    "key_field",
    "normalize_key",
    "InMemoryRecordStore",
    "StoreError",
    "StoreConnectionError",
    "StoreOperationError",
    "DuplicateRecordError",
]
