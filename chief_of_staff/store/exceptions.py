"""Custom exceptions for record store operations."""


class StoreError(Exception):
    """Base exception for record store errors."""
    pass


class StoreConnectionError(StoreError):
    """Could not reach the backing store."""
    pass


class StoreOperationError(StoreError):
    """General store operation failed."""
    pass


class DuplicateRecordError(StoreError):
    """A record with the same key already exists."""
    pass
