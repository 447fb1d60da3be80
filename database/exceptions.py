"""Exceptions raised by the document store and schema management."""


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class StoreError(DatabaseError):
    """Raised when the store is unreachable or rejects an operation."""

    def __init__(self, message: str, collection: str = None):
        self.collection = collection
        super().__init__(f"[{collection}] {message}" if collection else message)


class DuplicateKeyError(StoreError):
    """Raised when an insert conflicts with an existing key."""
    pass


class DatabaseSchemaError(DatabaseError):
    """Raised when schema initialization or migration fails."""
    pass
