"""
Custom exceptions for data access layer.
"""


class StoreError(Exception):
    """Base exception for backing store operations."""
    pass


class DynamoDBError(StoreError):
    """Base exception for DynamoDB operations."""
    pass


class BlobStoreError(StoreError):
    """Exception raised when an S3 blob operation fails."""
    pass


class ConditionalCheckFailedError(DynamoDBError):
    """Exception raised when a conditional check fails."""
    pass


class EntryExistsError(ConditionalCheckFailedError):
    """Exception raised when a live cache entry already holds the hash."""

    def __init__(self, cache_hash: str):
        """
        Initialize entry exists error.

        Args:
            cache_hash: Hash that is already stored
        """
        super().__init__(f"Cache entry already exists: {cache_hash}")
        self.cache_hash = cache_hash
