"""
Data access layer for DynamoDB and S3 operations.
"""
from .dynamodb_client import DynamoDBClient
from .blob_client import S3BlobClient
from .cache_entries_repository import CacheEntriesRepository, StoreResult
from .size_ledger import SizeLedger
from .exceptions import (
    StoreError,
    DynamoDBError,
    BlobStoreError,
    ConditionalCheckFailedError,
    EntryExistsError,
)

__all__ = [
    'DynamoDBClient',
    'S3BlobClient',
    'CacheEntriesRepository',
    'StoreResult',
    'SizeLedger',
    'StoreError',
    'DynamoDBError',
    'BlobStoreError',
    'ConditionalCheckFailedError',
    'EntryExistsError',
]
