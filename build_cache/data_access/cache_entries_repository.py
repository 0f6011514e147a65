"""
Repository for CacheEntries table and blob bucket operations.
"""
import time
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .blob_client import S3BlobClient
from .dynamodb_client import DynamoDBClient
from .exceptions import ConditionalCheckFailedError, EntryExistsError, StoreError
from ..models.cache_entry import CacheEntryMetadata

logger = logging.getLogger(__name__)


@dataclass
class StoreResult:
    """
    Outcome of a successful store.

    Attributes:
        metadata: Record of the new entry
        replaced: Expired record the new entry displaced, if any
    """
    metadata: CacheEntryMetadata
    replaced: Optional[CacheEntryMetadata] = None


class CacheEntriesRepository:
    """
    Repository for cache entries.

    Metadata items in DynamoDB are the source of truth for which entries
    exist; blob bytes are S3 objects under ``key_prefix``. An item whose
    ``expiresAt`` has passed is treated as absent even before DynamoDB TTL
    physically removes it.
    """

    def __init__(
        self,
        table_name: str,
        bucket_name: str,
        dynamodb_client: Optional[DynamoDBClient] = None,
        blob_client: Optional[S3BlobClient] = None,
        key_prefix: str = 'cache/',
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize CacheEntries repository.

        Args:
            table_name: Name of the CacheEntries table
            bucket_name: Name of the blob bucket
            dynamodb_client: Optional DynamoDB client instance
            blob_client: Optional S3 client instance
            key_prefix: Prefix of blob object keys
            clock: Source of the current Unix time in seconds
        """
        self.table_name = table_name
        self.bucket_name = bucket_name
        self.client = dynamodb_client or DynamoDBClient()
        self.blobs = blob_client or S3BlobClient()
        self.key_prefix = key_prefix
        self.clock = clock

    def _blob_key(self, cache_hash: str) -> str:
        return f'{self.key_prefix}{cache_hash}'

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get_metadata(self, cache_hash: str) -> Optional[CacheEntryMetadata]:
        """
        Get the live metadata record for a hash.

        Args:
            cache_hash: Cache hash

        Returns:
            CacheEntryMetadata or None if absent or expired
        """
        item = self.client.get_item(
            table_name=self.table_name,
            key={'cacheKey': cache_hash},
            consistent_read=True
        )
        metadata = CacheEntryMetadata.from_item(item)
        if metadata is None or metadata.is_expired(self.clock()):
            return None
        return metadata

    def exists(self, cache_hash: str) -> bool:
        """
        Check if a live entry exists for the hash.

        Args:
            cache_hash: Cache hash

        Returns:
            True if a live entry exists, False otherwise
        """
        return self.get_metadata(cache_hash) is not None

    def fetch(self, cache_hash: str) -> Optional[bytes]:
        """
        Fetch blob bytes of a live entry.

        Args:
            cache_hash: Cache hash

        Returns:
            Blob bytes or None if not found
        """
        if self.get_metadata(cache_hash) is None:
            return None

        data = self.blobs.get_object(self.bucket_name, self._blob_key(cache_hash))
        if data is None:
            # Claimed but the upload has not landed (or was lost)
            logger.warning(f"Metadata present without blob for {cache_hash}")
        return data

    def store(self, cache_hash: str, data: bytes, ttl_seconds: int) -> StoreResult:
        """
        Store a new entry.

        The metadata put is conditional, so of two concurrent first writes
        exactly one claims the hash. An expired record may be replaced.

        Args:
            cache_hash: Cache hash
            data: Blob bytes
            ttl_seconds: Retention window

        Returns:
            StoreResult with the new record and any replaced expired record

        Raises:
            EntryExistsError: If a live entry already exists
            StoreError: If DynamoDB or S3 fails
        """
        now = self.clock()
        now_ms = int(now * 1000)
        metadata = CacheEntryMetadata(
            hash=cache_hash,
            size=len(data),
            created_at=now_ms,
            last_accessed=now_ms,
            expires_at=int(now) + ttl_seconds,
        )

        try:
            old_item = self.client.put_item(
                table_name=self.table_name,
                item=metadata.to_item(),
                condition_expression='attribute_not_exists(cacheKey) OR expiresAt <= :now',
                expression_attribute_values={':now': int(now)},
                return_values='ALL_OLD'
            )
        except ConditionalCheckFailedError as e:
            raise EntryExistsError(cache_hash) from e

        try:
            self.blobs.put_object(self.bucket_name, self._blob_key(cache_hash), data)
        except StoreError:
            self._release_claim(metadata)
            raise

        replaced = CacheEntryMetadata.from_item(old_item)
        if replaced is not None:
            logger.info(f"Replaced expired entry {cache_hash} ({replaced.size} bytes)")

        logger.info(f"Stored cache entry {cache_hash} ({metadata.size} bytes)")
        return StoreResult(metadata=metadata, replaced=replaced)

    def _release_claim(self, metadata: CacheEntryMetadata) -> None:
        """Remove our own metadata claim after a failed blob upload."""
        try:
            self.client.delete_item(
                table_name=self.table_name,
                key={'cacheKey': metadata.hash},
                condition_expression='createdAt = :created',
                expression_attribute_values={':created': metadata.created_at}
            )
        except StoreError as e:
            logger.error(
                f"Failed to release claim on {metadata.hash} after upload failure: {e}"
            )

    def touch(self, cache_hash: str) -> bool:
        """
        Update lastAccessed to now without altering bytes or size.

        Args:
            cache_hash: Cache hash

        Returns:
            True if updated, False if the entry no longer exists
        """
        try:
            self.client.update_item(
                table_name=self.table_name,
                key={'cacheKey': cache_hash},
                update_expression='SET lastAccessed = :now',
                condition_expression='attribute_exists(cacheKey)',
                expression_attribute_values={':now': self._now_ms()}
            )
            return True
        except ConditionalCheckFailedError:
            logger.debug(f"Entry {cache_hash} vanished before touch")
            return False

    def delete(self, cache_hash: str) -> Optional[CacheEntryMetadata]:
        """
        Delete an entry. Deleting a missing hash is not an error.

        The blob goes first: if the metadata delete then fails, the record
        (and its ledger share) stays until a later delete succeeds.

        Args:
            cache_hash: Cache hash

        Returns:
            The removed record if this call removed it, None otherwise
        """
        self.blobs.delete_object(self.bucket_name, self._blob_key(cache_hash))
        old_item = self.client.delete_item(
            table_name=self.table_name,
            key={'cacheKey': cache_hash},
            return_values='ALL_OLD'
        )

        removed = CacheEntryMetadata.from_item(old_item)
        if removed is not None:
            logger.info(f"Deleted cache entry {cache_hash} ({removed.size} bytes)")
        return removed

    def list_all(self) -> List[CacheEntryMetadata]:
        """
        List every metadata record, expired ones included.

        Full table scan; O(n) in entry count.

        Returns:
            Records in scan order
        """
        items = self.client.scan(table_name=self.table_name)
        entries = []
        for item in items:
            metadata = CacheEntryMetadata.from_item(item)
            if metadata is not None:
                entries.append(metadata)
        return entries

    def list_all_by_access_time(self) -> List[CacheEntryMetadata]:
        """
        List every metadata record, least recently accessed first.

        Ties keep scan order.

        Returns:
            Records sorted ascending by last_accessed
        """
        return sorted(self.list_all(), key=lambda entry: entry.last_accessed)

    def purge_all(self) -> int:
        """
        Delete every entry and every blob.

        Returns:
            Number of metadata records removed
        """
        items = self.client.scan(
            table_name=self.table_name,
            projection_expression='cacheKey'
        )
        keys = [{'cacheKey': item['cacheKey']} for item in items if 'cacheKey' in item]

        if keys:
            self.client.batch_delete(self.table_name, keys)
        blobs_deleted = self.blobs.delete_prefix(self.bucket_name, self.key_prefix)

        logger.info(f"Purged {len(keys)} cache entries ({blobs_deleted} blobs)")
        return len(keys)
