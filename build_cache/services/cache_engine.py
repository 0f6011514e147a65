"""
Cache engine orchestrating authorization, write-once storage and eviction.

Operations:
- read: authorize, fetch, touch access time
- write: authorize, enforce write-once and size limits, evict, store, account
- delete_one / purge_all: administrative removal with ledger accounting
- reconcile_ledger: recompute the ledger from stored records
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from ..config.settings import Settings
from ..data_access.blob_client import S3BlobClient
from ..data_access.cache_entries_repository import CacheEntriesRepository
from ..data_access.dynamodb_client import DynamoDBClient
from ..data_access.exceptions import EntryExistsError, StoreError
from ..data_access.size_ledger import SizeLedger
from ..exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    StoreUnavailableError,
)
from ..models.cache_entry import CacheEntryMetadata
from .eviction_planner import EvictionPlan, EvictionPlanner
from .token_authority import TokenAuthority, has_read_permission, has_write_permission

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """
    Outcome of an accepted write.

    Attributes:
        metadata: Record of the stored entry
        evicted: Hashes removed to make room (expired reclaims included)
        bytes_freed: Bytes subtracted from the ledger by eviction
        ledger_total: Ledger value after the write was accounted
    """
    metadata: CacheEntryMetadata
    evicted: List[str] = field(default_factory=list)
    bytes_freed: int = 0
    ledger_total: int = 0


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate store failures into StoreUnavailableError."""
    try:
        yield
    except StoreError as e:
        logger.error(f"Store failure during {operation}: {e}", exc_info=True)
        raise StoreUnavailableError(f"Store unavailable during {operation}") from e


class CacheEngine:
    """
    Write-once, read-many cache with a global size budget.

    All collaborators and limits are bound at construction; operations take
    only per-request arguments.
    """

    def __init__(
        self,
        entries_repository: CacheEntriesRepository,
        size_ledger: SizeLedger,
        token_authority: TokenAuthority,
        max_item_size: int,
        max_total_size: int,
        ttl_seconds: int,
        eviction_planner: Optional[EvictionPlanner] = None
    ):
        """
        Initialize cache engine.

        Args:
            entries_repository: Entry store
            size_ledger: Aggregate size counter
            token_authority: Credential classifier
            max_item_size: Per-item size limit in bytes
            max_total_size: Total size budget in bytes
            ttl_seconds: Retention window for new entries
            eviction_planner: Optional planner (defaults to one over entries_repository)
        """
        self.entries = entries_repository
        self.ledger = size_ledger
        self.tokens = token_authority
        self.planner = eviction_planner or EvictionPlanner(entries_repository)
        self.max_item_size = max_item_size
        self.max_total_size = max_total_size
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> 'CacheEngine':
        """
        Build an engine and its AWS-backed collaborators from settings.

        Args:
            settings: Loaded configuration

        Returns:
            CacheEngine instance
        """
        dynamodb_client = DynamoDBClient(
            region=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url
        )
        blob_client = S3BlobClient(
            region=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url
        )
        entries = CacheEntriesRepository(
            table_name=settings.entries_table_name,
            bucket_name=settings.bucket_name,
            dynamodb_client=dynamodb_client,
            blob_client=blob_client,
            key_prefix=settings.key_prefix
        )
        return cls(
            entries_repository=entries,
            size_ledger=SizeLedger(settings.counters_table_name, dynamodb_client),
            token_authority=TokenAuthority.from_settings(settings),
            max_item_size=settings.max_item_size,
            max_total_size=settings.max_total_size,
            ttl_seconds=settings.cache_ttl_seconds
        )

    def read(self, cache_hash: str, credential: Optional[str]) -> bytes:
        """
        Read the bytes of a cache entry.

        Args:
            cache_hash: Cache hash
            credential: Presented credential

        Returns:
            Blob bytes

        Raises:
            ForbiddenError: If the credential lacks read permission
            NotFoundError: If no live entry exists
            StoreUnavailableError: If the store fails
        """
        if not has_read_permission(self.tokens.verify_token(credential)):
            raise ForbiddenError('Access forbidden')

        with _store_errors('read'):
            data = self.entries.fetch(cache_hash)

        if data is None:
            raise NotFoundError('Cache not found')

        try:
            self.entries.touch(cache_hash)
        except StoreError as e:
            logger.warning(f"Failed to update access time for {cache_hash}: {e}")

        return data

    def write(
        self,
        cache_hash: str,
        credential: Optional[str],
        data: Optional[bytes],
        declared_length: Optional[int]
    ) -> WriteResult:
        """
        Write a new cache entry.

        Args:
            cache_hash: Cache hash
            credential: Presented credential
            data: Blob bytes as received, or None if the body could not be decoded
            declared_length: Declared Content-Length

        Returns:
            WriteResult

        Raises:
            ForbiddenError: If the credential lacks write permission
            ConflictError: If a live entry already exists
            BadRequestError: If the length is missing, zero or mismatched, or
                the body could not be decoded
            PayloadTooLargeError: If the length exceeds the per-item limit
            StoreUnavailableError: If the store fails
        """
        if not has_write_permission(self.tokens.verify_token(credential)):
            raise ForbiddenError('Access forbidden. Read-only token used for write operation')

        with _store_errors('write'):
            if self.entries.exists(cache_hash):
                raise ConflictError('Cannot override an existing record')

        if not declared_length or declared_length <= 0:
            raise BadRequestError('Content-Length header is required')

        if declared_length > self.max_item_size:
            raise PayloadTooLargeError('Cache item too large')

        if data is None:
            raise BadRequestError('Request body could not be decoded')

        if len(data) != declared_length:
            raise BadRequestError('Content-Length does not match actual content size')

        with _store_errors('write'):
            plan = self.planner.plan_eviction(
                current_total=self.ledger.get(),
                budget=self.max_total_size,
                incoming_size=declared_length
            )
            evicted, bytes_freed = self._apply_plan(plan)

            try:
                result = self.entries.store(cache_hash, data, self.ttl_seconds)
            except EntryExistsError as e:
                # Lost the race against a concurrent first write
                raise ConflictError('Cannot override an existing record') from e

            delta = declared_length
            if result.replaced is not None:
                delta -= result.replaced.size
            ledger_total = self.ledger.add_delta(delta)

        logger.info(
            f"Accepted {cache_hash} ({declared_length} bytes); "
            f"evicted {len(evicted)} entries, ledger = {ledger_total}"
        )
        return WriteResult(
            metadata=result.metadata,
            evicted=evicted,
            bytes_freed=bytes_freed,
            ledger_total=ledger_total
        )

    def _apply_plan(self, plan: EvictionPlan) -> Tuple[List[str], int]:
        """
        Delete planned entries and subtract what was actually removed.

        Entries removed concurrently by someone else, and entries whose
        delete failed, are not counted.

        Returns:
            (removed hashes, bytes subtracted from the ledger)
        """
        if plan.is_empty:
            return [], 0

        removed_hashes: List[str] = []
        bytes_freed = 0
        for cache_hash in plan.to_evict + plan.expired:
            try:
                removed = self.entries.delete(cache_hash)
            except StoreError as e:
                logger.warning(f"Failed to evict {cache_hash}, skipping: {e}")
                continue

            if removed is None:
                continue
            removed_hashes.append(cache_hash)
            bytes_freed += removed.size

        if bytes_freed:
            self.ledger.add_delta(-bytes_freed)

        return removed_hashes, bytes_freed

    def delete_one(self, cache_hash: str) -> None:
        """
        Delete a single entry. Idempotent.

        Args:
            cache_hash: Cache hash

        Raises:
            StoreUnavailableError: If the store fails
        """
        with _store_errors('delete'):
            removed = self.entries.delete(cache_hash)
            if removed is not None:
                self.ledger.add_delta(-removed.size)

    def purge_all(self) -> int:
        """
        Delete every entry and reset the ledger.

        Returns:
            Number of entries removed

        Raises:
            StoreUnavailableError: If the store fails
        """
        with _store_errors('purge'):
            count = self.entries.purge_all()
            self.ledger.reset()

        logger.info(f"Purged {count} cache entries")
        return count

    def reconcile_ledger(self) -> int:
        """
        Recompute the ledger from stored records.

        Records past their TTL but not yet reaped still count: their bytes
        are subtracted when eviction or a replacing write removes them.

        Returns:
            New ledger total

        Raises:
            StoreUnavailableError: If the store fails
        """
        with _store_errors('reconcile'):
            previous = self.ledger.get()
            total = sum(entry.size for entry in self.entries.list_all())
            self.ledger.set(total)

        if previous != total:
            logger.warning(f"Ledger drift corrected: {previous} -> {total}")
        return total

    def current_size(self) -> int:
        """
        Get the ledger total.

        Raises:
            StoreUnavailableError: If the store fails
        """
        with _store_errors('size'):
            return self.ledger.get()
