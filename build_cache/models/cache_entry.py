"""
CacheEntryMetadata model for cache entry records.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

OCTET_STREAM = 'application/octet-stream'


def _to_int(value: Any, default: int) -> int:
    """Parse a store number (Decimal, int or str), falling back on malformed input."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, ArithmeticError):
        return default


@dataclass
class CacheEntryMetadata:
    """
    Metadata of one cache entry, stored as a DynamoDB item.

    The blob bytes live in S3; this record is the canonical proof that the
    entry exists and is the write-once claim on the hash.

    Attributes:
        hash: Client-supplied content address (opaque)
        size: Blob size in bytes
        created_at: Unix timestamp in milliseconds, set once
        last_accessed: Unix timestamp in milliseconds of the last read or write
        content_type: Media type of the blob
        expires_at: Unix timestamp in seconds (DynamoDB TTL), 0 when unknown
    """
    hash: str
    size: int
    created_at: int
    last_accessed: int
    content_type: str = OCTET_STREAM
    expires_at: int = 0

    def is_expired(self, now_seconds: float) -> bool:
        """
        Check whether the retention window has passed.

        DynamoDB removes TTL-expired items lazily, so an expired record may
        still be returned by reads and scans.
        """
        return self.expires_at > 0 and self.expires_at <= now_seconds

    def to_item(self) -> Dict[str, Any]:
        """
        Convert to dictionary for DynamoDB storage.

        Returns:
            DynamoDB item
        """
        return {
            'cacheKey': self.hash,
            'sizeBytes': self.size,
            'createdAt': self.created_at,
            'lastAccessed': self.last_accessed,
            'contentType': self.content_type,
            'expiresAt': self.expires_at,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Public JSON representation used by the admin API."""
        return {
            'hash': self.hash,
            'size': self.size,
            'createdAt': self.created_at,
            'lastAccessed': self.last_accessed,
        }

    @classmethod
    def from_item(cls, item: Optional[Dict[str, Any]]) -> Optional['CacheEntryMetadata']:
        """
        Create CacheEntryMetadata from a DynamoDB item.

        Missing or malformed fields fall back to reconciliation defaults
        instead of failing: size to 0, lastAccessed to createdAt.

        Args:
            item: Item as returned by DynamoDB

        Returns:
            CacheEntryMetadata, or None if the item has no cache key
        """
        if not item or not item.get('cacheKey'):
            return None

        created_at = max(0, _to_int(item.get('createdAt'), 0))
        last_accessed = _to_int(item.get('lastAccessed'), created_at)

        return cls(
            hash=str(item['cacheKey']),
            size=max(0, _to_int(item.get('sizeBytes'), 0)),
            created_at=created_at,
            last_accessed=last_accessed,
            content_type=str(item.get('contentType') or OCTET_STREAM),
            expires_at=max(0, _to_int(item.get('expiresAt'), 0)),
        )
