"""
Read-only reporting views over cache entries for the admin API.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..data_access.cache_entries_repository import CacheEntriesRepository
from ..data_access.exceptions import StoreError
from ..exceptions import StoreUnavailableError
from ..models.cache_entry import CacheEntryMetadata


@dataclass
class CacheStats:
    """Aggregate statistics over live cache entries."""
    total_items: int = 0
    total_size: int = 0
    oldest_item: Optional[str] = None
    newest_item: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'totalItems': self.total_items,
            'totalSize': self.total_size,
        }
        if self.oldest_item:
            data['oldestItem'] = self.oldest_item
        if self.newest_item:
            data['newestItem'] = self.newest_item
        return data


class CacheReports:
    """
    Reporting queries served by a direct metadata scan, outside the write path.
    """

    def __init__(self, entries_repository: CacheEntriesRepository):
        self.entries = entries_repository

    def _live_entries(self) -> List[CacheEntryMetadata]:
        now = self.entries.clock()
        try:
            return [e for e in self.entries.list_all() if not e.is_expired(now)]
        except StoreError as e:
            raise StoreUnavailableError('Store unavailable during listing') from e

    def list_entries(self) -> List[CacheEntryMetadata]:
        """
        List live entries, newest first by creation time.

        Returns:
            List of CacheEntryMetadata
        """
        return sorted(self._live_entries(), key=lambda e: e.created_at, reverse=True)

    def stats(self) -> CacheStats:
        """
        Compute item count, summed size and the oldest and newest entries.

        Returns:
            CacheStats
        """
        entries = self._live_entries()
        if not entries:
            return CacheStats()

        oldest = min(entries, key=lambda e: e.created_at)
        newest = max(entries, key=lambda e: e.created_at)
        return CacheStats(
            total_items=len(entries),
            total_size=sum(e.size for e in entries),
            oldest_item=oldest.hash,
            newest_item=newest.hash,
        )
