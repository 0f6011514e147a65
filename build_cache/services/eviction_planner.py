"""
Eviction planning for the cache size budget.

Implements greedy least-recently-used selection: walk entries oldest-accessed
first and take them until enough bytes are freed for the incoming write.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from ..data_access.cache_entries_repository import CacheEntriesRepository

logger = logging.getLogger(__name__)


@dataclass
class EvictionPlan:
    """
    Entries selected for removal before admitting a write.

    Attributes:
        to_evict: Hashes of live entries to evict, oldest-accessed first
        bytes_freed: Sum of the sizes of to_evict
        deficit: Bytes that had to be freed (0 when no eviction was needed)
        expired: Hashes whose records were already past their TTL; reclaimed
            alongside the plan but not counted toward the deficit
    """
    to_evict: List[str] = field(default_factory=list)
    bytes_freed: int = 0
    deficit: int = 0
    expired: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_evict and not self.expired

    @property
    def satisfied(self) -> bool:
        """True when the selected entries cover the deficit."""
        return self.bytes_freed >= self.deficit


class EvictionPlanner:
    """
    Decides which entries to evict to make room for an incoming write.

    The plan is best-effort: it never blocks a write, and overshooting the
    deficit is accepted.
    """

    def __init__(self, entries_repository: CacheEntriesRepository):
        """
        Initialize eviction planner.

        Args:
            entries_repository: Entry store to list and re-check entries
        """
        self.entries = entries_repository

    def plan_eviction(
        self,
        current_total: int,
        budget: int,
        incoming_size: int
    ) -> EvictionPlan:
        """
        Plan evictions so that current_total + incoming_size fits the budget.

        Args:
            current_total: Current ledger value in bytes
            budget: Total size budget in bytes
            incoming_size: Size of the incoming write in bytes

        Returns:
            EvictionPlan (empty when no eviction is needed)
        """
        target = budget - incoming_size
        if current_total <= target:
            return EvictionPlan()

        deficit = current_total - target
        plan = EvictionPlan(deficit=deficit)
        now = self.entries.clock()

        for entry in self.entries.list_all_by_access_time():
            if plan.bytes_freed >= deficit:
                break

            if entry.is_expired(now):
                plan.expired.append(entry.hash)
                continue

            # The listing is a snapshot; skip entries removed since
            if not self.entries.exists(entry.hash):
                continue

            plan.to_evict.append(entry.hash)
            plan.bytes_freed += entry.size

        if not plan.satisfied:
            logger.warning(
                f"Eviction plan frees {plan.bytes_freed} of {deficit} bytes; "
                f"admitting write anyway"
            )
        else:
            logger.info(
                f"Planned eviction of {len(plan.to_evict)} entries "
                f"({plan.bytes_freed} bytes) for deficit of {deficit} bytes"
            )

        return plan
