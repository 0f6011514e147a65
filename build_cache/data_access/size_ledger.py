"""
Size ledger: aggregate byte count of all cached entries.
"""
import logging
from typing import Optional

from .dynamodb_client import DynamoDBClient

logger = logging.getLogger(__name__)

TOTAL_SIZE_COUNTER = 'cacheTotalSize'
TOTAL_BYTES_ATTRIBUTE = 'totalBytes'


class SizeLedger:
    """
    Atomic byte counter stored as a single item in the CacheCounters table.

    The value is owned by DynamoDB and mutated concurrently by every writer,
    so it is re-read on each call and never cached.
    """

    def __init__(
        self,
        table_name: str,
        dynamodb_client: Optional[DynamoDBClient] = None,
        counter_name: str = TOTAL_SIZE_COUNTER
    ):
        """
        Initialize size ledger.

        Args:
            table_name: Name of the CacheCounters table
            dynamodb_client: Optional DynamoDB client instance
            counter_name: Partition key of the counter item
        """
        self.table_name = table_name
        self.client = dynamodb_client or DynamoDBClient()
        self.key = {'counterName': counter_name}

    def get(self) -> int:
        """
        Get the current total.

        Returns:
            Total bytes, 0 when the counter does not exist yet
        """
        item = self.client.get_item(
            table_name=self.table_name,
            key=self.key,
            consistent_read=True
        )
        if not item:
            return 0
        return max(0, int(item.get(TOTAL_BYTES_ATTRIBUTE, 0)))

    def add_delta(self, delta: int) -> int:
        """
        Atomically add a delta, clamping at zero on underflow.

        Args:
            delta: Bytes to add (negative to subtract)

        Returns:
            New total
        """
        new_total = self.client.atomic_add_with_floor(
            table_name=self.table_name,
            key=self.key,
            attribute_name=TOTAL_BYTES_ATTRIBUTE,
            delta=delta,
            floor_value=0
        )
        logger.debug(f"Ledger updated by {delta}: total = {new_total}")
        return new_total

    def set(self, value: int) -> None:
        """Overwrite the total, used by reconciliation."""
        self.client.put_item(
            table_name=self.table_name,
            item={**self.key, TOTAL_BYTES_ATTRIBUTE: max(0, value)}
        )
        logger.info(f"Ledger set to {max(0, value)}")

    def reset(self) -> None:
        """Reset the total to 0."""
        self.set(0)
