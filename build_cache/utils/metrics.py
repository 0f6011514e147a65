"""
CloudWatch metrics utility for emitting cache metrics.

Provides methods for emitting:
- Count metrics (hits, misses, writes, conflicts, rejected writes)
- Eviction metrics (entries and bytes evicted)
"""
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import boto3

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    CloudWatch metrics publisher for cache operations.

    Publishing failures are logged and never propagate to the request.
    """

    def __init__(
        self,
        namespace: str = 'BuildCache',
        enabled: bool = True,
        cloudwatch_client=None
    ):
        """
        Initialize metrics publisher.

        Args:
            namespace: CloudWatch metrics namespace
            enabled: When False, metrics are dropped
            cloudwatch_client: Optional CloudWatch client for testing
        """
        self.namespace = namespace
        self.enabled = enabled
        self._cloudwatch = cloudwatch_client

    @property
    def cloudwatch(self):
        if self._cloudwatch is None:
            self._cloudwatch = boto3.client(
                'cloudwatch',
                region_name=os.environ.get('AWS_REGION', 'us-east-1')
            )
        return self._cloudwatch

    def put_count_metric(
        self,
        metric_name: str,
        value: int = 1,
        dimensions: Optional[List[Dict[str, str]]] = None
    ):
        """
        Emit count metric.

        Args:
            metric_name: Metric name (e.g., 'CacheHits')
            value: Count value (default: 1)
            dimensions: Metric dimensions
        """
        self._put_metric(metric_name, value, 'Count', dimensions or [])

    def put_bytes_metric(self, metric_name: str, value: int):
        """Emit a metric measured in bytes."""
        self._put_metric(metric_name, value, 'Bytes', [])

    def _put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: List[Dict[str, str]]
    ):
        if not self.enabled:
            return

        try:
            metric_data = {
                'MetricName': metric_name,
                'Value': value,
                'Unit': unit,
                'Timestamp': datetime.now(timezone.utc)
            }

            if dimensions:
                metric_data['Dimensions'] = dimensions

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )
        except Exception as e:
            logger.warning(f"Failed to emit metric {metric_name}: {e}")

    def emit_cache_hit(self):
        self.put_count_metric('CacheHits')

    def emit_cache_miss(self):
        self.put_count_metric('CacheMisses')

    def emit_cache_write(self, evicted_entries: int = 0, evicted_bytes: int = 0):
        """
        Emit metrics for an accepted write and the eviction it triggered.

        Args:
            evicted_entries: Entries removed to make room
            evicted_bytes: Bytes freed by eviction
        """
        self.put_count_metric('CacheWrites')
        if evicted_entries:
            self.put_count_metric('CacheEvictions', evicted_entries)
            self.put_bytes_metric('CacheEvictedBytes', evicted_bytes)

    def emit_conflict(self):
        self.put_count_metric('CacheConflicts')

    def emit_rejected_write(self, error_code: str):
        """
        Emit rejected write metric.

        Args:
            error_code: Reason of the rejection (e.g., 'PAYLOAD_TOO_LARGE')
        """
        self.put_count_metric(
            'CacheRejectedWrites',
            dimensions=[{'Name': 'ErrorCode', 'Value': error_code}]
        )
