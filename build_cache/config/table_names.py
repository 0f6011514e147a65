"""
DynamoDB table and S3 bucket name constants.

This module provides centralized resource name constants to ensure consistency
across all modules and Lambda functions.
"""
import os
from typing import Optional

CACHE_ENTRIES_TABLE_NAME = 'CacheEntries'
CACHE_COUNTERS_TABLE_NAME = 'CacheCounters'
CACHE_BUCKET_NAME = 'build-cache-artifacts'

# Resource name mapping for environment variable overrides
TABLE_NAME_ENV_VARS = {
    'CACHE_ENTRIES_TABLE_NAME': CACHE_ENTRIES_TABLE_NAME,
    'CACHE_COUNTERS_TABLE_NAME': CACHE_COUNTERS_TABLE_NAME,
    'CACHE_BUCKET_NAME': CACHE_BUCKET_NAME,
}


def get_table_name(table_key: str, default: Optional[str] = None) -> str:
    """
    Get resource name from environment variable or use default constant.

    Supports both the ``_NAME`` suffixed variable and the short form
    without it (``CACHE_ENTRIES_TABLE``).

    Args:
        table_key: Environment variable key (e.g., 'CACHE_ENTRIES_TABLE_NAME')
        default: Default name if environment variable not set

    Returns:
        Resource name from environment or default

    Example:
        >>> os.environ['CACHE_ENTRIES_TABLE_NAME'] = 'CacheEntries-Dev'
        >>> get_table_name('CACHE_ENTRIES_TABLE_NAME')
        'CacheEntries-Dev'
    """
    if default is None:
        default = TABLE_NAME_ENV_VARS.get(table_key, '')

    value = os.getenv(table_key)
    if value:
        return value

    short_key = table_key.replace('_TABLE_NAME', '_TABLE')
    if short_key != table_key:
        value = os.getenv(short_key)
        if value:
            return value

    return default
