"""
Build Cache Server.

Remote build-artifact cache: write-once content-addressed blobs in S3 with
metadata, size accounting and LRU eviction in DynamoDB, gated by static or
HMAC-signed tokens.
"""

from .services.cache_engine import CacheEngine, WriteResult
from .services.cache_reports import CacheReports, CacheStats
from .services.token_authority import AccessLevel, TokenAuthority
from .config.settings import Settings, get_settings

__version__ = "1.0.0"

__all__ = [
    'CacheEngine',
    'WriteResult',
    'CacheReports',
    'CacheStats',
    'AccessLevel',
    'TokenAuthority',
    'Settings',
    'get_settings',
]
