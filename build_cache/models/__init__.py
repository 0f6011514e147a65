"""
Data models for cache records.
"""
from .cache_entry import CacheEntryMetadata, OCTET_STREAM

__all__ = ['CacheEntryMetadata', 'OCTET_STREAM']
