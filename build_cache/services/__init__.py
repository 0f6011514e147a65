"""
Cache services: authorization, eviction planning, orchestration and reporting.
"""
from .token_authority import (
    AccessLevel,
    TokenAuthority,
    has_read_permission,
    has_write_permission,
)
from .eviction_planner import EvictionPlan, EvictionPlanner
from .cache_engine import CacheEngine, WriteResult
from .cache_reports import CacheReports, CacheStats

__all__ = [
    'AccessLevel',
    'TokenAuthority',
    'has_read_permission',
    'has_write_permission',
    'EvictionPlan',
    'EvictionPlanner',
    'CacheEngine',
    'WriteResult',
    'CacheReports',
    'CacheStats',
]
