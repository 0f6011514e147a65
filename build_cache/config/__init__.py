"""
Configuration module for the build cache server.

Provides environment variable loading and resource name resolution.
"""

from .settings import Settings, get_settings, reset_settings
from .table_names import get_table_name

__all__ = ['Settings', 'get_settings', 'reset_settings', 'get_table_name']
