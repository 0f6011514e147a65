"""
Configuration settings for the build cache server.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional

from .table_names import get_table_name


class Settings:
    """
    Configuration settings for cache storage, limits and authorization.

    All settings are loaded from environment variables with defaults.
    """

    def __init__(self):
        """Initialize settings from environment variables."""
        # AWS Configuration
        self.aws_region: str = os.getenv('AWS_REGION', 'us-east-1')
        self.dynamodb_endpoint_url: Optional[str] = os.getenv('DYNAMODB_ENDPOINT_URL') or None
        self.s3_endpoint_url: Optional[str] = os.getenv('S3_ENDPOINT_URL') or None

        # Storage Resources
        self.entries_table_name: str = get_table_name('CACHE_ENTRIES_TABLE_NAME')
        self.counters_table_name: str = get_table_name('CACHE_COUNTERS_TABLE_NAME')
        self.bucket_name: str = get_table_name('CACHE_BUCKET_NAME')
        self.key_prefix: str = os.getenv('CACHE_KEY_PREFIX', 'cache/')

        # Retention and Size Limits
        self.cache_ttl_seconds: int = int(os.getenv('CACHE_TTL', str(7 * 24 * 60 * 60)))
        self.max_item_size: int = int(os.getenv('MAX_ITEM_SIZE', str(100 * 1024 * 1024)))
        self.max_total_size: int = int(
            os.getenv('MAX_TOTAL_CACHE_SIZE', str(10 * 1024 * 1024 * 1024))
        )

        # Authorization
        self.secret_key: str = os.getenv('AUTH_SECRET_KEY', 'build-cache-server-secret-key')
        self.read_only_token: str = os.getenv('READ_ONLY_TOKEN', 'readonly')
        self.read_write_token: str = os.getenv('READ_WRITE_TOKEN', 'readwrite')
        self.admin_auth_required: bool = self._parse_bool(
            os.getenv('ADMIN_AUTH_REQUIRED', 'true')
        )

        # Observability
        self.metrics_enabled: bool = self._parse_bool(os.getenv('METRICS_ENABLED', 'true'))
        self.metrics_namespace: str = os.getenv('METRICS_NAMESPACE', 'BuildCache')
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')

        # Validate configuration
        self._validate()

    def _parse_bool(self, value: str) -> bool:
        """
        Parse boolean value from string.

        Args:
            value: String value to parse

        Returns:
            Boolean value
        """
        return value.lower() in ('true', '1', 'yes', 'on')

    def _validate(self):
        """Validate configuration values."""
        if self.cache_ttl_seconds <= 0:
            raise ValueError(f"CACHE_TTL must be positive, got {self.cache_ttl_seconds}")

        if self.max_item_size <= 0:
            raise ValueError(f"MAX_ITEM_SIZE must be positive, got {self.max_item_size}")

        if self.max_total_size <= 0:
            raise ValueError(
                f"MAX_TOTAL_CACHE_SIZE must be positive, got {self.max_total_size}"
            )

        # A single item larger than the budget could never be admitted
        if self.max_item_size > self.max_total_size:
            raise ValueError(
                f"MAX_ITEM_SIZE ({self.max_item_size}) must not exceed "
                f"MAX_TOTAL_CACHE_SIZE ({self.max_total_size})"
            )

        if not self.secret_key:
            raise ValueError("AUTH_SECRET_KEY must not be empty")

        if self.read_only_token and self.read_only_token == self.read_write_token:
            raise ValueError("READ_ONLY_TOKEN and READ_WRITE_TOKEN must differ")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {valid_log_levels}"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
