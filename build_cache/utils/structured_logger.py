"""
Structured JSON logging for Lambda functions.

This module provides a structured logger that outputs JSON-formatted
logs with correlation IDs, context, and standardized fields for
CloudWatch Logs Insights queries.
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)


class StructuredLogger:
    """
    Structured JSON logger for Lambda functions.

    Outputs logs in JSON format with:
    - Timestamp (ISO 8601)
    - Log level
    - Correlation IDs (requestId, cacheHash)
    - Component and operation
    - Message and additional context
    """

    def __init__(
        self,
        component: str,
        request_id: Optional[str] = None,
        cache_hash: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component name (e.g., 'CacheHandler', 'AdminHandler')
            request_id: Request identifier from Lambda context
            cache_hash: Cache hash the request targets
        """
        self.component = component
        self.request_id = request_id
        self.cache_hash = cache_hash
        self.logger = logging.getLogger(component)

        log_level = os.getenv('LOG_LEVEL', 'INFO')
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Log message
            operation: Operation being performed
            **kwargs: Additional context fields

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'component': self.component,
            'message': message
        }

        if self.request_id:
            log_entry['requestId'] = self.request_id
        if self.cache_hash:
            log_entry['cacheHash'] = self.cache_hash

        if operation:
            log_entry['operation'] = operation

        if kwargs:
            log_entry['context'] = kwargs

        return json.dumps(log_entry, cls=DecimalEncoder, default=str)

    def debug(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log debug message."""
        self.logger.debug(self._format_log('DEBUG', message, operation, **kwargs))

    def info(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log info message."""
        self.logger.info(self._format_log('INFO', message, operation, **kwargs))

    def warning(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log warning message."""
        self.logger.warning(self._format_log('WARNING', message, operation, **kwargs))

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        error: Optional[Exception] = None,
        **kwargs
    ) -> None:
        """
        Log error message.

        Args:
            message: Log message
            operation: Operation being performed
            error: Exception object if available
            **kwargs: Additional context
        """
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_message'] = str(error)

        self.logger.error(self._format_log('ERROR', message, operation, **kwargs))

    def log_performance(self, operation: str, duration_ms: float, **kwargs) -> None:
        """
        Log performance metric at DEBUG level.

        Args:
            operation: Operation name
            duration_ms: Duration in milliseconds
            **kwargs: Additional context
        """
        self.debug(
            f'Performance: {operation}',
            operation='performance',
            operation_name=operation,
            duration_ms=duration_ms,
            **kwargs
        )


class LoggingContext:
    """
    Context manager for logging operation duration.

    Automatically logs operation start, end, and duration.
    """

    def __init__(self, logger: StructuredLogger, operation: str, **kwargs):
        """
        Initialize logging context.

        Args:
            logger: StructuredLogger instance
            operation: Operation name
            **kwargs: Additional context
        """
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time: Optional[float] = None

    def __enter__(self):
        """Log operation start."""
        self.start_time = time.time()
        self.logger.debug(
            f'Starting operation: {self.operation}',
            operation=self.operation,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log operation end and duration."""
        if self.start_time is None:
            return

        duration_ms = (time.time() - self.start_time) * 1000
        if exc_type is not None:
            # Expected client errors are logged by the handler, not here
            self.logger.debug(
                f'Operation raised: {self.operation}',
                operation=self.operation,
                error_type=exc_type.__name__,
                duration_ms=duration_ms,
                **self.context
            )
        else:
            self.logger.log_performance(self.operation, duration_ms, **self.context)


def get_structured_logger(
    component: str,
    correlation_id: Optional[str] = None,
    request_id: Optional[str] = None,
    cache_hash: Optional[str] = None
) -> StructuredLogger:
    """
    Factory function for creating StructuredLogger instances.

    Args:
        component: Name of the component (e.g., 'CacheHandler')
        correlation_id: Optional correlation ID (alias for request_id)
        request_id: Optional request ID from Lambda context
        cache_hash: Optional cache hash for context

    Returns:
        Configured StructuredLogger instance

    Example:
        >>> logger = get_structured_logger('CacheHandler', request_id='abc', cache_hash='9f2c')
        >>> logger.info('Cache hit')
    """
    if correlation_id and not request_id:
        request_id = correlation_id

    return StructuredLogger(
        component=component,
        request_id=request_id,
        cache_hash=cache_hash
    )


def configure_lambda_logging():
    """
    Configure logging for Lambda environment.

    Sets up root logger to output to stdout with appropriate format.
    Should be called at module level in Lambda handlers.
    """
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(message)s',  # Just the message, we format as JSON
        force=True
    )

    # Disable boto3 debug logging unless explicitly enabled
    if log_level != 'DEBUG':
        logging.getLogger('boto3').setLevel(logging.WARNING)
        logging.getLogger('botocore').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
