"""
Utility functions and services.
"""

from .response_builder import (
    success_response,
    binary_response,
    error_response,
)
from .structured_logger import (
    StructuredLogger,
    LoggingContext,
    get_structured_logger,
    configure_lambda_logging,
)
from .metrics import MetricsPublisher

__all__ = [
    'success_response',
    'binary_response',
    'error_response',
    'StructuredLogger',
    'LoggingContext',
    'get_structured_logger',
    'configure_lambda_logging',
    'MetricsPublisher',
]
