"""
Custom exceptions for cache engine operations.

Each exception carries the HTTP status code and application error code the
boundary layer returns for it, so handlers can map failures without a
lookup table of their own.
"""


class CacheError(Exception):
    """Base exception for cache engine operations."""

    status_code = 500
    error_code = 'INTERNAL_ERROR'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ForbiddenError(CacheError):
    """
    Raised when the presented credential lacks the required permission.

    This covers missing credentials, invalid or tampered tokens, and
    read-only credentials used for writes.
    """

    status_code = 403
    error_code = 'FORBIDDEN'


class ConflictError(CacheError):
    """Raised when writing a hash that already has a live entry."""

    status_code = 409
    error_code = 'CONFLICT'


class BadRequestError(CacheError):
    """
    Raised when the size declaration of a write is malformed.

    This can occur due to:
    - Missing or zero Content-Length
    - Content-Length not matching the received body
    """

    status_code = 400
    error_code = 'BAD_REQUEST'


class PayloadTooLargeError(CacheError):
    """Raised when a write exceeds the per-item size limit."""

    status_code = 413
    error_code = 'PAYLOAD_TOO_LARGE'


class NotFoundError(CacheError):
    """Raised when reading a hash with no live entry."""

    status_code = 404
    error_code = 'NOT_FOUND'


class StoreUnavailableError(CacheError):
    """
    Raised when the backing store cannot complete a call.

    This can occur due to:
    - DynamoDB or S3 service errors
    - Network connectivity issues or timeouts
    - Exhausted client-level retries
    """

    status_code = 500
    error_code = 'STORE_UNAVAILABLE'
