"""
HTTP API Lambda handler for cache reads and writes.

This handler implements the remote cache endpoints:
- GET /v1/cache/{hash} - Download a cache entry
- PUT /v1/cache/{hash} - Upload a cache entry (write-once)
- GET /health - Health check
"""
import base64
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import unquote

from build_cache.config.settings import get_settings
from build_cache.exceptions import CacheError, ConflictError
from build_cache.services.cache_engine import CacheEngine
from build_cache.utils.metrics import MetricsPublisher
from build_cache.utils.response_builder import (
    binary_response,
    error_response,
    success_response,
)
from build_cache.utils.structured_logger import (
    LoggingContext,
    StructuredLogger,
    configure_lambda_logging,
    get_structured_logger,
)

configure_lambda_logging()

CACHE_PATH_PREFIX = '/v1/cache/'
CONTENT_LENGTH_PATTERN = re.compile(r'[0-9]+')

# Reused across warm invocations
_engine: Optional[CacheEngine] = None
_metrics: Optional[MetricsPublisher] = None


def get_engine() -> CacheEngine:
    """Get or create the cache engine."""
    global _engine
    if _engine is None:
        _engine = CacheEngine.from_settings(get_settings())
    return _engine


def get_metrics() -> MetricsPublisher:
    """Get or create the metrics publisher."""
    global _metrics
    if _metrics is None:
        settings = get_settings()
        _metrics = MetricsPublisher(
            namespace=settings.metrics_namespace,
            enabled=settings.metrics_enabled
        )
    return _metrics


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    HTTP API Lambda handler for cache operations.

    Routes:
    - GET /v1/cache/{hash} -> get_cache
    - PUT /v1/cache/{hash} -> put_cache
    - GET /health -> health_check
    """
    request_context = event.get('requestContext') or {}
    http_method = (request_context.get('http') or {}).get('method', '')
    path = event.get('rawPath') or (request_context.get('http') or {}).get('path', '')
    cache_hash = extract_cache_hash(event, path)

    logger = get_structured_logger(
        'CacheHandler',
        request_id=request_context.get('requestId'),
        cache_hash=cache_hash
    )

    try:
        if http_method == 'GET' and path == '/health':
            return health_check()

        if cache_hash is None:
            return error_response(404, 'NOT_FOUND', 'Not found')

        headers = normalize_headers(event.get('headers'))
        credential = headers.get('authorization', '')

        if http_method == 'GET':
            return get_cache(cache_hash, credential, logger)
        if http_method == 'PUT':
            return put_cache(event, cache_hash, credential, headers, logger)

        return error_response(404, 'NOT_FOUND', 'Not found')

    except Exception as e:
        logger.error('Unhandled error', operation=http_method, error=e)
        return error_response(500, 'INTERNAL_ERROR', 'Internal server error')


def get_cache(
    cache_hash: str,
    credential: str,
    logger: StructuredLogger
) -> Dict[str, Any]:
    """Download a cache entry."""
    metrics = get_metrics()
    try:
        with LoggingContext(logger, 'read'):
            data = get_engine().read(cache_hash, credential)
    except CacheError as e:
        if e.status_code == 404:
            metrics.emit_cache_miss()
        return cache_error_response(e, logger, 'read')

    metrics.emit_cache_hit()
    logger.info('Cache hit', operation='read', size=len(data))
    return binary_response(data)


def put_cache(
    event: Dict[str, Any],
    cache_hash: str,
    credential: str,
    headers: Dict[str, str],
    logger: StructuredLogger
) -> Dict[str, Any]:
    """Upload a cache entry."""
    metrics = get_metrics()
    declared_length = parse_content_length(headers.get('content-length'))

    try:
        data = decode_body(event)
    except ValueError:
        # Rejected by the engine after the credential and conflict checks
        data = None

    try:
        with LoggingContext(logger, 'write', declared_length=declared_length):
            result = get_engine().write(cache_hash, credential, data, declared_length)
    except CacheError as e:
        if isinstance(e, ConflictError):
            metrics.emit_conflict()
        elif e.status_code in (400, 413):
            metrics.emit_rejected_write(e.error_code)
        return cache_error_response(e, logger, 'write')

    metrics.emit_cache_write(len(result.evicted), result.bytes_freed)
    logger.info(
        'Cache entry stored',
        operation='write',
        size=result.metadata.size,
        evicted=len(result.evicted),
        bytes_freed=result.bytes_freed,
        ledger_total=result.ledger_total
    )
    return success_response(202, {'message': 'Successfully uploaded the output'})


def health_check() -> Dict[str, Any]:
    """Liveness probe; does not touch the store."""
    return success_response(200, {
        'status': 'ok',
        'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
    })


def cache_error_response(
    error: CacheError,
    logger: StructuredLogger,
    operation: str
) -> Dict[str, Any]:
    """Map a CacheError onto an API Gateway error response."""
    if error.status_code >= 500:
        logger.error(error.message, operation=operation, error=error)
    else:
        logger.info(error.message, operation=operation, status_code=error.status_code)
    return error_response(error.status_code, error.error_code, error.message)


def extract_cache_hash(event: Dict[str, Any], path: str) -> Optional[str]:
    """
    Extract the cache hash from path parameters or the raw path.

    Returns:
        Hash, or None if the path is not a cache path
    """
    path_params = event.get('pathParameters') or {}
    if path_params.get('hash'):
        return path_params['hash']

    if path and path.startswith(CACHE_PATH_PREFIX):
        cache_hash = unquote(path[len(CACHE_PATH_PREFIX):])
        if cache_hash and '/' not in cache_hash:
            return cache_hash

    return None


def normalize_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Lower-case header names (HTTP API already does, REST API does not)."""
    return {name.lower(): value for name, value in (headers or {}).items()}


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """
    Parse a Content-Length header.

    Returns:
        Length, or None when missing or not a plain decimal integer
    """
    if value is None:
        return None
    value = value.strip()
    if not CONTENT_LENGTH_PATTERN.fullmatch(value):
        return None
    return int(value)


def decode_body(event: Dict[str, Any]) -> bytes:
    """
    Decode the request body to raw bytes.

    Binary uploads arrive base64-encoded. Plain bodies arrive as text
    decoded from UTF-8 and are encoded back to the bytes the client sent.

    Raises:
        ValueError: If a base64 body is malformed or a text body cannot be
            encoded as UTF-8
    """
    body = event.get('body') or ''
    if event.get('isBase64Encoded'):
        return base64.b64decode(body, validate=True)
    if isinstance(body, bytes):
        return body
    return body.encode('utf-8')
