"""
HTTP API Lambda handler for the cache administration API.

Routes:
- GET /web/api/caches - List live entries, newest first
- GET /web/api/stats - Aggregate statistics
- DELETE /web/api/caches/{hash} - Delete one entry
- DELETE /web/api/caches - Purge every entry
- POST /web/api/ledger/reconcile - Recompute the size ledger
"""
from typing import Any, Dict, Optional
from urllib.parse import unquote

from build_cache.config.settings import get_settings
from build_cache.exceptions import CacheError, ForbiddenError
from build_cache.services.cache_engine import CacheEngine
from build_cache.services.cache_reports import CacheReports
from build_cache.services.token_authority import has_read_permission, has_write_permission
from build_cache.utils.response_builder import error_response, success_response
from build_cache.utils.structured_logger import (
    StructuredLogger,
    configure_lambda_logging,
    get_structured_logger,
)

configure_lambda_logging()

API_PREFIX = '/web/api'
CACHES_PATH = API_PREFIX + '/caches'
STATS_PATH = API_PREFIX + '/stats'
RECONCILE_PATH = API_PREFIX + '/ledger/reconcile'

_engine: Optional[CacheEngine] = None


def get_engine() -> CacheEngine:
    """Get or create the cache engine."""
    global _engine
    if _engine is None:
        _engine = CacheEngine.from_settings(get_settings())
    return _engine


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    HTTP API Lambda handler for administration routes.
    """
    request_context = event.get('requestContext') or {}
    http_method = (request_context.get('http') or {}).get('method', '')
    path = (event.get('rawPath') or (request_context.get('http') or {}).get('path', '')).rstrip('/')

    logger = get_structured_logger('AdminHandler', request_id=request_context.get('requestId'))

    try:
        if http_method == 'GET' and path == CACHES_PATH:
            authorize(event, write=False)
            return list_caches(logger)

        if http_method == 'GET' and path == STATS_PATH:
            authorize(event, write=False)
            return get_stats(logger)

        if http_method == 'DELETE' and path == CACHES_PATH:
            authorize(event, write=True)
            return purge_caches(logger)

        if http_method == 'DELETE' and path.startswith(CACHES_PATH + '/'):
            cache_hash = extract_cache_hash(event, path)
            if not cache_hash:
                return error_response(404, 'NOT_FOUND', 'Not found')
            authorize(event, write=True)
            return delete_cache(cache_hash, logger)

        if http_method == 'POST' and path == RECONCILE_PATH:
            authorize(event, write=True)
            return reconcile_ledger(logger)

        return error_response(404, 'NOT_FOUND', 'Not found')

    except CacheError as e:
        if e.status_code >= 500:
            logger.error(e.message, operation=http_method, error=e)
        else:
            logger.warning(e.message, operation=http_method, status_code=e.status_code)
        return error_response(e.status_code, e.error_code, e.message)

    except Exception as e:
        logger.error('Unhandled error', operation=http_method, error=e)
        return error_response(500, 'INTERNAL_ERROR', 'Internal server error')


def authorize(event: Dict[str, Any], write: bool) -> None:
    """
    Check the caller's credential when admin authentication is enabled.

    Read routes need read permission, mutating routes need read-write.

    Raises:
        ForbiddenError: If the credential is insufficient
    """
    if not get_settings().admin_auth_required:
        return

    headers = {name.lower(): value for name, value in (event.get('headers') or {}).items()}
    level = get_engine().tokens.verify_token(headers.get('authorization', ''))
    allowed = has_write_permission(level) if write else has_read_permission(level)
    if not allowed:
        raise ForbiddenError('Access forbidden')


def list_caches(logger: StructuredLogger) -> Dict[str, Any]:
    entries = CacheReports(get_engine().entries).list_entries()
    logger.info('Listed cache entries', operation='list', count=len(entries))
    return success_response(200, [entry.to_dict() for entry in entries])


def get_stats(logger: StructuredLogger) -> Dict[str, Any]:
    stats = CacheReports(get_engine().entries).stats()
    logger.info('Computed cache stats', operation='stats', total_items=stats.total_items)
    return success_response(200, stats.to_dict())


def delete_cache(cache_hash: str, logger: StructuredLogger) -> Dict[str, Any]:
    get_engine().delete_one(cache_hash)
    logger.info('Deleted cache entry', operation='delete', cacheHash=cache_hash)
    return success_response(200, {
        'success': True,
        'message': f'Cache {cache_hash} deleted successfully',
    })


def purge_caches(logger: StructuredLogger) -> Dict[str, Any]:
    count = get_engine().purge_all()
    logger.info('Purged cache', operation='purge', count=count)
    return success_response(200, {
        'success': True,
        'message': f'Deleted {count} cache entries',
        'count': count,
    })


def reconcile_ledger(logger: StructuredLogger) -> Dict[str, Any]:
    total = get_engine().reconcile_ledger()
    logger.info('Reconciled size ledger', operation='reconcile', total_size=total)
    return success_response(200, {'success': True, 'totalSize': total})


def extract_cache_hash(event: Dict[str, Any], path: str) -> Optional[str]:
    """Extract the hash from path parameters or the trailing path segment."""
    path_params = event.get('pathParameters') or {}
    if path_params.get('hash'):
        return path_params['hash']

    cache_hash = unquote(path[len(CACHES_PATH) + 1:])
    if not cache_hash or '/' in cache_hash:
        return None
    return cache_hash
