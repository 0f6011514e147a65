"""
Utility for building standardized API Gateway responses.
"""
import base64
import json
import time
from typing import Any, Dict, Optional

from ..models.cache_entry import OCTET_STREAM

JSON_HEADERS = {'Content-Type': 'application/json'}


def success_response(
    status_code: int = 200,
    body: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Build success response.

    Args:
        status_code: HTTP status code
        body: JSON-serializable response body

    Returns:
        API Gateway response dict
    """
    return {
        'statusCode': status_code,
        'headers': dict(JSON_HEADERS),
        'body': json.dumps(body if body is not None else {})
    }


def binary_response(data: bytes, status_code: int = 200) -> Dict[str, Any]:
    """
    Build a binary response; API Gateway decodes the base64 body.

    Args:
        data: Raw bytes
        status_code: HTTP status code

    Returns:
        API Gateway response dict
    """
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': OCTET_STREAM,
            'Content-Length': str(len(data)),
        },
        'body': base64.b64encode(data).decode('ascii'),
        'isBase64Encoded': True
    }


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build error response.

    Args:
        status_code: HTTP status code
        error_code: Application error code
        message: Human-readable error message
        details: Optional additional error details

    Returns:
        API Gateway response dict
    """
    body = {
        'type': 'error',
        'code': error_code,
        'message': message,
        'timestamp': int(time.time() * 1000)
    }

    if details:
        body['details'] = details

    return {
        'statusCode': status_code,
        'headers': dict(JSON_HEADERS),
        'body': json.dumps(body)
    }
