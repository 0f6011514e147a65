"""
Token verification and generation for cache access.

Credentials are either one of two static secrets (read-only, read-write)
or a signed custom token ``<payload>.<signature>``:

    payload   = base64url(JSON {"permissions", "userId", "createdAt"})
    signature = base64url(HMAC-SHA256(secret_key, payload))

Both parts use unpadded base64url.
"""
import hmac
import json
import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from jwt.algorithms import HMACAlgorithm
from jwt.utils import base64url_decode, base64url_encode

logger = logging.getLogger(__name__)

BEARER_PREFIX = re.compile(r'^Bearer\s+')

VALID_PERMISSIONS = ('readonly', 'readwrite')


class AccessLevel(Enum):
    """Access granted by a credential."""
    NONE = 'none'
    READ = 'read'
    READ_WRITE = 'readwrite'


def has_read_permission(level: AccessLevel) -> bool:
    """Read is granted to read-only and read-write credentials."""
    return level in (AccessLevel.READ, AccessLevel.READ_WRITE)


def has_write_permission(level: AccessLevel) -> bool:
    """Write is granted to read-write credentials only."""
    return level is AccessLevel.READ_WRITE


class TokenAuthority:
    """
    Classifies credentials as no-access, read-only or read-write.

    Verification is pure: no I/O, deterministic for a given configuration.
    """

    def __init__(
        self,
        read_only_token: str,
        read_write_token: str,
        secret_key: str
    ):
        """
        Initialize token authority.

        Args:
            read_only_token: Static read-only secret (empty disables it)
            read_write_token: Static read-write secret (empty disables it)
            secret_key: HMAC signing secret for custom tokens
        """
        self.read_only_token = read_only_token
        self.read_write_token = read_write_token
        self._hmac = HMACAlgorithm(HMACAlgorithm.SHA256)
        self._key = self._hmac.prepare_key(secret_key)

    @classmethod
    def from_settings(cls, settings) -> 'TokenAuthority':
        """Build from a Settings instance."""
        return cls(
            read_only_token=settings.read_only_token,
            read_write_token=settings.read_write_token,
            secret_key=settings.secret_key
        )

    def _sign(self, payload: str) -> str:
        signature = self._hmac.sign(payload.encode('utf-8'), self._key)
        return base64url_encode(signature).decode('ascii')

    @staticmethod
    def _matches(candidate: str, secret: str) -> bool:
        return bool(secret) and hmac.compare_digest(
            candidate.encode('utf-8'), secret.encode('utf-8')
        )

    def verify_token(self, credential: Optional[str]) -> AccessLevel:
        """
        Classify a presented credential.

        Args:
            credential: Raw credential, optionally prefixed with "Bearer "

        Returns:
            AccessLevel granted by the credential
        """
        if not credential:
            return AccessLevel.NONE

        token = BEARER_PREFIX.sub('', credential, count=1)
        if not token:
            return AccessLevel.NONE

        if self._matches(token, self.read_only_token):
            return AccessLevel.READ
        if self._matches(token, self.read_write_token):
            return AccessLevel.READ_WRITE

        return self._verify_custom_token(token)

    def _verify_custom_token(self, token: str) -> AccessLevel:
        """Verify a signed custom token; any malformation yields NONE."""
        parts = token.split('.')
        if len(parts) != 2 or not parts[0] or not parts[1]:
            return AccessLevel.NONE
        payload, signature = parts

        if not hmac.compare_digest(
            signature.encode('utf-8'), self._sign(payload).encode('utf-8')
        ):
            logger.warning('Custom token rejected: signature mismatch')
            return AccessLevel.NONE

        try:
            claims = json.loads(base64url_decode(payload))
        except (ValueError, TypeError) as e:
            logger.warning(f'Custom token rejected: malformed payload ({e})')
            return AccessLevel.NONE

        if not isinstance(claims, dict):
            return AccessLevel.NONE

        if claims.get('permissions') == 'readwrite':
            return AccessLevel.READ_WRITE
        return AccessLevel.READ

    def generate_token(self, permissions: str, user_id: Optional[str] = None) -> str:
        """
        Generate a signed custom token.

        Args:
            permissions: 'readonly' or 'readwrite'
            user_id: Optional user identifier embedded in the token

        Returns:
            Token string "<payload>.<signature>"

        Raises:
            ValueError: If permissions is not a known value
        """
        if permissions not in VALID_PERMISSIONS:
            raise ValueError(
                f"permissions must be one of {', '.join(VALID_PERMISSIONS)}, got {permissions!r}"
            )

        claims = {
            'permissions': permissions,
            'userId': user_id or 'anonymous',
            'createdAt': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        }
        payload = base64url_encode(
            json.dumps(claims, separators=(',', ':')).encode('utf-8')
        ).decode('ascii')

        return f'{payload}.{self._sign(payload)}'
