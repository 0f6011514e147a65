"""
Unit tests for TokenAuthority.
"""
import json

import pytest
from jwt.utils import base64url_decode, base64url_encode

from build_cache.services.token_authority import (
    AccessLevel,
    TokenAuthority,
    has_read_permission,
    has_write_permission,
)


@pytest.fixture
def authority():
    return TokenAuthority('ro-secret', 'rw-secret', 'signing-key')


class TestStaticTokens:
    """Test static token classification."""

    def test_read_only_token(self, authority):
        assert authority.verify_token('ro-secret') == AccessLevel.READ

    def test_read_write_token(self, authority):
        assert authority.verify_token('rw-secret') == AccessLevel.READ_WRITE

    def test_bearer_prefix_is_stripped(self, authority):
        assert authority.verify_token('Bearer rw-secret') == AccessLevel.READ_WRITE
        assert authority.verify_token('Bearer   ro-secret') == AccessLevel.READ

    def test_missing_credential(self, authority):
        assert authority.verify_token(None) == AccessLevel.NONE
        assert authority.verify_token('') == AccessLevel.NONE
        assert authority.verify_token('Bearer ') == AccessLevel.NONE

    def test_unknown_token(self, authority):
        assert authority.verify_token('not-a-token') == AccessLevel.NONE

    def test_static_match_is_exact(self, authority):
        assert authority.verify_token('rw-secre') == AccessLevel.NONE
        assert authority.verify_token('rw-secret ') == AccessLevel.NONE

    def test_empty_static_tokens_never_match(self):
        authority = TokenAuthority('', '', 'signing-key')
        assert authority.verify_token('') == AccessLevel.NONE
        assert authority.verify_token('Bearer x') == AccessLevel.NONE


class TestCustomTokens:
    """Test signed custom tokens."""

    def test_generated_readwrite_token_verifies(self, authority):
        token = authority.generate_token('readwrite', 'ci-runner')
        assert authority.verify_token(token) == AccessLevel.READ_WRITE
        assert authority.verify_token(f'Bearer {token}') == AccessLevel.READ_WRITE

    def test_generated_readonly_token_verifies(self, authority):
        token = authority.generate_token('readonly')
        assert authority.verify_token(token) == AccessLevel.READ

    def test_payload_contents(self, authority):
        token = authority.generate_token('readwrite', 'ci-runner')
        payload, _ = token.split('.')
        claims = json.loads(base64url_decode(payload))

        assert claims['permissions'] == 'readwrite'
        assert claims['userId'] == 'ci-runner'
        assert claims['createdAt'].endswith('Z')

    def test_default_user_id(self, authority):
        token = authority.generate_token('readonly')
        claims = json.loads(base64url_decode(token.split('.')[0]))
        assert claims['userId'] == 'anonymous'

    def test_token_parts_are_unpadded(self, authority):
        token = authority.generate_token('readwrite', 'x')
        assert '=' not in token
        assert token.count('.') == 1

    def test_invalid_permissions_rejected(self, authority):
        with pytest.raises(ValueError):
            authority.generate_token('admin')

    def test_tampered_signature(self, authority):
        token = authority.generate_token('readwrite')
        payload, signature = token.split('.')
        tampered = signature[:-1] + ('A' if signature[-1] != 'A' else 'B')
        assert authority.verify_token(f'{payload}.{tampered}') == AccessLevel.NONE

    def test_tampered_payload(self, authority):
        token = authority.generate_token('readonly')
        _, signature = token.split('.')
        forged = base64url_encode(b'{"permissions":"readwrite"}').decode('ascii')
        assert authority.verify_token(f'{forged}.{signature}') == AccessLevel.NONE

    def test_token_signed_with_other_key(self, authority):
        other = TokenAuthority('ro-secret', 'rw-secret', 'another-key')
        token = other.generate_token('readwrite')
        assert authority.verify_token(token) == AccessLevel.NONE

    def test_wrong_part_count(self, authority):
        token = authority.generate_token('readwrite')
        assert authority.verify_token(token + '.extra') == AccessLevel.NONE
        assert authority.verify_token('onlyonepart') == AccessLevel.NONE
        assert authority.verify_token('.sig') == AccessLevel.NONE
        assert authority.verify_token('payload.') == AccessLevel.NONE

    def test_unknown_permissions_grant_read(self, authority):
        payload = base64url_encode(b'{"permissions":"superuser"}').decode('ascii')
        token = f'{payload}.{authority._sign(payload)}'
        assert authority.verify_token(token) == AccessLevel.READ

    def test_signed_non_json_payload(self, authority):
        payload = base64url_encode(b'not json').decode('ascii')
        token = f'{payload}.{authority._sign(payload)}'
        assert authority.verify_token(token) == AccessLevel.NONE

    def test_signed_non_object_payload(self, authority):
        payload = base64url_encode(b'["readwrite"]').decode('ascii')
        token = f'{payload}.{authority._sign(payload)}'
        assert authority.verify_token(token) == AccessLevel.NONE

    def test_verification_is_deterministic(self, authority):
        token = authority.generate_token('readwrite')
        results = {authority.verify_token(token) for _ in range(5)}
        assert results == {AccessLevel.READ_WRITE}


class TestPermissions:
    """Test permission helpers."""

    @pytest.mark.parametrize('level,read,write', [
        (AccessLevel.NONE, False, False),
        (AccessLevel.READ, True, False),
        (AccessLevel.READ_WRITE, True, True),
    ])
    def test_permission_matrix(self, level, read, write):
        assert has_read_permission(level) is read
        assert has_write_permission(level) is write
