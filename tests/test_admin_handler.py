"""
Tests for the admin API Lambda handler.
"""
import json
from unittest.mock import patch

import pytest

from conftest import READ_ONLY_TOKEN, READ_WRITE_TOKEN, load_module

admin_handler = load_module('admin_handler', 'lambda/admin_handler/handler.py')

RW = f'Bearer {READ_WRITE_TOKEN}'


def create_http_event(method, path, token=READ_WRITE_TOKEN):
    """Helper to create HTTP API event."""
    return {
        'rawPath': path,
        'requestContext': {
            'http': {'method': method, 'path': path},
            'requestId': 'admin-request-1',
        },
        'headers': {'authorization': f'Bearer {token}'} if token else {},
    }


def call(method, path, token=READ_WRITE_TOKEN):
    response = admin_handler.lambda_handler(create_http_event(method, path, token), None)
    return response['statusCode'], json.loads(response['body'])


@pytest.fixture
def engine(make_engine, clock):
    engine = make_engine(max_item_size=100, max_total_size=1000)
    for cache_hash, size in (('first', 10), ('second', 20), ('third', 30)):
        engine.write(cache_hash, RW, b'x' * size, size)
        clock.advance(1)
    return engine


@pytest.fixture(autouse=True)
def patched_engine(engine):
    with patch.object(admin_handler, 'get_engine', return_value=engine):
        yield engine


class TestReadRoutes:

    def test_list_caches_newest_first(self):
        status, body = call('GET', '/web/api/caches', token=READ_ONLY_TOKEN)

        assert status == 200
        assert [entry['hash'] for entry in body] == ['third', 'second', 'first']
        assert set(body[0]) == {'hash', 'size', 'createdAt', 'lastAccessed'}
        assert body[0]['size'] == 30

    def test_stats(self):
        status, body = call('GET', '/web/api/stats', token=READ_ONLY_TOKEN)

        assert status == 200
        assert body == {
            'totalItems': 3,
            'totalSize': 60,
            'oldestItem': 'first',
            'newestItem': 'third',
        }

    def test_trailing_slash(self):
        status, _ = call('GET', '/web/api/stats/', token=READ_ONLY_TOKEN)
        assert status == 200

    def test_requires_credential(self):
        status, body = call('GET', '/web/api/caches', token=None)

        assert status == 403
        assert body['code'] == 'FORBIDDEN'


class TestMutatingRoutes:

    def test_delete_one(self, patched_engine):
        status, body = call('DELETE', '/web/api/caches/second')

        assert status == 200
        assert body['success'] is True
        assert patched_engine.current_size() == 40

    def test_delete_missing_is_ok(self):
        status, _ = call('DELETE', '/web/api/caches/missing')
        assert status == 200

    def test_purge(self, patched_engine):
        status, body = call('DELETE', '/web/api/caches')

        assert status == 200
        assert body['count'] == 3
        assert patched_engine.current_size() == 0

    def test_reconcile(self, patched_engine):
        patched_engine.ledger.set(12345)

        status, body = call('POST', '/web/api/ledger/reconcile')

        assert status == 200
        assert body == {'success': True, 'totalSize': 60}

    @pytest.mark.parametrize('method,path', [
        ('DELETE', '/web/api/caches/first'),
        ('DELETE', '/web/api/caches'),
        ('POST', '/web/api/ledger/reconcile'),
    ])
    def test_read_only_token_cannot_mutate(self, method, path, patched_engine):
        status, _ = call(method, path, token=READ_ONLY_TOKEN)

        assert status == 403
        assert patched_engine.current_size() == 60


class TestAdminAuthDisabled:

    @pytest.fixture(autouse=True)
    def auth_disabled(self, monkeypatch):
        monkeypatch.setenv('ADMIN_AUTH_REQUIRED', 'false')

    def test_list_without_credential(self):
        status, _ = call('GET', '/web/api/caches', token=None)
        assert status == 200

    def test_purge_without_credential(self):
        status, body = call('DELETE', '/web/api/caches', token=None)

        assert status == 200
        assert body['count'] == 3


def test_unknown_route():
    status, body = call('GET', '/web/api/unknown')

    assert status == 404
    assert body['code'] == 'NOT_FOUND'
