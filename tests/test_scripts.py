"""
Tests for the operator scripts.
"""
from unittest.mock import MagicMock, patch

import pytest

from build_cache.services.token_authority import AccessLevel, TokenAuthority
from conftest import load_module

generate_token = load_module('generate_token', 'scripts/generate_token.py')
smoke_test = load_module('smoke_test', 'scripts/smoke_test.py')


class TestGenerateToken:

    def test_generates_verifiable_token(self, monkeypatch, capsys):
        monkeypatch.setenv('AUTH_SECRET_KEY', 'cli-secret')

        assert generate_token.main(['readwrite', 'ci-runner']) == 0

        output = capsys.readouterr().out
        token = output.splitlines()[0].split('Token: ', 1)[1]
        authority = TokenAuthority('', '', 'cli-secret')
        assert authority.verify_token(token) == AccessLevel.READ_WRITE
        assert 'User ID: ci-runner' in output

    def test_default_user_id(self, monkeypatch, capsys):
        monkeypatch.setenv('AUTH_SECRET_KEY', 'cli-secret')

        assert generate_token.main(['readonly']) == 0
        assert 'User ID: anonymous' in capsys.readouterr().out

    def test_invalid_permissions(self, monkeypatch, capsys):
        monkeypatch.setenv('AUTH_SECRET_KEY', 'cli-secret')

        assert generate_token.main(['admin']) == 1
        assert 'permissions must be one of' in capsys.readouterr().err

    def test_requires_secret_key(self, monkeypatch, capsys):
        monkeypatch.delenv('AUTH_SECRET_KEY', raising=False)

        assert generate_token.main(['readonly']) == 1
        assert 'AUTH_SECRET_KEY' in capsys.readouterr().err

    def test_missing_arguments_exit(self):
        with pytest.raises(SystemExit):
            generate_token.main([])


def make_response(status_code, content=b'', json_body=None):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.json.return_value = json_body or {}
    return response


class TestSmokeTest:

    def test_all_checks_pass(self):
        with patch.object(smoke_test.requests, 'Session') as mock_session_cls:
            session = mock_session_cls.return_value
            tester = smoke_test.SmokeTest('http://cache.local/', 'ro', 'rw')
            session.get.side_effect = [
                make_response(200),
                make_response(403),
                make_response(200, content=tester.payload),
                make_response(200, json_body={'totalItems': 1}),
            ]
            session.put.side_effect = [make_response(202), make_response(409)]

            assert tester.run() == 0

        first_url = session.get.call_args_list[0][0][0]
        assert first_url == 'http://cache.local/health'

    def test_failures_are_counted(self):
        with patch.object(smoke_test.requests, 'Session') as mock_session_cls:
            session = mock_session_cls.return_value
            session.get.return_value = make_response(500)
            session.put.side_effect = smoke_test.requests.ConnectionError('refused')

            tester = smoke_test.SmokeTest('http://cache.local', 'ro', 'rw')

            assert tester.run() == 6
