"""
Session Token Tests
"""
import pytest

from baseline.errors import SessionConfigError
from baseline.session import SessionRole, create_session_token, verify_session_token

SECRET = 'unit-test-secret'


class TestSessionTokens:
    def test_round_trip(self):
        token = create_session_token('chase-admin', SessionRole.ADMIN, SECRET)

        payload = verify_session_token(token, SECRET)

        assert payload is not None
        assert payload.slug == 'chase-admin'
        assert payload.role is SessionRole.ADMIN
        assert payload.nonce

    def test_tokens_are_unique(self):
        first = create_session_token('pre-pitch-deck', SessionRole.DECK, SECRET)
        second = create_session_token('pre-pitch-deck', SessionRole.DECK, SECRET)
        assert first != second

    def test_wrong_secret_rejected(self):
        token = create_session_token('chase-admin', SessionRole.ADMIN, SECRET)
        assert verify_session_token(token, 'other-secret') is None

    def test_tampered_token_rejected(self):
        token = create_session_token('acme', SessionRole.INVESTOR, SECRET)
        body, signature = token.rsplit('.', 1)
        forged = create_session_token('chase-admin', SessionRole.ADMIN, SECRET).rsplit('.', 1)[0]

        assert verify_session_token(f'{forged}.{signature}', SECRET) is None
        assert verify_session_token(f'{body}.AAAA', SECRET) is None

    def test_expired_token_rejected(self):
        token = create_session_token('acme', SessionRole.INVESTOR, SECRET, max_age=-10)
        assert verify_session_token(token, SECRET) is None

    def test_garbage_rejected(self):
        assert verify_session_token('', SECRET) is None
        assert verify_session_token('not-a-token', SECRET) is None

    def test_missing_secret(self):
        with pytest.raises(SessionConfigError):
            create_session_token('chase-admin', SessionRole.ADMIN, '')
        assert verify_session_token('abc.def', '') is None


class TestSessionRole:
    def test_parse(self):
        assert SessionRole.parse('deck') is SessionRole.DECK
        assert SessionRole.parse('superuser') is None
        assert SessionRole.parse(None) is None
