"""
Unit tests for session models.

Tests Credential header parsing and Session state.
"""
import base64

import pytest

from fsharepy.core.session import Credential, Session


def encode(raw: bytes) -> str:
    return "Basic " + base64.b64encode(raw).decode()


class TestCredential:
    """Tests for Credential parsing."""

    def test_parse_valid_header(self):
        """Test parsing a well-formed Basic header."""
        credential = Credential.from_authorization(encode(b'user@example.com:secret'))

        assert credential == Credential('user@example.com', 'secret')

    def test_password_may_contain_colons(self):
        credential = Credential.from_authorization(encode(b'user@example.com:a:b:c'))

        assert credential.password == 'a:b:c'

    def test_scheme_is_case_insensitive(self):
        header = encode(b'u@x.com:p').replace('Basic', 'basic')

        assert Credential.from_authorization(header) == Credential('u@x.com', 'p')

    def test_empty_password_allowed(self):
        assert Credential.from_authorization(encode(b'u@x.com:')) == Credential('u@x.com', '')

    @pytest.mark.parametrize("header", [
        None,
        '',
        'Bearer abc',
        'Basic !!!not-base64!!!',
        encode(b'no-colon-here'),
        encode(b':password-only'),
    ])
    def test_missing_or_malformed(self, header):
        """Test that unusable headers yield no credential."""
        assert Credential.from_authorization(header) is None

    def test_round_trip_header(self):
        credential = Credential('user@example.com', 'p:w')

        assert Credential.from_authorization(credential.to_authorization()) == credential

    def test_repr_hides_password(self):
        assert 'secret' not in repr(Credential('user@example.com', 'secret'))


class TestSession:
    """Tests for Session state."""

    def test_empty_session(self):
        session = Session()

        assert not session.is_authenticated
        assert session.cookie_header is None

    def test_authenticated_session(self):
        session = Session(token='tok', cookie_value='sid')

        assert session.is_authenticated
        assert session.cookie_header == 'session_id=sid;'

    def test_clear(self):
        """Test clearing returns to the unauthenticated state."""
        session = Session(token='tok', cookie_value='sid')
        session.clear()

        assert not session.is_authenticated
        assert session.token == ''
        assert session.cookie_header is None

    def test_repr_hides_token(self):
        assert 'tok' not in repr(Session(token='tok'))
