"""Tests for Spotify access token management."""

import base64
from unittest.mock import MagicMock

import pytest
import requests

from music_today.core.exceptions import AuthError
from music_today.domain.providers.spotify.auth import (
    TOKEN_URL,
    AccessToken,
    SpotifyCredentials,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def clock():
    return FakeClock()


def _credentials(session, clock, cache_tokens=True):
    return SpotifyCredentials(
        "client", "secret", "refresh-1", session=session, cache_tokens=cache_tokens, clock=clock
    )


class TestAccessToken:
    def test_fresh_token_not_expired(self):
        token = AccessToken("abc", issued_at=0.0, expires_at=3600.0)
        assert not token.is_expired(now=100.0)

    def test_expired_within_buffer(self):
        """Tokens are refreshed five minutes before real expiry."""
        token = AccessToken("abc", issued_at=0.0, expires_at=3600.0)
        assert token.is_expired(now=3600.0 - 300.0)
        assert not token.is_expired(now=3600.0 - 301.0)


class TestTokenExchange:
    """Tests for the refresh-token grant."""

    def test_posts_refresh_grant_with_basic_auth(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"access_token": "abc", "expires_in": 3600})
        token = _credentials(session, clock).get_access_token()

        assert token == AccessToken("abc", issued_at=1000.0, expires_at=4600.0)
        args, kwargs = session.post.call_args
        assert args[0] == TOKEN_URL
        assert kwargs["data"] == {"grant_type": "refresh_token", "refresh_token": "refresh-1"}
        expected = base64.b64encode(b"client:secret").decode("utf-8")
        assert kwargs["headers"]["Authorization"] == f"Basic {expected}"
        assert kwargs["timeout"] == 10.0

    def test_defaults_expiry_when_missing(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"access_token": "abc"})
        token = _credentials(session, clock).get_access_token()
        assert token.expires_at == 1000.0 + 3600

    def test_non_success_status_raises(self, session, clock, make_response):
        session.post.return_value = make_response(400, {"error": "invalid_grant"}, text="invalid_grant")
        with pytest.raises(AuthError):
            _credentials(session, clock).get_access_token()

    def test_network_failure_raises(self, session, clock):
        session.post.side_effect = requests.ConnectionError("offline")
        with pytest.raises(AuthError):
            _credentials(session, clock).get_access_token()

    def test_missing_access_token_raises(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"token_type": "Bearer"})
        with pytest.raises(AuthError):
            _credentials(session, clock).get_access_token()

    def test_non_json_body_raises(self, session, clock, make_response):
        session.post.return_value = make_response(200, ValueError("not json"))
        with pytest.raises(AuthError):
            _credentials(session, clock).get_access_token()

    def test_missing_credentials_raise_without_request(self, session, clock):
        creds = SpotifyCredentials("", "secret", "refresh", session=session, clock=clock)
        with pytest.raises(AuthError):
            creds.get_access_token()
        session.post.assert_not_called()

    def test_adopts_rotated_refresh_token(self, session, clock, make_response):
        session.post.return_value = make_response(
            200, {"access_token": "abc", "refresh_token": "refresh-2"}
        )
        creds = _credentials(session, clock)
        creds.get_access_token()
        assert creds.refresh_token == "refresh-2"


class TestCaching:
    """Tests for token reuse."""

    def test_no_cache_exchanges_every_call(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"access_token": "abc", "expires_in": 3600})
        creds = _credentials(session, clock, cache_tokens=False)
        creds.get_access_token()
        creds.get_access_token()
        assert session.post.call_count == 2

    def test_cache_reuses_fresh_token(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"access_token": "abc", "expires_in": 3600})
        creds = _credentials(session, clock)
        first = creds.get_access_token()
        clock.now += 600
        assert creds.get_access_token() is first
        assert session.post.call_count == 1

    def test_cache_refreshes_near_expiry(self, session, clock, make_response):
        session.post.side_effect = [
            make_response(200, {"access_token": "abc", "expires_in": 3600}),
            make_response(200, {"access_token": "def", "expires_in": 3600}),
        ]
        creds = _credentials(session, clock)
        creds.get_access_token()
        clock.now += 3600 - 300
        assert creds.get_access_token().value == "def"

    def test_invalidate_forces_exchange(self, session, clock, make_response):
        session.post.return_value = make_response(200, {"access_token": "abc", "expires_in": 3600})
        creds = _credentials(session, clock)
        creds.get_access_token()
        creds.invalidate()
        creds.get_access_token()
        assert session.post.call_count == 2

    def test_failed_refresh_keeps_nothing_cached(self, session, clock, make_response):
        session.post.side_effect = [
            make_response(500, text="oops"),
            make_response(200, {"access_token": "abc", "expires_in": 3600}),
        ]
        creds = _credentials(session, clock)
        with pytest.raises(AuthError):
            creds.get_access_token()
        assert creds.get_access_token().value == "abc"
