"""
Spotify access token management.

Exchanges the long-lived refresh token for short-lived access tokens.
"""

import base64
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from loguru import logger

from music_today.core.exceptions import AuthError

TOKEN_URL = "https://accounts.spotify.com/api/token"

# Refresh this long before the provider's expiry
EXPIRY_BUFFER_SECONDS = 5 * 60
DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class AccessToken:
    """Short-lived bearer token."""

    value: str
    issued_at: float  # epoch seconds
    expires_at: float  # epoch seconds

    def is_expired(self, now: float, buffer: float = EXPIRY_BUFFER_SECONDS) -> bool:
        """Check if token is expired (with buffer)."""
        return now >= self.expires_at - buffer


class SpotifyCredentials:
    """Issues access tokens from a refresh credential.

    With ``cache_tokens=False`` every call performs a full refresh-token
    exchange. With caching, a token is reused until it is within
    EXPIRY_BUFFER_SECONDS of expiry or ``invalidate`` is called.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        session: Optional[requests.Session] = None,
        cache_tokens: bool = True,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.session = session or requests.Session()
        self.cache_tokens = cache_tokens
        self.timeout = timeout
        self._clock = clock
        self._token: Optional[AccessToken] = None

    def invalidate(self) -> None:
        """Forget the cached token so the next call re-issues one."""
        self._token = None

    def get_access_token(self) -> AccessToken:
        """Return a token the provider will accept.

        Raises:
            AuthError: If the token exchange fails
        """
        now = self._clock()
        if self.cache_tokens and self._token and not self._token.is_expired(now):
            return self._token

        token = self._exchange(now)
        if self.cache_tokens:
            self._token = token
        return token

    def _exchange(self, now: float) -> AccessToken:
        if not self.client_id or not self.client_secret or not self.refresh_token:
            raise AuthError("Missing Spotify client credentials or refresh token")

        # Spotify requires Basic auth for token refresh
        auth_header = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode("utf-8")
        ).decode("utf-8")

        try:
            response = self.session.post(
                TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self.refresh_token,
                },
                headers={"Authorization": f"Basic {auth_header}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AuthError(f"Token exchange failed: {e}") from e

        if not response.ok:
            detail = response.text[:200] if response.text else ""
            raise AuthError(
                f"Token exchange returned HTTP {response.status_code}: {detail}"
            )

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Malformed token response: {e}") from e

        # Spotify may rotate the refresh token
        new_refresh = token_data.get("refresh_token")
        if new_refresh and new_refresh != self.refresh_token:
            logger.info("Spotify issued a new refresh token")
            self.refresh_token = new_refresh

        expires_in = token_data.get("expires_in") or DEFAULT_EXPIRES_IN
        token = AccessToken(
            value=access_token, issued_at=now, expires_at=now + float(expires_in)
        )
        logger.debug(f"Spotify token refreshed, expires in {expires_in}s")
        return token
