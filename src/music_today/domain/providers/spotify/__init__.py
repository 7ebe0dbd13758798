"""Spotify provider: token management and the currently-playing endpoint."""

from .auth import AccessToken, SpotifyCredentials

__all__ = ["AccessToken", "SpotifyCredentials"]
