"""Exceptions shared by the tracker, the API and the viewer."""

from typing import Optional


class MusicTodayError(Exception):
    """Base exception for Music Today operations."""

    pass


class AuthError(MusicTodayError):
    """Raised when the access token exchange fails."""

    pass


class ProviderError(MusicTodayError):
    """Raised when the provider answers with an unexpected status or payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(MusicTodayError):
    """Raised when the ledger store cannot be read or written."""

    pass


class FeedError(MusicTodayError):
    """Raised when the viewer cannot fetch today's tracks."""

    pass
