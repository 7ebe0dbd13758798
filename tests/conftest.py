"""Shared fixtures for Music Today tests."""

from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from music_today.domain.tracking.models import Track


def spotify_item(track_id: str = "t1", name: str = "Song One") -> Dict[str, Any]:
    """Spotify track object as returned inside a currently-playing payload."""
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": "Artist A"}, {"name": "Artist B"}],
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "album": {"images": [{"url": f"https://i.scdn.co/image/{track_id}"}]},
    }


def currently_playing(
    track_id: str = "t1",
    progress_ms: int = 15000,
    is_playing: bool = True,
    name: str = "Song One",
) -> Dict[str, Any]:
    """Raw currently-playing payload."""
    return {
        "progress_ms": progress_ms,
        "is_playing": is_playing,
        "currently_playing_type": "track",
        "item": spotify_item(track_id, name),
    }


def http_response(status_code: int = 200, json_data: Any = None, text: str = "") -> MagicMock:
    """Mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def track() -> Track:
    """A track as the poller would record it."""
    return Track(
        id="t1",
        name="Song One",
        artist="Artist A, Artist B",
        url="https://open.spotify.com/track/t1",
        imgsrc="https://i.scdn.co/image/t1",
    )


@pytest.fixture
def other_track() -> Track:
    return Track(
        id="t2",
        name="Song Two",
        artist="Artist C",
        url="https://open.spotify.com/track/t2",
        imgsrc="https://i.scdn.co/image/t2",
    )


@pytest.fixture
def make_payload():
    """Factory for raw currently-playing payloads."""
    return currently_playing


@pytest.fixture
def make_response():
    """Factory for mock HTTP responses."""
    return http_response
