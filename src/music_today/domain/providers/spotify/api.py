"""
Spotify Web API operations used by the tracker.
"""

from typing import Any, Dict, Optional

import requests
from loguru import logger

from music_today.core.exceptions import ProviderError
from music_today.domain.tracking.models import Playback, Track

# Spotify API base URL
API_BASE = "https://api.spotify.com/v1"
CURRENTLY_PLAYING_URL = f"{API_BASE}/me/player/currently-playing"


def normalize_track(item: Dict[str, Any]) -> Track:
    """Convert a Spotify track object to a Track.

    Raises:
        KeyError: If id or name is missing
    """
    artists = ", ".join(
        a["name"] for a in item.get("artists") or [] if a.get("name") is not None
    )
    images = (item.get("album") or {}).get("images") or []
    return Track(
        id=item["id"],
        name=item["name"],
        artist=artists,
        url=(item.get("external_urls") or {}).get("spotify", ""),
        imgsrc=images[0].get("url", "") if images else "",
    )


def parse_currently_playing(data: Dict[str, Any]) -> Playback:
    """Normalize a currently-playing payload.

    Raises:
        ProviderError: If the payload is malformed
    """
    if not isinstance(data, dict):
        raise ProviderError("Currently-playing payload is not an object")

    try:
        progress_ms = int(data.get("progress_ms") or 0)
        is_playing = bool(data.get("is_playing", False))
        item = data.get("item")
        playing_type = data.get("currently_playing_type", "track")

        if not item or playing_type != "track" or not item.get("id"):
            # Local files have no id; episodes and ads have no album
            return Playback(track=None, progress_ms=progress_ms, is_playing=is_playing)

        track = normalize_track(item)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ProviderError(f"Malformed currently-playing payload: {e}") from e

    return Playback(track=track, progress_ms=progress_ms, is_playing=is_playing)


def get_currently_playing(
    session: requests.Session, access_token: str, timeout: float = 10.0
) -> Optional[Playback]:
    """Query the user's currently playing item.

    Returns:
        Playback, or None when nothing is playing (204 No Content)

    Raises:
        ProviderError: On network failure, unexpected status or malformed payload
    """
    try:
        response = session.get(
            CURRENTLY_PLAYING_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise ProviderError(f"Currently-playing request failed: {e}") from e

    if response.status_code == 204:
        return None

    if response.status_code != 200:
        raise ProviderError(
            f"Currently-playing returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderError(f"Currently-playing body is not JSON: {e}") from e

    playback = parse_currently_playing(data)
    logger.debug(
        f"Currently playing: {playback.track.id if playback.track else None} "
        f"(playing={playback.is_playing}, progress={playback.progress_ms}ms)"
    )
    return playback
