"""
Tracking domain models.

Contains data structures for tracks observed today and the provider's
"currently playing" state.
"""

from typing import Any, Dict, NamedTuple, Optional


class Track(NamedTuple):
    """A track observed today.

    Immutable; identity is the provider-assigned id. The JSON shape
    (``{id, name, artist, url, imgsrc}``) is shared by the store, the HTTP
    API and the viewer.
    """
    id: str
    name: str
    artist: str  # all artist names joined with ", "
    url: str  # external link
    imgsrc: str = ""  # cover image URL, empty when the provider sends none

    def to_dict(self) -> Dict[str, str]:
        return dict(self._asdict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        """Build a Track from its JSON shape.

        Raises:
            KeyError: If id or name is missing
        """
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            artist=str(data.get("artist") or ""),
            url=str(data.get("url") or ""),
            imgsrc=str(data.get("imgsrc") or ""),
        )

    @property
    def label(self) -> str:
        return f"{self.name} by {self.artist}"


class Playback(NamedTuple):
    """Normalized "currently playing" payload.

    ``track`` is None when nothing recordable is playing (no item, or a
    non-track item such as a podcast episode).
    """
    track: Optional[Track]
    progress_ms: int = 0
    is_playing: bool = False
