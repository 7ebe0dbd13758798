"""
Daily track ledger.

Ordered, deduplicated list of the tracks observed during one calendar day in
a fixed reference time zone.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo

from .models import Track


def today_string(zone: str, now: Optional[datetime] = None) -> str:
    """Get today's date (YYYY-MM-DD) in the given time zone.

    Args:
        zone: IANA time zone name, e.g. "America/New_York"
        now: Aware datetime to convert (default: current time)

    Returns:
        ISO date string
    """
    tz = ZoneInfo(zone)
    moment = now.astimezone(tz) if now is not None else datetime.now(tz)
    return moment.date().isoformat()


class DailyLedger:
    """Tracks observed on ``day``, in first-observed order.

    The ledger has a single writer (the poller), so it does no locking.
    """

    def __init__(self, day: str, tracks: Iterable[Track] = ()):
        self._day = day
        self._tracks: List[Track] = []
        self._ids: Set[str] = set()
        for track in tracks:
            if track.id not in self._ids:
                self.add(track)

    @property
    def day(self) -> str:
        return self._day

    def __len__(self) -> int:
        return len(self._tracks)

    def all_tracks(self) -> Tuple[Track, ...]:
        """Read-only view of today's tracks in insertion order."""
        return tuple(self._tracks)

    def contains(self, track_id: str) -> bool:
        return track_id in self._ids

    def add(self, track: Track) -> None:
        """Append a track.

        Callers check ``contains`` first; adding a known id is a bug.

        Raises:
            ValueError: If the id is already in the ledger
        """
        if track.id in self._ids:
            raise ValueError(f"Track {track.id} already recorded for {self._day}")
        self._tracks.append(track)
        self._ids.add(track.id)

    def reset_if_new_day(self, today: str) -> bool:
        """Clear the ledger when ``today`` differs from the recorded day.

        Returns:
            True if a reset occurred
        """
        if today == self._day:
            return False
        self._day = today
        self._tracks = []
        self._ids = set()
        return True

    def snapshot(self) -> List[Dict[str, str]]:
        """JSON-ready copy of the ledger contents."""
        return [track.to_dict() for track in self._tracks]
