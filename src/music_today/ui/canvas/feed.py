"""
Track feed for the canvas.

Fetches the published list of today's tracks over HTTP. ``FeedWorker`` does
the fetching (and cover downloads) on a background thread and hands results
to the UI thread through a queue, so network latency never blocks pointer
handling.
"""

import queue
import threading
from typing import List, NamedTuple, Optional, Set

import requests
from loguru import logger

from music_today.core.exceptions import FeedError
from music_today.domain.tracking.models import Track


class TrackFeed:
    """Client for ``GET /api/today``."""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self) -> List[Track]:
        """Fetch today's tracks in first-observed order.

        Raises:
            FeedError: On network failure, non-200 status or malformed JSON
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FeedError(f"Fetching {self.url} failed: {e}") from e

        if response.status_code != 200:
            raise FeedError(f"{self.url} returned HTTP {response.status_code}")

        try:
            data = response.json()
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            return [Track.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise FeedError(f"Malformed track list from {self.url}: {e}") from e

    def fetch_cover(self, url: str) -> Optional[bytes]:
        """Download a cover image. Failures are logged and yield None."""
        if not url:
            return None
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Failed to download cover {url}: {e}")
            return None
        return response.content


class FeedItem(NamedTuple):
    """A track ready to spawn, with its cover bytes if they could be fetched."""
    track: Track
    cover: Optional[bytes] = None


class FeedWorker:
    """Runs population-sync fetches on a fixed interval in a daemon thread.

    Each batch put on ``items`` holds only tracks not handed over before.
    """

    def __init__(self, feed: TrackFeed, interval: float = 10.0, fetch_covers: bool = True):
        self.feed = feed
        self.interval = interval
        self.fetch_covers = fetch_covers
        self.items: "queue.Queue[List[FeedItem]]" = queue.Queue()
        self._delivered: Set[str] = set()
        self._stop = threading.Event()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread and self.thread.is_alive():
            return
        self._stop.clear()
        self.thread = threading.Thread(target=self._run, name="feed-worker", daemon=True)
        self.thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=timeout)

    def _run(self) -> None:
        # First sync happens immediately, then every interval
        while not self._stop.is_set():
            self.sync_once()
            self._stop.wait(self.interval)

    def sync_once(self) -> int:
        """Fetch once and queue unseen tracks.

        Returns:
            Number of tracks queued
        """
        try:
            tracks = self.feed.fetch()
        except FeedError as e:
            logger.warning(f"Population sync failed: {e}")
            return 0

        batch = []
        for track in tracks:
            if track.id in self._delivered:
                continue
            cover = self.feed.fetch_cover(track.imgsrc) if self.fetch_covers else None
            batch.append(FeedItem(track, cover))
            self._delivered.add(track.id)

        if batch:
            self.items.put(batch)
            logger.debug(f"Queued {len(batch)} new tracks")
        return len(batch)

    def drain(self) -> List[FeedItem]:
        """Collect everything queued so far without blocking."""
        drained: List[FeedItem] = []
        while True:
            try:
                drained.extend(self.items.get_nowait())
            except queue.Empty:
                return drained
