"""
Ingestion poller.

Polls Spotify's "currently playing" endpoint on a fixed interval and records
each new, sufficiently-progressed track in today's ledger.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

import requests
from loguru import logger

from music_today.core.exceptions import AuthError, PersistenceError, ProviderError
from music_today.domain.providers.spotify import api
from music_today.domain.providers.spotify.auth import SpotifyCredentials

from .ledger import DailyLedger, today_string
from .models import Track
from .store import JsonLedgerStore

MIN_PROGRESS_MS = 10000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IngestionPoller:
    """Fixed-interval polling loop; the sole writer of the ledger and store.

    Ticks never overlap: the loop waits ``interval - elapsed`` after each
    tick, so a slow tick delays the next one instead of queueing it.
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        store: JsonLedgerStore,
        zone: str = "America/New_York",
        interval: float = 1.0,
        min_progress_ms: int = MIN_PROGRESS_MS,
        session: Optional[requests.Session] = None,
        request_timeout: float = 10.0,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.credentials = credentials
        self.store = store
        self.zone = zone
        self.interval = interval
        self.min_progress_ms = min_progress_ms
        self.session = session or credentials.session
        self.request_timeout = request_timeout
        self._now = now

        self._stop = threading.Event()
        self.thread: Optional[threading.Thread] = None

        self.ledger = self._resume()

    def _resume(self) -> DailyLedger:
        """Seed the ledger from the store if it was written today.

        A store left over from an earlier day is emptied so the published
        list never shows yesterday's tracks.
        """
        today = today_string(self.zone, self._now())
        saved_on = self.store.saved_on(self.zone)
        if saved_on != today:
            if saved_on is not None:
                logger.info(f"Clearing tracks saved on {saved_on}")
                self._write(())
            return DailyLedger(today)

        try:
            tracks = self.store.get()
        except PersistenceError as e:
            logger.warning(f"Ignoring unreadable ledger store: {e}")
            return DailyLedger(today)

        logger.info(f"Resumed {len(tracks)} tracks for {today}")
        return DailyLedger(today, tracks)

    # Loop -----------------------------------------------------------------

    def start(self) -> None:
        """Start polling in a background thread."""
        if self.thread and self.thread.is_alive():
            return
        self._stop.clear()
        self.thread = threading.Thread(
            target=self.run_forever, name="ingestion-poller", daemon=True
        )
        self.thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and wait for the current tick to finish."""
        self._stop.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=timeout)

    def run_forever(self) -> None:
        """Tick until ``stop`` is called."""
        logger.info(
            f"Polling every {self.interval}s (zone={self.zone}, "
            f"min_progress={self.min_progress_ms}ms)"
        )
        while not self._stop.is_set():
            started = time.monotonic()
            self.tick()
            elapsed = time.monotonic() - started
            self._stop.wait(max(0.0, self.interval - elapsed))
        logger.info("Poller stopped")

    # Tick -----------------------------------------------------------------

    def tick(self) -> Optional[Track]:
        """Run one poll. Never raises.

        Returns:
            The track added during this tick, if any
        """
        try:
            return self._poll_once()
        except AuthError as e:
            logger.warning(f"Skipping tick, token exchange failed: {e}")
        except ProviderError as e:
            if e.status_code == 401:
                self.credentials.invalidate()
            logger.warning(f"Skipping tick, provider error: {e}")
        except Exception:
            logger.exception("Error polling")
        return None

    def _poll_once(self) -> Optional[Track]:
        token = self.credentials.get_access_token()
        playback = api.get_currently_playing(
            self.session, token.value, timeout=self.request_timeout
        )

        # No item and not playing both mean nothing to record
        if playback is None or playback.track is None or not playback.is_playing:
            return None

        today = today_string(self.zone, self._now())
        if self.ledger.reset_if_new_day(today):
            logger.info(f"New day {today}, cleared ledger")
            self._persist()

        track = playback.track
        if self.ledger.contains(track.id) or playback.progress_ms <= self.min_progress_ms:
            return None

        self.ledger.add(track)
        logger.info(f"Added song: {track.name} by {track.artist}")
        self._persist()
        return track

    def _persist(self) -> None:
        self._write(self.ledger.all_tracks())

    def _write(self, tracks: Sequence[Track]) -> None:
        # In-memory state is kept even when the write fails
        try:
            self.store.set(tracks)
        except PersistenceError as e:
            logger.error(f"Failed to persist ledger: {e}")
