"""
JSON file persistence for the daily ledger.

The file holds exactly one day's tracks as a JSON array of
``{id, name, artist, url, imgsrc}``; it carries no explicit day key.
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from loguru import logger

from music_today.core.exceptions import PersistenceError

from .models import Track


class JsonLedgerStore:
    """Get/set of the current day's track list backed by a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self) -> List[Track]:
        """Load the stored tracks.

        Returns:
            Stored tracks, or an empty list if nothing was written yet

        Raises:
            PersistenceError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, list):
            raise PersistenceError(f"{self.path} does not contain a JSON array")

        try:
            return [Track.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise PersistenceError(f"Malformed track entry in {self.path}: {e}") from e

    def set(self, tracks: Sequence[Track]) -> None:
        """Replace the stored tracks atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = json.dumps([t.to_dict() for t in tracks], indent=2, ensure_ascii=False)

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug(f"Saved {len(tracks)} tracks to {self.path}")

    def saved_on(self, zone: str) -> Optional[str]:
        """Local date (YYYY-MM-DD in ``zone``) of the last write, if any."""
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot stat {self.path}: {e}")
            return None
        return datetime.fromtimestamp(mtime, tz=ZoneInfo(zone)).date().isoformat()
