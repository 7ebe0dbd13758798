"""Today's listening ledger: models, persistence and the ingestion poller."""

from .ledger import DailyLedger, today_string
from .models import Playback, Track
from .poller import IngestionPoller
from .store import JsonLedgerStore

__all__ = [
    "DailyLedger",
    "IngestionPoller",
    "JsonLedgerStore",
    "Playback",
    "Track",
    "today_string",
]
