from fastapi import Depends

from music_today.core.config import load_config, Config
from music_today.domain.tracking.store import JsonLedgerStore

# Loaded once at start-up; requests never re-read .env files
_config = load_config()


def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return _config


def get_store(config: Config = Depends(get_config)) -> JsonLedgerStore:
    """FastAPI dependency for the persisted ledger."""
    return JsonLedgerStore(config.store.path())
