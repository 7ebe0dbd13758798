"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (environment / .env)
- Logging setup (Loguru)
- Shared exception hierarchy
"""

from .config import (
    Config,
    CanvasConfig,
    LoggingConfig,
    SpotifyConfig,
    StoreConfig,
    TrackerConfig,
    WebConfig,
    get_config_dir,
    get_data_dir,
    load_config,
)
from .exceptions import (
    AuthError,
    FeedError,
    MusicTodayError,
    PersistenceError,
    ProviderError,
)
from .output import setup_loguru

__all__ = [
    # Config
    "Config",
    "CanvasConfig",
    "LoggingConfig",
    "SpotifyConfig",
    "StoreConfig",
    "TrackerConfig",
    "WebConfig",
    "get_config_dir",
    "get_data_dir",
    "load_config",
    # Errors
    "AuthError",
    "FeedError",
    "MusicTodayError",
    "PersistenceError",
    "ProviderError",
    # Logging
    "setup_loguru",
]
