"""
Configuration management for Music Today

All settings come from the process environment (optionally seeded from
.env files) at start-up. There is no runtime reconfiguration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass
class SpotifyConfig:
    """Configuration for the Spotify provider."""

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)


@dataclass
class TrackerConfig:
    """Configuration for the ingestion poller."""

    poll_interval: float = 1.0  # seconds between ticks
    timezone: str = "America/New_York"  # reference zone for "today"
    min_progress_ms: int = 10000  # playback progress required before recording
    cache_tokens: bool = True  # reuse access tokens until close to expiry
    request_timeout: float = 10.0


@dataclass
class StoreConfig:
    """Configuration for the persisted ledger."""

    ledger_file: Optional[str] = None  # default: <data dir>/today.json

    def path(self) -> Path:
        if self.ledger_file:
            return Path(self.ledger_file).expanduser()
        return get_data_dir() / "today.json"


@dataclass
class WebConfig:
    """Configuration for the read-only HTTP API."""

    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173"]
    )


@dataclass
class CanvasConfig:
    """Configuration for the physics viewer."""

    feed_url: str = "http://127.0.0.1:8000/api/today"
    sync_interval: float = 10.0  # seconds between population syncs
    width: int = 1280
    height: int = 1280
    body_size: float = 120.0
    fps: int = 60
    out_of_bounds_margin: float = 200.0
    hover_dwell: float = 0.5  # seconds
    drag_stiffness: float = 0.2
    restitution: float = 0.8
    request_timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: <data dir>/music-today.log
    console_output: bool = False  # Also log to stderr

    def path(self) -> Path:
        if self.log_file:
            return Path(self.log_file).expanduser()
        return get_data_dir() / "music-today.log"


@dataclass
class Config:
    """Main configuration object."""

    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    web: WebConfig = field(default_factory=WebConfig)
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        try:
            ZoneInfo(self.tracker.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {self.tracker.timezone!r}")

        if self.tracker.poll_interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self.canvas.sync_interval <= 0:
            raise ValueError("Sync interval must be positive")
        if self.tracker.min_progress_ms < 0:
            raise ValueError("Minimum progress cannot be negative")


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "music-today"
    return Path.home() / ".config" / "music-today"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "music-today"
    return Path.home() / ".local" / "share" / "music-today"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_config() -> Config:
    """Load configuration from the environment.

    .env files are read first (config directory, then working directory);
    variables already present in the environment win.

    Returns:
        Validated Config
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    load_dotenv(Path.cwd() / ".env")

    config = Config()

    config.spotify = SpotifyConfig(
        client_id=os.environ.get("SPOTIFY_CLIENT_ID", ""),
        client_secret=os.environ.get("SPOTIFY_CLIENT_SECRET", ""),
        refresh_token=os.environ.get("SPOTIFY_REFRESH_TOKEN", ""),
    )

    config.tracker = TrackerConfig(
        poll_interval=_env_float(
            "MUSIC_TODAY_POLL_INTERVAL", config.tracker.poll_interval
        ),
        timezone=os.environ.get("MUSIC_TODAY_TIMEZONE") or config.tracker.timezone,
        min_progress_ms=_env_int(
            "MUSIC_TODAY_MIN_PROGRESS_MS", config.tracker.min_progress_ms
        ),
        cache_tokens=_env_bool("MUSIC_TODAY_CACHE_TOKENS", config.tracker.cache_tokens),
        request_timeout=_env_float(
            "MUSIC_TODAY_REQUEST_TIMEOUT", config.tracker.request_timeout
        ),
    )

    config.store = StoreConfig(
        ledger_file=os.environ.get("MUSIC_TODAY_LEDGER_FILE") or None
    )

    origins_env = os.environ.get("ALLOWED_ORIGINS", "")
    config.web = WebConfig(
        host=os.environ.get("MUSIC_TODAY_HOST") or config.web.host,
        port=_env_int("MUSIC_TODAY_PORT", config.web.port),
        allowed_origins=(
            [o.strip() for o in origins_env.split(",") if o.strip()]
            if origins_env
            else config.web.allowed_origins
        ),
    )

    config.canvas.feed_url = (
        os.environ.get("MUSIC_TODAY_FEED_URL") or config.canvas.feed_url
    )
    config.canvas.sync_interval = _env_float(
        "MUSIC_TODAY_SYNC_INTERVAL", config.canvas.sync_interval
    )

    config.logging = LoggingConfig(
        level=(os.environ.get("MUSIC_TODAY_LOG_LEVEL") or config.logging.level).upper(),
        log_file=os.environ.get("MUSIC_TODAY_LOG_FILE") or None,
        console_output=_env_bool(
            "MUSIC_TODAY_LOG_CONSOLE", config.logging.console_output
        ),
    )

    config.validate()
    return config
