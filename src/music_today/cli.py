"""
Music Today CLI - Entry point

Subcommands:
  track  Poll Spotify and record today's tracks
  serve  Publish today's tracks over HTTP
  view   Open the physics canvas
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from music_today.core.config import Config, load_config
from music_today.core.output import setup_loguru


def run_tracker(config: Config) -> int:
    """Run the ingestion poller until interrupted.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from music_today.domain.providers.spotify.auth import SpotifyCredentials
    from music_today.domain.tracking.poller import IngestionPoller
    from music_today.domain.tracking.store import JsonLedgerStore

    if not config.spotify.is_configured():
        print("❌ Spotify credentials not configured", file=sys.stderr)
        print(
            "Set SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REFRESH_TOKEN "
            "(environment or .env)",
            file=sys.stderr,
        )
        return 1

    tracker = config.tracker
    credentials = SpotifyCredentials(
        config.spotify.client_id,
        config.spotify.client_secret,
        config.spotify.refresh_token,
        cache_tokens=tracker.cache_tokens,
        timeout=tracker.request_timeout,
    )
    store = JsonLedgerStore(config.store.path())
    poller = IngestionPoller(
        credentials,
        store,
        zone=tracker.timezone,
        interval=tracker.poll_interval,
        min_progress_ms=tracker.min_progress_ms,
        request_timeout=tracker.request_timeout,
    )

    print(f"Recording today's tracks to {store.path} (Ctrl+C to stop)")
    try:
        poller.run_forever()
    except KeyboardInterrupt:
        logger.info("Tracker interrupted")
    return 0


def run_server(config: Config) -> int:
    """Serve the read-only API with uvicorn."""
    import uvicorn

    uvicorn.run("web.backend.main:app", host=config.web.host, port=config.web.port)
    return 0


def run_canvas(config: Config) -> int:
    """Open the canvas window."""
    from music_today.ui.canvas.app import run_viewer

    run_viewer(config.canvas)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music-today",
        description="Record and play with the tracks you listened to today",
    )
    parser.add_argument(
        "--log-level",
        help="Override MUSIC_TODAY_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Also write logs to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("track", help="Poll Spotify and record today's tracks")
    subparsers.add_parser("serve", help="Serve today's tracks over HTTP")
    subparsers.add_parser("view", help="Open the physics canvas")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        config.logging.level = args.log_level.upper()
    if args.console:
        config.logging.console_output = True
    setup_loguru(
        config.logging.path(),
        level=config.logging.level,
        console_output=config.logging.console_output,
    )

    commands = {
        "track": run_tracker,
        "serve": run_server,
        "view": run_canvas,
    }
    return commands[args.command](config)


if __name__ == "__main__":
    sys.exit(main())
