#!/usr/bin/env python3
"""
Liked Songs Router
Main CLI entry point: routes newly liked Spotify tracks into target playlists
by genre profile, and manages the one-time Spotify authorization.
"""

import sys
import asyncio
import logging
import argparse

from config.settings import Settings
from likes_router.api.base_client import APIError
from likes_router.api.spotify_client import SpotifyClient
from likes_router.models.routing import SyncReport
from likes_router.services.spotify_auth_service import SpotifyAuthService
from likes_router.services.sync_orchestrator import SyncOrchestrator
from likes_router.utils.cache_manager import CacheManager
from likes_router.utils.state_store import PROFILES_FILENAME, StateStore
from likes_router.utils.timestamps import format_timestamp
from likes_router.utils.validators import ConfigurationError

logger = logging.getLogger("likes_router")

def configure_logging(settings: Settings, verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=settings.log_format)

def build_store(settings: Settings) -> StateStore:
    cache_manager = CacheManager(settings.data_dir / PROFILES_FILENAME, settings.REDIS_URL)
    return StateStore(settings.data_dir, cache_manager)

def display_sync_summary(report: SyncReport):
    """Display a summary of a sync pass."""
    if report.first_run:
        print(f"🆕 Initialized watermark to {format_timestamp(report.watermark)}.")
        print("   No existing likes were processed; new likes are routed from the next run on.")
        return

    print("\n" + "=" * 60)
    print(f"🎵 Routed {report.routed_count} new liked tracks")
    print("=" * 60)
    for playlist_id, result in report.results.items():
        print(f"  {playlist_id}: added {result.added}, skipped {result.skipped}")
    if report.results:
        print(f"✅ Total added {report.added_count}, skipped {report.skipped_count}")
    if report.rebuilt:
        print(f"🔄 Profiles rebuilt: {', '.join(report.rebuilt)}")
    if report.watermark:
        print(f"🕒 Watermark: {format_timestamp(report.watermark)}")

async def run_sync(args) -> int:
    """Run one incremental sync pass."""
    settings = Settings()
    configure_logging(settings, args.verbose)

    try:
        if args.interval is not None:
            settings.rebuild_interval_raw = args.interval
        settings.validate()
        interval = settings.rebuild_interval_hours
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        async with SpotifyClient(
            client_id=settings.SPOTIFY_CLIENT_ID,
            client_secret=settings.SPOTIFY_CLIENT_SECRET,
            refresh_token=settings.SPOTIFY_REFRESH_TOKEN,
            redirect_uri=settings.SPOTIFY_REDIRECT_URI,
            base_url=settings.spotify.base_url,
            rate_limit=settings.spotify.rate_limit_per_minute,
            timeout=settings.spotify.timeout
        ) as client, build_store(settings) as store:
            orchestrator = SyncOrchestrator(
                catalog=client,
                store=store,
                target_playlist_ids=settings.target_playlist_ids,
                rebuild_interval_hours=interval
            )
            report = await orchestrator.run()
    except APIError as e:
        logger.error(f"Sync aborted, state left unchanged: {e}")
        return 1

    display_sync_summary(report)
    return 0

async def run_auth(args) -> int:
    """Obtain a refresh token through the authorization code flow."""
    settings = Settings()
    configure_logging(settings, args.verbose)

    try:
        async with SpotifyAuthService(settings) as auth_service:
            refresh_token = await auth_service.authorize(open_browser=not args.no_browser)
    except (ConfigurationError, APIError) as e:
        logger.error(f"Authorization failed: {e}")
        return 1

    print("\n=== AUTH SUCCESS ===")
    print("Refresh token (save this in .env as SPOTIFY_REFRESH_TOKEN):")
    print(refresh_token)
    print("====================\n")
    return 0

async def run_status(args) -> int:
    """Show configuration and persisted sync state."""
    settings = Settings()
    configure_logging(settings, args.verbose)

    for key, value in settings.summary().items():
        print(f"{key}: {value}")

    async with build_store(settings) as store:
        state = await store.read_state()

    if not state.is_initialized:
        print("watermark: (not initialized, the next sync only sets it)")
        return 0

    print(f"watermark: {format_timestamp(state.watermark)}")
    for playlist_id, rebuilt_at in sorted(state.rebuild_timestamps.items()):
        print(f"  profile {playlist_id} last rebuilt {format_timestamp(rebuilt_at)}")
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Route newly liked Spotify tracks into playlists by genre"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    sync_parser = subparsers.add_parser("sync", help="Route new likes (default)")
    sync_parser.add_argument(
        "--interval", type=float, default=None,
        help="Hours between profile rebuilds (overrides REBUILD_GENRE_PROFILE_INTERVAL)"
    )

    auth_parser = subparsers.add_parser("auth", help="Authorize with Spotify and print a refresh token")
    auth_parser.add_argument("--no-browser", action="store_true", help="Do not open a browser")

    subparsers.add_parser("status", help="Show configuration and sync state")
    return parser

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "auth":
        return asyncio.run(run_auth(args))
    if args.command == "status":
        return asyncio.run(run_status(args))

    if args.command is None:
        args.interval = None
    return asyncio.run(run_sync(args))

if __name__ == "__main__":
    sys.exit(main())
