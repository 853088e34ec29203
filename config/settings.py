"""
Application settings and configuration management.
Handles environment variables, the Spotify API configuration and sync defaults.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

from likes_router.utils.validators import (
    ConfigurationError,
    dedupe_preserving_order,
    extract_playlist_id,
    validate_rebuild_interval,
    validate_target_playlists,
)

logger = logging.getLogger(__name__)

load_dotenv()

TARGET_LIST_VAR = "TARGET_PLAYLIST_IDS"
TARGET_VAR_PREFIX = "TARGET_PLAYLIST_ID_"

@dataclass
class APIConfig:
    """Configuration for external API services."""
    base_url: str
    timeout: int = 30
    rate_limit_per_minute: int = 100

def parse_target_playlists(environ: Mapping[str, str]) -> List[str]:
    """
    Collect target playlist ids from the environment.

    TARGET_PLAYLIST_IDS entries come first in listed order, followed by
    TARGET_PLAYLIST_ID_* variables ordered by variable name. This order is
    the routing tie-break order. Unrecognized values are logged and skipped.
    """
    raw_values = []
    if environ.get(TARGET_LIST_VAR):
        raw_values.extend(part for part in environ[TARGET_LIST_VAR].split(",") if part.strip())
    for key in sorted(k for k in environ if k.startswith(TARGET_VAR_PREFIX)):
        if environ[key].strip():
            raw_values.append(environ[key])

    ids = []
    for raw in raw_values:
        playlist_id = extract_playlist_id(raw)
        if playlist_id:
            ids.append(playlist_id)
        else:
            logger.warning(f"Skipping unrecognized playlist value: {raw}")
    return dedupe_preserving_order(ids)

class Settings:
    """Main application settings."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ

        # Spotify API Configuration
        self.spotify = APIConfig(
            base_url="https://api.spotify.com/v1",
            rate_limit_per_minute=100
        )
        self.SPOTIFY_CLIENT_ID = env.get("SPOTIFY_CLIENT_ID")
        self.SPOTIFY_CLIENT_SECRET = env.get("SPOTIFY_CLIENT_SECRET")
        self.SPOTIFY_REFRESH_TOKEN = env.get("SPOTIFY_REFRESH_TOKEN")
        self.SPOTIFY_REDIRECT_URI = env.get("SPOTIFY_REDIRECT_URI", "http://localhost:3000/callback")

        # Sync Configuration
        self.target_playlist_ids = parse_target_playlists(env)
        self.rebuild_interval_raw = env.get("REBUILD_GENRE_PROFILE_INTERVAL", "24")

        # Persistence Configuration
        self.data_dir = Path(env.get("DATA_DIR", ".data"))
        self.REDIS_URL = env.get("REDIS_URL") or None

        # Logging Configuration
        self.log_level = env.get("LOG_LEVEL", "INFO").upper()
        self.log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def rebuild_interval_hours(self) -> float:
        return validate_rebuild_interval(self.rebuild_interval_raw)

    def validate(self, require_refresh_token: bool = True, require_targets: bool = True) -> bool:
        """
        Validate that required configuration is present.

        Raises:
            ConfigurationError: Listing every missing variable or the invalid value
        """
        required_vars = []

        if not self.SPOTIFY_CLIENT_ID:
            required_vars.append("SPOTIFY_CLIENT_ID")
        if not self.SPOTIFY_CLIENT_SECRET:
            required_vars.append("SPOTIFY_CLIENT_SECRET")
        if require_refresh_token and not self.SPOTIFY_REFRESH_TOKEN:
            required_vars.append("SPOTIFY_REFRESH_TOKEN")

        if required_vars:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(required_vars)}")

        if require_targets:
            validate_target_playlists(self.target_playlist_ids)
            validate_rebuild_interval(self.rebuild_interval_raw)

        return True

    def summary(self) -> Dict[str, str]:
        """Non-secret settings for status output."""
        return {
            "target_playlists": ", ".join(self.target_playlist_ids) or "(none)",
            "rebuild_interval_hours": str(self.rebuild_interval_raw),
            "data_dir": str(self.data_dir),
            "profile_cache": "redis" if self.REDIS_URL else "file"
        }
