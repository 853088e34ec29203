"""
Input validation utilities for configuration values and Spotify identifiers.
"""

import re
from typing import Any, Iterable, List, Optional

class ValidationError(Exception):
    """Exception raised for validation errors."""
    pass

class ConfigurationError(ValidationError):
    """Configuration that makes a sync run impossible."""
    pass

_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
_URI_PATTERN = re.compile(r"^spotify:playlist:([A-Za-z0-9]+)$")
_URL_PATTERN = re.compile(r"open\.spotify\.com/(?:[a-z\-]+/)?playlist/([A-Za-z0-9]+)")

def extract_playlist_id(raw: str) -> Optional[str]:
    """
    Extract a playlist id from a bare id, a spotify:playlist URI or an
    open.spotify.com URL.

    Returns:
        The playlist id, or None if the value is not recognized
    """
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None

    match = _URI_PATTERN.match(value)
    if match:
        return match.group(1)

    match = _URL_PATTERN.search(value)
    if match:
        return match.group(1)

    bare = value.split("?")[0]
    if _ID_PATTERN.match(bare):
        return bare

    return None

def dedupe_preserving_order(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result

def validate_rebuild_interval(value: Any) -> float:
    """Validate the profile rebuild interval in hours."""
    try:
        hours = float(value)
    except (ValueError, TypeError):
        raise ConfigurationError(f"Rebuild interval must be a number of hours, got {value!r}")

    if hours < 0:
        raise ConfigurationError(f"Rebuild interval must not be negative, got {hours}")

    return hours

def validate_target_playlists(playlist_ids: List[str]) -> List[str]:
    """Require at least one target playlist and drop duplicates."""
    targets = dedupe_preserving_order(playlist_ids or [])
    if not targets:
        raise ConfigurationError(
            "Configure at least one TARGET_PLAYLIST_ID_* or TARGET_PLAYLIST_IDS in .env"
        )
    return targets
