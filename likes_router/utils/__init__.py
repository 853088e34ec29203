"""Utility modules for the liked songs router."""

from .rate_limiter import RateLimiter
from .timestamps import utc_now, parse_timestamp, format_timestamp
from .validators import ValidationError, ConfigurationError, extract_playlist_id

__all__ = [
    'RateLimiter',
    'utc_now',
    'parse_timestamp',
    'format_timestamp',
    'ValidationError',
    'ConfigurationError',
    'extract_playlist_id'
]
