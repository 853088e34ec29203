"""
Timestamp helpers. Everything in memory is a timezone-aware UTC datetime,
everything on disk is an ISO-8601 string.
"""

from datetime import datetime, timezone
from typing import Optional, Union

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string (trailing 'Z' allowed) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as ISO-8601 UTC with a 'Z' suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600.0
