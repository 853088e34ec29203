"""
Persisted processing state: the liked-songs watermark and profile rebuild times.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from likes_router.utils.timestamps import format_timestamp, parse_timestamp

@dataclass
class SyncState:
    """Process-wide sync state. A missing watermark means no run has completed yet."""
    watermark: Optional[datetime] = None
    rebuild_timestamps: Dict[str, datetime] = None

    def __post_init__(self):
        if self.rebuild_timestamps is None:
            self.rebuild_timestamps = {}
        self.watermark = parse_timestamp(self.watermark)

    @property
    def is_initialized(self) -> bool:
        return self.watermark is not None

    def advance_watermark(self, candidate: Optional[datetime]) -> bool:
        """Move the watermark forward to candidate. Never moves it backwards."""
        if candidate is None:
            return False
        if self.watermark is None or candidate > self.watermark:
            self.watermark = candidate
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_processed_added_at": format_timestamp(self.watermark) if self.watermark else None,
            "last_profile_rebuild_time": {
                playlist_id: format_timestamp(ts)
                for playlist_id, ts in self.rebuild_timestamps.items()
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncState':
        rebuilds = data.get("last_profile_rebuild_time") or {}
        return cls(
            watermark=data.get("last_processed_added_at"),
            rebuild_timestamps={
                playlist_id: parse_timestamp(ts)
                for playlist_id, ts in rebuilds.items()
                if ts
            }
        )
