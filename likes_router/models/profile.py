"""
Genre profile data model and its cache record.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, List

from likes_router.utils.timestamps import format_timestamp, parse_timestamp

# genre -> number of distinct playlist artists carrying it
GenreProfile = Dict[str, int]

@dataclass
class PlaylistVersion:
    """Current content version (Spotify snapshot id) and size of a playlist."""
    content_version: str
    track_count: int = 0

@dataclass
class CachedProfileEntry:
    """A computed genre profile, valid for exactly one playlist content version."""
    playlist_id: str
    content_version: str
    track_count: int
    built_at: datetime
    genres: GenreProfile = None

    def __post_init__(self):
        if self.genres is None:
            self.genres = {}
        self.built_at = parse_timestamp(self.built_at)

    def top_genres(self, limit: int = 5) -> List[str]:
        """Most common genres, heaviest first, ties alphabetical."""
        ranked = sorted(self.genres.items(), key=lambda item: (-item[1], item[0]))
        return [genre for genre, _ in ranked[:limit]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "content_version": self.content_version,
            "track_count": self.track_count,
            "built_at": format_timestamp(self.built_at),
            "genres": dict(self.genres)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CachedProfileEntry':
        return cls(
            playlist_id=data["playlist_id"],
            content_version=data["content_version"],
            track_count=int(data.get("track_count", 0)),
            built_at=data["built_at"],
            genres={genre: int(count) for genre, count in data.get("genres", {}).items()}
        )
