"""
Track and artist records exchanged between the catalog client and the core.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List

from likes_router.models.catalog import ArtistObject, SavedTrackItem, TrackObject
from likes_router.utils.timestamps import parse_timestamp

@dataclass
class CatalogTrack:
    """A playlist member track."""
    id: str
    name: str = ""
    artist_ids: List[str] = None

    def __post_init__(self):
        if self.artist_ids is None:
            self.artist_ids = []

    @property
    def uri(self) -> str:
        return f"spotify:track:{self.id}"

    @classmethod
    def from_payload(cls, track: TrackObject) -> 'CatalogTrack':
        return cls(id=track.id, name=track.name, artist_ids=track.artist_ids)

@dataclass
class LikedTrackEvent:
    """A track from the user's liked songs, with the time it was liked."""
    track_id: str
    liked_at: datetime
    artist_ids: List[str] = None
    name: str = ""

    def __post_init__(self):
        if self.artist_ids is None:
            self.artist_ids = []
        self.liked_at = parse_timestamp(self.liked_at)

    @property
    def display_name(self) -> str:
        return self.name or self.track_id

    @classmethod
    def from_payload(cls, item: SavedTrackItem) -> 'LikedTrackEvent':
        return cls(
            track_id=item.track.id,
            liked_at=item.added_at,
            artist_ids=item.track.artist_ids,
            name=item.track.name
        )

@dataclass
class Artist:
    id: str
    name: str = ""
    genres: List[str] = None

    def __post_init__(self):
        if self.genres is None:
            self.genres = []

    @classmethod
    def from_payload(cls, artist: ArtistObject) -> 'Artist':
        return cls(id=artist.id, name=artist.name, genres=list(artist.genres))
