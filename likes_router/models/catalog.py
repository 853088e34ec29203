"""
Ingress shapes for Spotify Web API payloads.

Raw JSON is validated here and converted to the dataclass records in
``likes_router.models.track`` right away, so nothing past the client ever
branches on untyped fields.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")

class ArtistRef(_Payload):
    id: Optional[str] = None
    name: str = ""

class TrackObject(_Payload):
    id: Optional[str] = None
    name: str = ""
    type: str = "track"
    artists: List[ArtistRef] = Field(default_factory=list)

    @property
    def artist_ids(self) -> List[str]:
        # Local files carry artists without ids
        return [artist.id for artist in self.artists if artist.id]

class SavedTrackItem(_Payload):
    added_at: datetime
    track: Optional[TrackObject] = None

class PlaylistTrackItem(_Payload):
    track: Optional[TrackObject] = None

class ArtistObject(_Payload):
    id: str
    name: str = ""
    genres: List[str] = Field(default_factory=list)

class SavedTracksPage(_Payload):
    items: List[SavedTrackItem] = Field(default_factory=list)
    next: Optional[str] = None

class PlaylistTracksPage(_Payload):
    items: List[PlaylistTrackItem] = Field(default_factory=list)
    next: Optional[str] = None

class ArtistsResponse(_Payload):
    # Unknown ids come back as null entries
    artists: List[Optional[ArtistObject]] = Field(default_factory=list)

class PlaylistTracksSummary(_Payload):
    total: int = 0

class PlaylistSnapshot(_Payload):
    snapshot_id: str
    tracks: PlaylistTracksSummary = Field(default_factory=PlaylistTracksSummary)
