"""
Contracts the sync core depends on. SpotifyClient and StateStore implement
them; tests substitute in-memory fakes.
"""

from typing import AsyncIterator, Dict, List, Optional, Protocol

from likes_router.models.profile import CachedProfileEntry, PlaylistVersion
from likes_router.models.routing import AddResult
from likes_router.models.sync_state import SyncState
from likes_router.models.track import CatalogTrack, LikedTrackEvent

class CatalogClient(Protocol):
    """Read access to likes, playlists and artists; append access to playlists."""

    def iterate_liked_tracks(self) -> AsyncIterator[LikedTrackEvent]:
        """Liked tracks, newest first."""

    def iterate_playlist_tracks(self, playlist_id: str) -> AsyncIterator[CatalogTrack]:
        """Member tracks of a playlist."""

    async def get_artists(self, artist_ids: List[str]) -> Dict[str, List[str]]:
        """Genre tags for a bounded batch of artists."""

    async def get_playlist_version(self, playlist_id: str) -> PlaylistVersion:
        """Current content version and track count of a playlist."""

    async def add_tracks_if_missing(self, playlist_id: str, track_ids: List[str]) -> AddResult:
        """Append tracks not already present in the playlist."""

class PersistenceAdapter(Protocol):
    """Durable sync state and genre profile cache."""

    async def read_state(self) -> SyncState:
        """Stored state, or an empty one when nothing is stored."""

    async def write_state(self, state: SyncState) -> None:
        ...

    async def get_cached_profile(self, playlist_id: str, content_version: str) -> Optional[CachedProfileEntry]:
        ...

    async def put_cached_profile(self, entry: CachedProfileEntry) -> None:
        ...
