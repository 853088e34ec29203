"""
Pytest configuration and shared fixtures for the liked songs router tests.
"""

import pytest
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from likes_router.api.base_client import APIError
from likes_router.models.profile import PlaylistVersion
from likes_router.models.routing import AddResult
from likes_router.models.track import CatalogTrack, LikedTrackEvent
from likes_router.utils.state_store import StateStore

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, hours: float = 0, minutes: float = 0):
        self.now = self.now + timedelta(hours=hours, minutes=minutes)
        return self.now

class FakeCatalog:
    """In-memory catalog. Adding tracks to a playlist changes its content version."""

    def __init__(self):
        self.liked: List[LikedTrackEvent] = []
        self.playlists: Dict[str, List[CatalogTrack]] = {}
        self.versions: Dict[str, int] = {}
        self.artists: Dict[str, List[str]] = {}
        self.calls = Counter()
        self.artist_batches: List[List[str]] = []
        self.liked_yielded = 0
        self.fail_adds = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    def add_artist(self, artist_id: str, *genres: str):
        self.artists[artist_id] = list(genres)

    def add_playlist(self, playlist_id: str, tracks: List[CatalogTrack]):
        self.playlists[playlist_id] = list(tracks)
        self.versions[playlist_id] = 1

    def like(self, track_id: str, liked_at: datetime, artist_ids: List[str], name: str = ""):
        self.liked.append(LikedTrackEvent(track_id, liked_at, list(artist_ids), name or track_id))
        self.liked.sort(key=lambda event: event.liked_at, reverse=True)

    def member_ids(self, playlist_id: str) -> List[str]:
        return [track.id for track in self.playlists[playlist_id]]

    async def iterate_liked_tracks(self):
        self.calls["iterate_liked_tracks"] += 1
        for event in list(self.liked):
            self.liked_yielded += 1
            yield event

    async def iterate_playlist_tracks(self, playlist_id: str):
        self.calls["iterate_playlist_tracks"] += 1
        for track in list(self.playlists[playlist_id]):
            yield track

    async def get_artists(self, artist_ids: List[str]) -> Dict[str, List[str]]:
        assert len(artist_ids) <= 50
        self.calls["get_artists"] += 1
        self.artist_batches.append(list(artist_ids))
        return {
            artist_id: list(self.artists[artist_id])
            for artist_id in artist_ids
            if artist_id in self.artists
        }

    async def get_playlist_version(self, playlist_id: str) -> PlaylistVersion:
        self.calls["get_playlist_version"] += 1
        return PlaylistVersion(
            content_version=f"{playlist_id}-v{self.versions[playlist_id]}",
            track_count=len(self.playlists[playlist_id])
        )

    async def add_tracks_if_missing(self, playlist_id: str, track_ids: List[str]) -> AddResult:
        self.calls["add_tracks_if_missing"] += 1
        if self.fail_adds:
            raise APIError("Server error 503 on POST playlists", status=503)

        existing = set(self.member_ids(playlist_id))
        added = 0
        for track_id in track_ids:
            if track_id not in existing:
                self.playlists[playlist_id].append(CatalogTrack(id=track_id))
                existing.add(track_id)
                added += 1
        if added:
            self.versions[playlist_id] += 1
        return AddResult(added=added, skipped=len(track_ids) - added)

def make_tracks(prefix: str, artist_lists: List[List[str]]) -> List[CatalogTrack]:
    return [
        CatalogTrack(id=f"{prefix}{i}", name=f"{prefix} song {i}", artist_ids=artists)
        for i, artists in enumerate(artist_lists)
    ]

@pytest.fixture
def clock():
    return FixedClock()

@pytest.fixture
def catalog():
    return FakeCatalog()

@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "data")

@pytest.fixture
def rock_and_jazz(catalog):
    """Two playlists: rock (rock:5, pop:1 artists) and jazz (jazz:4 artists)."""
    for i in range(5):
        catalog.add_artist(f"rocker{i}", "rock")
    catalog.add_artist("rocker0", "rock", "pop")
    for i in range(4):
        catalog.add_artist(f"jazzer{i}", "jazz")

    catalog.add_playlist("rockPL", make_tracks("r", [[f"rocker{i}"] for i in range(5)]))
    catalog.add_playlist("jazzPL", make_tracks("j", [[f"jazzer{i}"] for i in range(4)]))
    return catalog

@pytest.fixture(name="make_tracks")
def make_tracks_fixture():
    return make_tracks
