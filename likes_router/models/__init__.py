"""Data models for the liked songs router."""

from .track import Artist, CatalogTrack, LikedTrackEvent
from .profile import CachedProfileEntry, GenreProfile, PlaylistVersion
from .sync_state import SyncState
from .routing import AddResult, RoutingDecision, SyncReport

__all__ = [
    'Artist',
    'CatalogTrack',
    'LikedTrackEvent',
    'CachedProfileEntry',
    'GenreProfile',
    'PlaylistVersion',
    'SyncState',
    'AddResult',
    'RoutingDecision',
    'SyncReport'
]
