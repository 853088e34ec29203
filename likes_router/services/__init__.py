"""Core services: profile building, routing and the sync pass."""

from .profile_builder import GenreProfileBuilder, fetch_artist_genres, count_genres
from .track_router import score, pick_best_playlist, rank_playlists
from .sync_orchestrator import SyncOrchestrator, should_rebuild_profile
from .ports import CatalogClient, PersistenceAdapter

__all__ = [
    'GenreProfileBuilder',
    'fetch_artist_genres',
    'count_genres',
    'score',
    'pick_best_playlist',
    'rank_playlists',
    'SyncOrchestrator',
    'should_rebuild_profile',
    'CatalogClient',
    'PersistenceAdapter'
]
