"""
Sync orchestrator.
Runs one incremental pass: load state, obtain playlist profiles, stream new
likes, route them, add them to their playlists and commit the new state.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from likes_router.models.profile import GenreProfile
from likes_router.models.routing import RoutingDecision, SyncReport
from likes_router.models.sync_state import SyncState
from likes_router.services.ports import CatalogClient, PersistenceAdapter
from likes_router.services.profile_builder import (
    ARTIST_BATCH_SIZE,
    GenreProfileBuilder,
    fetch_artist_genres,
)
from likes_router.services.track_router import pick_best_playlist, rank_playlists
from likes_router.utils.timestamps import format_timestamp, hours_between, utc_now
from likes_router.utils.validators import validate_rebuild_interval, validate_target_playlists

logger = logging.getLogger(__name__)

DEFAULT_REBUILD_INTERVAL_HOURS = 24

def should_rebuild_profile(
    last_rebuild: Optional[datetime],
    now: datetime,
    interval_hours: float = DEFAULT_REBUILD_INTERVAL_HOURS
) -> bool:
    """A rebuild is due when there was none yet or the interval has elapsed."""
    if last_rebuild is None:
        return True
    return hours_between(last_rebuild, now) >= interval_hours

class SyncOrchestrator:
    """
    Drives one sync pass.

    State is written exactly once per run: on the first-ever run right after
    initializing the watermark, otherwise after all playlist writes succeeded.
    Any exception before that leaves the stored state untouched, so the next
    run starts again from the last committed watermark.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        store: PersistenceAdapter,
        target_playlist_ids: List[str],
        rebuild_interval_hours: float = DEFAULT_REBUILD_INTERVAL_HOURS,
        clock: Callable[[], datetime] = utc_now,
        artist_batch_size: int = ARTIST_BATCH_SIZE
    ):
        """
        Args:
            catalog: Catalog client
            store: Persistence adapter for state and profile cache
            target_playlist_ids: Candidate playlists; their order is the tie-break order
            rebuild_interval_hours: Minimum hours between recorded profile rebuilds
            clock: Source of "now", injectable for tests

        Raises:
            ConfigurationError: No target playlists or an invalid interval
        """
        self.target_playlist_ids = validate_target_playlists(target_playlist_ids)
        self.rebuild_interval_hours = validate_rebuild_interval(rebuild_interval_hours)
        self.catalog = catalog
        self.store = store
        self.clock = clock
        self.artist_batch_size = artist_batch_size
        self.profile_builder = GenreProfileBuilder(catalog, store, clock, artist_batch_size)

    async def run(self) -> SyncReport:
        state = await self.store.read_state()

        if not state.is_initialized:
            return await self._initialize(state)

        now = self.clock()
        watermark = state.watermark
        logger.info(f"Target playlists: {', '.join(self.target_playlist_ids)}")
        logger.info(f"Processing likes newer than {format_timestamp(watermark)}")

        profiles, rebuilt = await self._load_profiles(state, now)

        decisions: Dict[str, List[RoutingDecision]] = {}
        newest_seen = watermark
        artist_memo: Dict[str, List[str]] = {}

        async for event in self.catalog.iterate_liked_tracks():
            if event.liked_at > newest_seen:
                newest_seen = event.liked_at
            if event.liked_at <= watermark:
                break

            decision = await self._route(event, profiles, artist_memo)
            decisions.setdefault(decision.destination_playlist_id, []).append(decision)

        results = {}
        for playlist_id, batch in decisions.items():
            if not batch:
                continue
            logger.info(f"Considering {len(batch)} tracks for {playlist_id}")
            result = await self.catalog.add_tracks_if_missing(
                playlist_id, [decision.track_id for decision in batch]
            )
            logger.info(f"Added {result.added}, skipped as duplicates {result.skipped}")
            results[playlist_id] = result

        if state.advance_watermark(newest_seen):
            logger.info(f"Updated watermark -> {format_timestamp(state.watermark)}")
        for playlist_id in rebuilt:
            state.rebuild_timestamps[playlist_id] = now

        await self.store.write_state(state)

        return SyncReport(
            first_run=False,
            watermark=state.watermark,
            rebuilt=rebuilt,
            decisions=decisions,
            results=results
        )

    async def _initialize(self, state: SyncState) -> SyncReport:
        # First run only sets the starting point; existing likes are never imported
        state.watermark = self.clock()
        await self.store.write_state(state)
        logger.info(
            f"Initialized watermark to {format_timestamp(state.watermark)}. "
            "No existing likes will be processed."
        )
        return SyncReport(first_run=True, watermark=state.watermark)

    async def _load_profiles(self, state: SyncState, now: datetime):
        """Profiles in target order, plus the playlists whose rebuild was due."""
        profiles: Dict[str, GenreProfile] = {}
        rebuilt = []

        for playlist_id in self.target_playlist_ids:
            last_rebuild = state.rebuild_timestamps.get(playlist_id)
            if should_rebuild_profile(last_rebuild, now, self.rebuild_interval_hours):
                logger.info(
                    f"Building genre profile for {playlist_id} "
                    f"(last rebuilt: {format_timestamp(last_rebuild) if last_rebuild else 'never'})"
                )
                rebuilt.append(playlist_id)
            else:
                logger.info(
                    f"Using cached genre profile for {playlist_id} "
                    f"(last rebuilt: {format_timestamp(last_rebuild)}, "
                    f"interval: {self.rebuild_interval_hours:g}h)"
                )
            profiles[playlist_id] = await self.profile_builder.build_profile(playlist_id)
            logger.info(f"Profile genres count: {len(profiles[playlist_id])}")

        return profiles, rebuilt

    async def _route(self, event, profiles: Dict[str, GenreProfile], artist_memo) -> RoutingDecision:
        artist_genres = await fetch_artist_genres(
            self.catalog, event.artist_ids, self.artist_batch_size, known=artist_memo
        )
        track_genres = set()
        for tags in artist_genres.values():
            track_genres.update(tags)

        destination = pick_best_playlist(track_genres, profiles) or self.target_playlist_ids[0]
        ranking = rank_playlists(track_genres, profiles)
        scores = dict(ranking)

        logger.debug("Scores => " + " | ".join(f"{pid}:{s}" for pid, s in ranking))
        logger.debug(f"Top genres: {', '.join(sorted(track_genres)[:5]) or 'n/a'}")

        logger.info(
            f'Route "{event.display_name}" -> {destination} '
            f"(genres: {', '.join(sorted(track_genres)) or 'n/a'})"
        )
        return RoutingDecision(
            track_id=event.track_id,
            destination_playlist_id=destination,
            score=scores.get(destination, 0)
        )
