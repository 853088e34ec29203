"""
Genre profile builder.
Turns a playlist's membership into a weighted genre distribution, reusing the
cached profile whenever the playlist's content version is unchanged.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from likes_router.models.profile import CachedProfileEntry, GenreProfile
from likes_router.services.ports import CatalogClient, PersistenceAdapter
from likes_router.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

ARTIST_BATCH_SIZE = 50

async def fetch_artist_genres(
    catalog: CatalogClient,
    artist_ids: Iterable[str],
    batch_size: int = ARTIST_BATCH_SIZE,
    known: Optional[Dict[str, List[str]]] = None
) -> Dict[str, List[str]]:
    """
    Look up genre tags for artists in batches of at most batch_size.

    Args:
        catalog: Catalog client used for the lookups
        artist_ids: Artist ids, duplicates and empty ids are ignored
        batch_size: Per-request artist limit of the catalog
        known: Optional per-run memo; ids found here are not fetched again
               and fetched ids are added to it

    Returns:
        Mapping of every requested artist id to its genre tags (empty when
        the catalog knows no genres for it)
    """
    unique_ids = list(dict.fromkeys(artist_id for artist_id in artist_ids if artist_id))
    genres: Dict[str, List[str]] = {}
    missing = []
    for artist_id in unique_ids:
        if known is not None and artist_id in known:
            genres[artist_id] = known[artist_id]
        else:
            missing.append(artist_id)

    for i in range(0, len(missing), batch_size):
        batch = missing[i:i + batch_size]
        fetched = await catalog.get_artists(batch)
        for artist_id in batch:
            genres[artist_id] = list(fetched.get(artist_id, []))
            if known is not None:
                known[artist_id] = genres[artist_id]

    return genres

def count_genres(artist_genres: Dict[str, List[str]]) -> GenreProfile:
    """Weight of each genre = number of distinct artists carrying it."""
    counts = Counter()
    for tags in artist_genres.values():
        counts.update(set(tags))
    return dict(counts)

class GenreProfileBuilder:
    """Builds and caches per-playlist genre profiles."""

    def __init__(
        self,
        catalog: CatalogClient,
        store: PersistenceAdapter,
        clock: Callable[[], datetime] = utc_now,
        artist_batch_size: int = ARTIST_BATCH_SIZE
    ):
        self.catalog = catalog
        self.store = store
        self.clock = clock
        self.artist_batch_size = artist_batch_size

    async def build_profile(self, playlist_id: str) -> GenreProfile:
        """
        Return the genre profile of a playlist.

        A cached profile for the playlist's current content version is returned
        as is, without touching membership or artists. Otherwise the profile is
        computed from the playlist's distinct artists and stored under the
        version observed at the start of the build.
        """
        version = await self.catalog.get_playlist_version(playlist_id)

        cached = await self.store.get_cached_profile(playlist_id, version.content_version)
        if cached is not None:
            logger.debug(f"Profile cache hit for {playlist_id} @ {version.content_version}")
            return dict(cached.genres)

        logger.info(f"Computing genre profile for {playlist_id} ({version.track_count} tracks)")

        artist_ids = []
        async for track in self.catalog.iterate_playlist_tracks(playlist_id):
            artist_ids.extend(track.artist_ids)

        artist_genres = await fetch_artist_genres(self.catalog, artist_ids, self.artist_batch_size)
        profile = count_genres(artist_genres)

        entry = CachedProfileEntry(
            playlist_id=playlist_id,
            content_version=version.content_version,
            track_count=version.track_count,
            built_at=self.clock(),
            genres=profile
        )
        await self.store.put_cached_profile(entry)

        logger.info(
            f"Profile for {playlist_id}: {len(profile)} genres from {len(artist_genres)} artists "
            f"(top: {', '.join(entry.top_genres()) or 'n/a'})"
        )
        return dict(profile)
