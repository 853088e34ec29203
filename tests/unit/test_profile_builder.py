#!/usr/bin/env python3
"""
Unit tests for the genre profile builder.
"""

import pytest

from likes_router.models.profile import CachedProfileEntry
from likes_router.models.track import CatalogTrack
from likes_router.services.profile_builder import (
    GenreProfileBuilder,
    count_genres,
    fetch_artist_genres,
)

class TestCountGenres:
    """Unit tests for count_genres()."""

    def test_weights_count_artists(self):
        profile = count_genres({
            "a1": ["rock", "indie"],
            "a2": ["rock"],
            "a3": []
        })
        assert profile == {"rock": 2, "indie": 1}

    def test_repeated_tag_on_one_artist_counts_once(self):
        assert count_genres({"a1": ["rock", "rock"]}) == {"rock": 1}

    def test_no_artists(self):
        assert count_genres({}) == {}

class TestFetchArtistGenres:
    """Unit tests for fetch_artist_genres()."""

    @pytest.mark.asyncio
    async def test_batches_and_dedupes(self, catalog):
        ids = [f"artist{i}" for i in range(120)]
        for artist_id in ids:
            catalog.add_artist(artist_id, "rock")

        genres = await fetch_artist_genres(catalog, ids + ids[:10] + ["", None])

        assert len(genres) == 120
        assert [len(batch) for batch in catalog.artist_batches] == [50, 50, 20]

    @pytest.mark.asyncio
    async def test_unknown_artist_maps_to_empty(self, catalog):
        genres = await fetch_artist_genres(catalog, ["ghost"])
        assert genres == {"ghost": []}

    @pytest.mark.asyncio
    async def test_memo_skips_known_artists(self, catalog):
        catalog.add_artist("a1", "rock")
        catalog.add_artist("a2", "jazz")
        memo = {"a1": ["rock"]}

        genres = await fetch_artist_genres(catalog, ["a1", "a2"], known=memo)

        assert genres == {"a1": ["rock"], "a2": ["jazz"]}
        assert catalog.artist_batches == [["a2"]]
        assert memo["a2"] == ["jazz"]

    @pytest.mark.asyncio
    async def test_nothing_to_fetch(self, catalog):
        assert await fetch_artist_genres(catalog, []) == {}
        assert catalog.calls["get_artists"] == 0

class TestGenreProfileBuilder:
    """Unit tests for GenreProfileBuilder."""

    @pytest.mark.asyncio
    async def test_weight_is_distinct_artists_not_tracks(self, catalog, store, clock, make_tracks):
        catalog.add_artist("prolific", "rock", "pop")
        catalog.add_artist("once", "rock")
        tracks = make_tracks("t", [["prolific"]] * 10 + [["once", "prolific"]])
        catalog.add_playlist("pl", tracks)

        profile = await GenreProfileBuilder(catalog, store, clock).build_profile("pl")

        assert profile == {"rock": 2, "pop": 1}

    @pytest.mark.asyncio
    async def test_artists_without_genres_and_tracks_without_artists(self, catalog, store, clock):
        catalog.add_artist("quiet")
        catalog.add_playlist("pl", [CatalogTrack(id="t1", artist_ids=["quiet"]), CatalogTrack(id="t2")])

        profile = await GenreProfileBuilder(catalog, store, clock).build_profile("pl")

        assert profile == {}

    @pytest.mark.asyncio
    async def test_cache_hit_skips_membership_and_artists(self, rock_and_jazz, store, clock):
        builder = GenreProfileBuilder(rock_and_jazz, store, clock)

        first = await builder.build_profile("rockPL")
        calls_after_first = dict(rock_and_jazz.calls)
        second = await builder.build_profile("rockPL")

        assert first == second == {"rock": 5, "pop": 1}
        assert rock_and_jazz.calls["iterate_playlist_tracks"] == calls_after_first["iterate_playlist_tracks"] == 1
        assert rock_and_jazz.calls["get_artists"] == calls_after_first["get_artists"]
        assert rock_and_jazz.calls["get_playlist_version"] == 2

    @pytest.mark.asyncio
    async def test_version_change_forces_exactly_one_rebuild(self, rock_and_jazz, store, clock):
        builder = GenreProfileBuilder(rock_and_jazz, store, clock)
        await builder.build_profile("jazzPL")

        rock_and_jazz.add_artist("crooner", "jazz", "vocal jazz")
        await rock_and_jazz.add_tracks_if_missing("jazzPL", ["j-new"])
        rock_and_jazz.playlists["jazzPL"][-1].artist_ids = ["crooner"]

        rebuilt = await builder.build_profile("jazzPL")
        again = await builder.build_profile("jazzPL")

        assert rebuilt == again == {"jazz": 5, "vocal jazz": 1}
        assert rock_and_jazz.calls["iterate_playlist_tracks"] == 2

    @pytest.mark.asyncio
    async def test_entry_persisted_under_observed_version(self, rock_and_jazz, store, clock):
        await GenreProfileBuilder(rock_and_jazz, store, clock).build_profile("rockPL")

        entry = await store.get_cached_profile("rockPL", "rockPL-v1")

        assert entry is not None
        assert entry.track_count == 5
        assert entry.built_at == clock.now
        assert entry.genres == {"rock": 5, "pop": 1}
        assert await store.get_cached_profile("rockPL", "rockPL-v2") is None

    @pytest.mark.asyncio
    async def test_cached_profile_returned_verbatim(self, rock_and_jazz, store, clock):
        await store.put_cached_profile(CachedProfileEntry(
            playlist_id="rockPL",
            content_version="rockPL-v1",
            track_count=5,
            built_at=clock.now,
            genres={"shoegaze": 7}
        ))

        profile = await GenreProfileBuilder(rock_and_jazz, store, clock).build_profile("rockPL")

        assert profile == {"shoegaze": 7}
        assert rock_and_jazz.calls["iterate_playlist_tracks"] == 0
