"""
Spotify Web API client implementation.
Provides refresh-token authentication, the authorization code helpers and the
catalog operations the sync needs: liked tracks, playlist membership, artist
genres, playlist snapshots and idempotent playlist insertion.
"""

import asyncio
import base64
import logging
import urllib.parse
from typing import AsyncIterator, Dict, Any, List, Optional, Set
from datetime import datetime, timedelta, timezone

import aiohttp
from pydantic import ValidationError as PayloadError

from likes_router.api.base_client import APIError, BaseAPIClient, AuthenticationError, RateLimitError
from likes_router.models.catalog import (
    ArtistsResponse,
    PlaylistSnapshot,
    PlaylistTracksPage,
    SavedTracksPage,
)
from likes_router.models.profile import PlaylistVersion
from likes_router.models.routing import AddResult
from likes_router.models.track import Artist, CatalogTrack, LikedTrackEvent
from likes_router.utils.validators import dedupe_preserving_order

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
ARTIST_BATCH_SIZE = 50
ADD_TRACKS_BATCH_SIZE = 100

DEFAULT_SCOPES = [
    "user-library-read",
    "playlist-read-private",
    "playlist-modify-public",
    "playlist-modify-private"
]

class SpotifyClient(BaseAPIClient):
    """Spotify Web API client authenticated with a user refresh token."""

    auth_url = "https://accounts.spotify.com/api/token"
    authorize_url = "https://accounts.spotify.com/authorize"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: Optional[str] = None,
        redirect_uri: str = "http://localhost:3000/callback",
        base_url: str = "https://api.spotify.com/v1",
        rate_limit: int = 100,
        timeout: int = 30
    ):
        """
        Initialize Spotify client.

        Args:
            client_id: Spotify application client ID
            client_secret: Spotify application client secret
            refresh_token: Long-lived user refresh token (required for catalog calls)
            redirect_uri: Redirect URI registered for the authorization code flow
        """
        super().__init__(base_url=base_url, rate_limit=rate_limit, timeout=timeout)
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.redirect_uri = redirect_uri

    def _basic_auth_header(self) -> Dict[str, str]:
        credentials = f"{self.client_id}:{self.client_secret}"
        encoded_credentials = base64.b64encode(credentials.encode()).decode()
        return {
            "Authorization": f"Basic {encoded_credentials}",
            "Content-Type": "application/x-www-form-urlencoded"
        }

    async def _request_token(self, data: Dict[str, str]) -> Dict[str, Any]:
        """
        POST to the token endpoint.

        429, 5xx, connection errors and timeouts raise retryable errors so a
        refresh inside _make_request is retried like any other call. Other 4xx
        (e.g. invalid_grant) raise a non-retryable AuthenticationError.
        """
        await self._ensure_session()
        try:
            async with self.session.post(self.auth_url, headers=self._basic_auth_header(), data=data) as response:
                if response.status == 429:
                    retry_after = max(1.0, float(response.headers.get('Retry-After', 1)))
                    logger.warning(f"Token endpoint rate limited, waiting {retry_after:.0f} seconds")
                    await asyncio.sleep(retry_after)
                    raise RateLimitError("Rate limit exceeded on token request", retry_after)

                if response.status >= 500:
                    raise APIError(
                        f"Token request failed with server error {response.status}",
                        status=response.status,
                        retryable=True
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise AuthenticationError(
                        f"Token request failed with {response.status}: {body[:200]}",
                        status=response.status
                    )
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Spotify token request failed: {e!r}")
            raise APIError(f"Token request failed: {e!r}", retryable=True) from e

    async def authenticate(self) -> str:
        """Exchange the refresh token for a fresh access token."""
        if not self.refresh_token:
            raise AuthenticationError("No refresh token configured, run the auth command first", status=None)

        token_data = await self._request_token({
            "grant_type": "refresh_token",
            "refresh_token": self.refresh_token
        })

        # Spotify may rotate the refresh token
        if token_data.get("refresh_token"):
            self.refresh_token = token_data["refresh_token"]

        expires_in = token_data.get("expires_in", 3600)
        self._token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in - 60)
        logger.debug("Refreshed Spotify access token")
        return token_data["access_token"]

    def _get_auth_headers(self) -> Dict[str, str]:
        if self._auth_token:
            return {"Authorization": f"Bearer {self._auth_token}"}
        return {}

    def get_authorization_url(self, scopes: List[str], state: str) -> str:
        """Build the URL the user visits to grant access."""
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(scopes),
            "state": state,
            "show_dialog": "true"
        }
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    async def exchange_code(self, authorization_code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns:
            Token payload; its refresh_token is also kept on the client
        """
        token_data = await self._request_token({
            "grant_type": "authorization_code",
            "code": authorization_code,
            "redirect_uri": self.redirect_uri
        })
        self.refresh_token = token_data.get("refresh_token")
        self._auth_token = token_data.get("access_token")
        expires_in = token_data.get("expires_in", 3600)
        self._token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in - 60)
        return token_data

    async def get_user_profile(self) -> Dict[str, Any]:
        return await self._make_request("GET", "me")

    async def iterate_liked_tracks(self) -> AsyncIterator[LikedTrackEvent]:
        """Yield the user's liked tracks, newest first, one page at a time."""
        offset = 0
        while True:
            result = await self._make_request(
                "GET", "me/tracks", params={"limit": PAGE_SIZE, "offset": offset}
            )
            page = _parse(SavedTracksPage, result, "me/tracks")
            if not page.items:
                break
            for item in page.items:
                if item.track is None or not item.track.id:
                    continue
                yield LikedTrackEvent.from_payload(item)
            offset += len(page.items)
            if not page.next:
                break

    async def iterate_playlist_tracks(self, playlist_id: str) -> AsyncIterator[CatalogTrack]:
        """Yield the tracks of a playlist, skipping episodes and id-less local files."""
        offset = 0
        endpoint = f"playlists/{playlist_id}/tracks"
        while True:
            result = await self._make_request(
                "GET", endpoint, params={"limit": PAGE_SIZE, "offset": offset}
            )
            page = _parse(PlaylistTracksPage, result, endpoint)
            if not page.items:
                break
            for item in page.items:
                track = item.track
                if track is not None and track.type == "track" and track.id:
                    yield CatalogTrack.from_payload(track)
            offset += len(page.items)
            if not page.next:
                break

    async def get_artists(self, artist_ids: List[str]) -> Dict[str, List[str]]:
        """
        Fetch genre tags for up to ARTIST_BATCH_SIZE artists.

        Returns:
            Mapping of artist id to its genre tags; unknown ids are absent
        """
        if len(artist_ids) > ARTIST_BATCH_SIZE:
            raise ValueError(f"At most {ARTIST_BATCH_SIZE} artists per request, got {len(artist_ids)}")
        if not artist_ids:
            return {}

        result = await self._make_request("GET", "artists", params={"ids": ",".join(artist_ids)})
        response = _parse(ArtistsResponse, result, "artists")
        artists = [Artist.from_payload(payload) for payload in response.artists if payload is not None]
        return {artist.id: artist.genres for artist in artists}

    async def get_playlist_version(self, playlist_id: str) -> PlaylistVersion:
        endpoint = f"playlists/{playlist_id}"
        result = await self._make_request(
            "GET", endpoint, params={"fields": "snapshot_id,tracks.total"}
        )
        snapshot = _parse(PlaylistSnapshot, result, endpoint)
        return PlaylistVersion(content_version=snapshot.snapshot_id, track_count=snapshot.tracks.total)

    async def get_playlist_track_ids(self, playlist_id: str) -> Set[str]:
        return {track.id async for track in self.iterate_playlist_tracks(playlist_id)}

    async def add_tracks_to_playlist(self, playlist_id: str, track_ids: List[str]) -> None:
        """Append tracks in batches of ADD_TRACKS_BATCH_SIZE."""
        uris = [CatalogTrack(id=track_id).uri for track_id in track_ids]
        for i in range(0, len(uris), ADD_TRACKS_BATCH_SIZE):
            batch = uris[i:i + ADD_TRACKS_BATCH_SIZE]
            await self._make_request("POST", f"playlists/{playlist_id}/tracks", data={"uris": batch})

    async def add_tracks_if_missing(self, playlist_id: str, track_ids: List[str]) -> AddResult:
        """
        Add only the tracks not already in the playlist.

        Repeated ids in track_ids are added once; every id not added counts as skipped.
        """
        existing = await self.get_playlist_track_ids(playlist_id)
        to_add = [track_id for track_id in dedupe_preserving_order(track_ids) if track_id not in existing]

        if to_add:
            await self.add_tracks_to_playlist(playlist_id, to_add)

        return AddResult(added=len(to_add), skipped=len(track_ids) - len(to_add))

def _parse(model, payload: Dict[str, Any], endpoint: str):
    try:
        return model.model_validate(payload)
    except PayloadError as e:
        raise APIError(f"Unexpected response shape from {endpoint}: {e}") from e
