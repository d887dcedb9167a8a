"""Spotify "Liked Songs" integration using the spotipy library.

Liked (saved) tracks are the Spotify counterpart of loved tracks. Spotify
knows nothing about MusicBrainz, so tracks to love are located by search and
picked with the shared best-match scorer; tracks to unlove are located in
the user's own saved library.

Key components:
- SpotifyConnector: OAuth-authenticated TrackSource over the saved-tracks API
- spotify_to_loved_track: Conversion from Spotify track payloads
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from attrs import define, field
import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from lovesync.config import get_logger, resilient_operation, settings
from lovesync.domain.entities import LovedTrack
from lovesync.domain.exceptions import FatalError, TransientError
from lovesync.domain.matching import find_best_match
from lovesync.infrastructure.connectors.base_connector import retry_transient
from lovesync.infrastructure.connectors.protocols import ConnectorConfig

R = TypeVar("R")

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="spotify")

SCOPES = ["user-library-read", "user-library-modify"]
SEARCH_LIMIT = 10
# Saved-tracks endpoints accept at most 50 IDs per request
WRITE_BATCH_SIZE = 50


def spotify_to_loved_track(track: dict[str, Any]) -> LovedTrack:
    """Convert a Spotify track object to a LovedTrack."""
    artists = track.get("artists") or []
    return LovedTrack(
        title=track.get("name"),
        artist=artists[0].get("name") if artists else "",
        album=(track.get("album") or {}).get("name"),
    )


@retry_transient
async def _run(func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run a blocking spotipy call in a thread, mapping its errors."""
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except spotipy.SpotifyException as e:
        status = e.http_status or 0
        if status == 429 or status >= 500:
            raise TransientError(f"Spotify request failed: {e}") from e
        raise FatalError(f"Spotify API error {e.http_status}: {e.msg}") from e
    except SpotifyOauthError as e:
        raise FatalError(f"Spotify authentication failed: {e}") from e
    except (requests.ConnectionError, requests.Timeout) as e:
        raise TransientError(f"Spotify request failed: {e}") from e


@define(slots=True)
class SpotifyConnector:
    """Spotify connector implementing TrackSource.

    The OAuth client is created on first use; the token is cached on disk by
    spotipy so the browser flow only runs once.
    """

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str
    name: str = "spotify"

    _client: spotipy.Spotify | None = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(factory=asyncio.Lock, init=False, repr=False)
    _saved: list[tuple[str, LovedTrack]] | None = field(
        default=None, init=False, repr=False
    )

    async def _get_client(self) -> spotipy.Spotify:
        async with self._lock:
            if self._client is None:
                logger.debug("Initializing Spotify client")
                self._client = spotipy.Spotify(
                    auth_manager=SpotifyOAuth(
                        client_id=self.client_id,
                        client_secret=self.client_secret,
                        redirect_uri=self.redirect_uri,
                        scope=SCOPES,
                        open_browser=True,
                        cache_handler=spotipy.CacheFileHandler(
                            cache_path=".spotify_cache"
                        ),
                    ),
                )
            return self._client

    async def _fetch_saved(self) -> list[tuple[str, LovedTrack]]:
        """Fetch every saved track with its Spotify ID."""
        client = await self._get_client()
        page_size = settings.api.spotify_page_size
        saved: list[tuple[str, LovedTrack]] = []
        offset = 0

        while True:
            page = await _run(
                client.current_user_saved_tracks, limit=page_size, offset=offset
            )
            items = (page or {}).get("items") or []
            saved.extend(
                (item["track"]["id"], spotify_to_loved_track(item["track"]))
                for item in items
                if item.get("track") and item["track"].get("id")
            )
            if not items or not page.get("next"):
                break
            offset += len(items)

        self._saved = saved
        return saved

    async def _search(self, track: LovedTrack) -> str | None:
        """Locate a track in the Spotify catalogue by artist and title."""
        if not (track.artist and track.title):
            return None

        client = await self._get_client()
        results = await _run(
            client.search,
            f"artist:{track.artist} track:{track.title}",
            type="track",
            limit=SEARCH_LIMIT,
        )
        items = [
            item
            for item in ((results or {}).get("tracks") or {}).get("items") or []
            if item and item.get("id")
        ]
        index = find_best_match([spotify_to_loved_track(item) for item in items], track)
        return items[index]["id"] if index is not None else None

    async def _write_in_batches(
        self, method: Callable[..., Any], track_ids: list[str]
    ) -> None:
        for start in range(0, len(track_ids), WRITE_BATCH_SIZE):
            batch = track_ids[start : start + WRITE_BATCH_SIZE]
            logger.debug(f"Sending batch of {len(batch)} tracks to Spotify")
            await _run(method, batch)

    @resilient_operation("spotify_get_loved_tracks")
    async def get_loved_tracks(self) -> list[LovedTrack]:
        saved = await self._fetch_saved()
        logger.info(f"Retrieved {len(saved)} liked songs from Spotify")
        return [track for _, track in saved]

    @resilient_operation("spotify_love_tracks")
    async def love_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        track_ids: list[str] = []
        for track in tracks:
            track_id = await self._search(track)
            if track_id is None:
                logger.warning("Track not found on Spotify", track=track.display_name)
            elif track_id not in track_ids:
                track_ids.append(track_id)

        client = await self._get_client()
        await self._write_in_batches(client.current_user_saved_tracks_add, track_ids)
        logger.info(f"Liked {len(track_ids)}/{len(tracks)} tracks on Spotify")
        return len(track_ids)

    @resilient_operation("spotify_unlove_tracks")
    async def unlove_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        saved = self._saved if self._saved is not None else await self._fetch_saved()
        candidates = [track for _, track in saved]
        track_ids: list[str] = []
        for track in tracks:
            index = find_best_match(candidates, track)
            if index is None:
                logger.warning(
                    "Track not in Spotify liked songs", track=track.display_name
                )
            elif saved[index][0] not in track_ids:
                track_ids.append(saved[index][0])

        client = await self._get_client()
        await self._write_in_batches(
            client.current_user_saved_tracks_delete, track_ids
        )
        logger.info(f"Removed {len(track_ids)}/{len(tracks)} liked songs on Spotify")
        return len(track_ids)


def get_connector_config() -> ConnectorConfig:
    """Spotify connector configuration."""

    def factory(config: Any) -> SpotifyConnector | None:
        credentials = config.credentials
        if not (credentials.spotify_client_id and credentials.spotify_client_secret):
            return None
        return SpotifyConnector(
            client_id=credentials.spotify_client_id,
            client_secret=credentials.spotify_client_secret,
            redirect_uri=credentials.spotify_redirect_uri,
        )

    return {"description": "Spotify liked songs", "factory": factory}
