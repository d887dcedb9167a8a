"""Subsonic API integration (Navidrome, Gonic, Airsonic and friends).

Starred songs are the Subsonic equivalent of loved tracks. The connector
talks to the REST API directly over requests with salted-token
authentication, enriching starred songs with artist and album MBIDs from
lookup tables that are fetched once per connector instance.

Key components:
- SubsonicConnector: TrackSource over getStarred2 / star / unstar
- song_to_loved_track: Subsonic song payload conversion
"""

import asyncio
from collections.abc import Sequence
import hashlib
import secrets
from typing import Any

from attrs import define, field

from lovesync.config import get_logger, resilient_operation, settings
from lovesync.domain.entities import LovedTrack
from lovesync.domain.exceptions import FatalError
from lovesync.domain.matching import find_best_match
from lovesync.infrastructure.connectors.base_connector import (
    RestClient,
    retry_transient,
)
from lovesync.infrastructure.connectors.protocols import ConnectorConfig

logger = get_logger(__name__).bind(service="subsonic")

API_VERSION = "1.16.1"
AUTH_ERROR_CODES = frozenset({40, 41})


def song_to_loved_track(
    song: dict[str, Any],
    artist_mbids: dict[str, str],
    album_mbids: dict[str, str],
) -> LovedTrack:
    """Convert a Subsonic song to a LovedTrack using the MBID lookup tables."""
    return LovedTrack(
        title=song.get("title"),
        artist=song.get("artist"),
        album=song.get("album"),
        track_mbid=song.get("musicBrainzId"),
        artist_mbid=artist_mbids.get(song.get("artistId", "")),
        album_mbid=album_mbids.get(song.get("albumId", "")),
    )


@define(slots=True)
class SubsonicConnector:
    """Subsonic connector implementing TrackSource.

    Lookup tables and the song catalogue are loaded on first use and then
    reused for the lifetime of the instance.
    """

    server: str
    username: str
    password: str = field(repr=False)
    client_name: str = "lovesync"
    name: str = "subsonic"

    _client: RestClient = field(init=False, repr=False)
    _lock: asyncio.Lock = field(factory=asyncio.Lock, init=False, repr=False)
    _artist_mbids: dict[str, str] | None = field(default=None, init=False, repr=False)
    _album_mbids: dict[str, str] | None = field(default=None, init=False, repr=False)
    _catalogue: list[tuple[str, LovedTrack]] | None = field(
        default=None, init=False, repr=False
    )

    def __attrs_post_init__(self) -> None:
        self._client = RestClient(base_url=self.server, service="Subsonic")

    def _auth_params(self) -> dict[str, str]:
        salt = secrets.token_hex(8)
        token = hashlib.md5((self.password + salt).encode()).hexdigest()  # noqa: S324
        return {
            "u": self.username,
            "t": token,
            "s": salt,
            "v": API_VERSION,
            "c": self.client_name,
            "f": "json",
        }

    @retry_transient
    async def _call(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Call a Subsonic endpoint and unwrap the subsonic-response envelope."""
        payload = await self._client.get_json(
            f"rest/{endpoint}",
            params={**self._auth_params(), **(params or {})},
        )

        body = payload.get("subsonic-response") if isinstance(payload, dict) else None
        if not isinstance(body, dict):
            raise FatalError(f"Subsonic {endpoint} returned no subsonic-response")

        if body.get("status") == "failed":
            error = body.get("error") or {}
            code = error.get("code")
            message = error.get("message", "unknown error")
            if code in AUTH_ERROR_CODES:
                raise FatalError(f"Subsonic authentication failed: {message}")
            raise FatalError(f"Subsonic {endpoint} failed ({code}): {message}")

        return body

    async def _fetch_artist_mbids(self) -> dict[str, str]:
        body = await self._call("getArtists")
        indexes = body.get("artists", {}).get("index", [])
        return {
            artist["id"]: artist["musicBrainzId"]
            for index in indexes
            for artist in index.get("artist", [])
            if artist.get("id") and artist.get("musicBrainzId")
        }

    async def _fetch_album_mbids(self) -> dict[str, str]:
        page_size = settings.api.subsonic_page_size
        mbids: dict[str, str] = {}
        offset = 0

        while True:
            body = await self._call(
                "getAlbumList2",
                {"type": "alphabeticalByName", "size": page_size, "offset": offset},
            )
            albums = body.get("albumList2", {}).get("album", [])
            mbids.update(
                (album["id"], album["musicBrainzId"])
                for album in albums
                if album.get("id") and album.get("musicBrainzId")
            )
            if len(albums) < page_size:
                return mbids
            offset += page_size

    async def _fetch_all_songs(self) -> list[dict[str, Any]]:
        page_size = settings.api.subsonic_page_size
        songs: list[dict[str, Any]] = []
        offset = 0

        while True:
            body = await self._call(
                "search3",
                {
                    "query": "",
                    "artistCount": 0,
                    "albumCount": 0,
                    "songCount": page_size,
                    "songOffset": offset,
                },
            )
            page = body.get("searchResult3", {}).get("song", [])
            songs.extend(page)
            if len(page) < page_size:
                return songs
            offset += page_size

    async def _load_lookups(self) -> tuple[dict[str, str], dict[str, str]]:
        """Fetch the MBID lookup tables once. Caller must hold the lock."""
        if self._artist_mbids is None:
            self._artist_mbids = await self._fetch_artist_mbids()
            logger.debug(f"Cached {len(self._artist_mbids)} artist MBIDs")
        if self._album_mbids is None:
            self._album_mbids = await self._fetch_album_mbids()
            logger.debug(f"Cached {len(self._album_mbids)} album MBIDs")
        return self._artist_mbids, self._album_mbids

    async def _get_catalogue(self) -> list[tuple[str, LovedTrack]]:
        async with self._lock:
            if self._catalogue is None:
                artist_mbids, album_mbids = await self._load_lookups()
                songs = await self._fetch_all_songs()
                self._catalogue = [
                    (song["id"], song_to_loved_track(song, artist_mbids, album_mbids))
                    for song in songs
                    if song.get("id")
                ]
                logger.info(f"Loaded Subsonic catalogue of {len(self._catalogue)} songs")
            return self._catalogue

    async def _resolve_song_ids(self, tracks: Sequence[LovedTrack]) -> list[str]:
        """Find the library song ID for each track, skipping unmatched ones."""
        catalogue = await self._get_catalogue()
        candidates = [track for _, track in catalogue]
        song_ids: list[str] = []

        for track in tracks:
            index = find_best_match(candidates, track)
            if index is None:
                logger.warning(
                    "Track not found in Subsonic library",
                    track=track.display_name,
                )
                continue
            song_id = catalogue[index][0]
            if song_id not in song_ids:
                song_ids.append(song_id)

        return song_ids

    @resilient_operation("subsonic_get_loved_tracks")
    async def get_loved_tracks(self) -> list[LovedTrack]:
        async with self._lock:
            artist_mbids, album_mbids = await self._load_lookups()

        body = await self._call("getStarred2")
        songs = body.get("starred2", {}).get("song", [])
        tracks = [song_to_loved_track(song, artist_mbids, album_mbids) for song in songs]

        logger.info(f"Retrieved {len(tracks)} starred songs from Subsonic")
        return tracks

    @resilient_operation("subsonic_love_tracks")
    async def love_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        song_ids = await self._resolve_song_ids(tracks)
        if song_ids:
            await self._call("star", {"id": song_ids})
        logger.info(f"Starred {len(song_ids)}/{len(tracks)} songs on Subsonic")
        return len(song_ids)

    @resilient_operation("subsonic_unlove_tracks")
    async def unlove_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        song_ids = await self._resolve_song_ids(tracks)
        if song_ids:
            await self._call("unstar", {"id": song_ids})
        logger.info(f"Unstarred {len(song_ids)}/{len(tracks)} songs on Subsonic")
        return len(song_ids)


def get_connector_config() -> ConnectorConfig:
    """Subsonic connector configuration."""

    def factory(config: Any) -> SubsonicConnector | None:
        credentials = config.credentials
        if not (
            credentials.subsonic_server
            and credentials.subsonic_username
            and credentials.subsonic_password
        ):
            return None
        return SubsonicConnector(
            server=credentials.subsonic_server,
            username=credentials.subsonic_username,
            password=credentials.subsonic_password,
            client_name=credentials.subsonic_client_name,
        )

    return {"description": "Subsonic-compatible server", "factory": factory}
