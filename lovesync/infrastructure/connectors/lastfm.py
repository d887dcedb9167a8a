"""Last.fm API integration through the pylast library.

This module exposes the Last.fm "loved tracks" list as a TrackSource. pylast
is blocking, so every call runs in a worker thread and its exceptions are
mapped onto the lovesync error hierarchy.

Key components:
- LastFMConnector: Authenticated client with loved-track read, love and unlove
- pylast_to_loved_track: Conversion from pylast Track objects

Write operations need a full session, so the connector always authenticates
with username and password. The session is created on first use.
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any, ClassVar, TypeVar

from attrs import define, field
import pylast

from lovesync.config import get_logger, resilient_operation, settings
from lovesync.domain.entities import LovedTrack
from lovesync.domain.exceptions import FatalError, TransientError
from lovesync.infrastructure.connectors.base_connector import retry_transient
from lovesync.infrastructure.connectors.protocols import ConnectorConfig

R = TypeVar("R")

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="lastfm")

# Last.fm error code for "Rate limit exceeded"
RATE_LIMIT_STATUS = "29"


def pylast_to_loved_track(
    track: pylast.Track, track_mbid: str = "", artist_mbid: str = ""
) -> LovedTrack:
    """Convert a pylast Track to a LovedTrack without extra API calls.

    Loved-track listings only give pylast the title and artist name; the
    MBIDs are looked up separately and passed in.
    """
    return LovedTrack(
        title=track.title,
        artist=track.artist.name if track.artist else "",
        track_mbid=track_mbid,
        artist_mbid=artist_mbid,
    )


@retry_transient
async def _run(func: Callable[..., R], *args: Any) -> R:
    """Run a blocking pylast call in a thread, mapping its errors."""
    try:
        return await asyncio.to_thread(func, *args)
    except pylast.WSError as e:
        if str(e.status) == RATE_LIMIT_STATUS:
            raise TransientError(f"Last.fm rate limited: {e}") from e
        raise FatalError(f"Last.fm API error {e.status}: {e}") from e
    except (pylast.NetworkError, pylast.MalformedResponseError) as e:
        raise TransientError(f"Last.fm request failed: {e}") from e


@define(slots=True)
class LastFMConnector:
    """Last.fm connector implementing TrackSource."""

    api_key: str
    api_secret: str = field(repr=False)
    username: str
    password: str = field(repr=False)
    name: str = "lastfm"

    _client: pylast.LastFMNetwork | None = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(factory=asyncio.Lock, init=False, repr=False)

    USER_AGENT: ClassVar[str] = "lovesync/0.1.0 (Loved tracks sync)"

    async def _get_client(self) -> pylast.LastFMNetwork:
        """Create the authenticated network on first use."""
        async with self._lock:
            if self._client is None:
                logger.debug("Authenticating with Last.fm", username=self.username)
                pylast.HEADERS["User-Agent"] = self.USER_AGENT
                self._client = await _run(self._connect)
            return self._client

    def _connect(self) -> pylast.LastFMNetwork:
        return pylast.LastFMNetwork(
            api_key=self.api_key,
            api_secret=self.api_secret,
            username=self.username,
            password_hash=pylast.md5(self.password),
        )

    async def _resolve_track(
        self,
        client: pylast.LastFMNetwork,
        track: LovedTrack,
    ) -> pylast.Track | None:
        """Find the Last.fm track for a record, preferring its MBID."""
        if track.track_mbid:
            try:
                return await _run(client.get_track_by_mbid, track.track_mbid)
            except FatalError as e:
                logger.debug(
                    "MBID lookup failed, falling back to artist/title",
                    mbid=track.track_mbid,
                    error=str(e),
                )

        if not (track.artist and track.title):
            return None
        return client.get_track(track.artist, track.title)

    async def _lookup_mbid(self, getter: Callable[[], str | None], subject: str) -> str:
        """Fetch an MBID through a pylast getter; unknown items have none."""
        try:
            return await _run(getter) or ""
        except FatalError as e:
            logger.debug("No MBID available", item=subject, error=str(e))
            return ""

    async def _identify(
        self, track: pylast.Track, artist_lookups: dict[str, asyncio.Task[str]]
    ) -> LovedTrack:
        """Convert a listed track, adding its recording and artist MBIDs.

        Artist lookups are shared through `artist_lookups` so each artist is
        fetched once per listing.
        """
        name = track.artist.name if track.artist else ""
        if name and name not in artist_lookups:
            artist_lookups[name] = asyncio.create_task(
                self._lookup_mbid(track.artist.get_mbid, name)
            )

        track_mbid = await self._lookup_mbid(track.get_mbid, f"{name} - {track.title}")
        artist_mbid = await artist_lookups[name] if name else ""

        return pylast_to_loved_track(track, track_mbid, artist_mbid)

    @resilient_operation("lastfm_get_loved_tracks")
    async def get_loved_tracks(self) -> list[LovedTrack]:
        client = await self._get_client()
        user = client.get_user(self.username)
        loved = await _run(user.get_loved_tracks, None)

        semaphore = asyncio.Semaphore(settings.api.lastfm_concurrency)
        artist_lookups: dict[str, asyncio.Task[str]] = {}

        async def identify(track: pylast.Track) -> LovedTrack:
            async with semaphore:
                return await self._identify(track, artist_lookups)

        tracks = list(await asyncio.gather(*(identify(item.track) for item in loved)))
        logger.info(f"Retrieved {len(tracks)} loved tracks for user {self.username}")
        return tracks

    @resilient_operation("lastfm_love_tracks")
    async def love_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        client = await self._get_client()
        loved = 0
        for track in tracks:
            lastfm_track = await self._resolve_track(client, track)
            if lastfm_track is None:
                logger.warning(
                    "Skipping track without artist and title",
                    track=track.display_name,
                )
                continue
            await _run(lastfm_track.love)
            loved += 1

        logger.info(f"Loved {loved}/{len(tracks)} tracks on Last.fm")
        return loved

    @resilient_operation("lastfm_unlove_tracks")
    async def unlove_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        if not tracks:
            return 0

        client = await self._get_client()
        unloved = 0
        for track in tracks:
            if not (track.artist and track.title):
                logger.warning(
                    "Skipping track without artist and title",
                    track=track.display_name,
                )
                continue
            await _run(client.get_track(track.artist, track.title).unlove)
            unloved += 1

        logger.info(f"Unloved {unloved}/{len(tracks)} tracks on Last.fm")
        return unloved


def get_connector_config() -> ConnectorConfig:
    """Last.fm connector configuration."""

    def factory(config: Any) -> LastFMConnector | None:
        credentials = config.credentials
        if not (
            credentials.lastfm_key
            and credentials.lastfm_secret
            and credentials.lastfm_username
            and credentials.lastfm_password
        ):
            return None
        return LastFMConnector(
            api_key=credentials.lastfm_key,
            api_secret=credentials.lastfm_secret,
            username=credentials.lastfm_username,
            password=credentials.lastfm_password,
        )

    return {"description": "Last.fm", "factory": factory}
