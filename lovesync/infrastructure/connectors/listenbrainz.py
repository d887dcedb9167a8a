"""ListenBrainz feedback API integration.

ListenBrainz models loved tracks as recording feedback with score 1. Only
recording MBIDs are exchanged, so records from this service carry nothing
but `track_mbid`, and tracks without one cannot be loved here.

The service reports its rate-limit window in X-RateLimit-* headers; when a
window is nearly used up the connector pauses until it resets.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from attrs import define, field

from lovesync.config import get_logger, resilient_operation, settings
from lovesync.domain.entities import LovedTrack
from lovesync.infrastructure.connectors.base_connector import (
    RateLimitInfo,
    RestClient,
    retry_transient,
)
from lovesync.infrastructure.connectors.protocols import ConnectorConfig

logger = get_logger(__name__).bind(service="listenbrainz")

API_ROOT = "https://api.listenbrainz.org/1"
LOVE_SCORE = 1
CLEAR_SCORE = 0


@define(slots=True)
class ListenBrainzConnector:
    """ListenBrainz connector implementing TrackSource."""

    token: str = field(repr=False)
    username: str
    api_root: str = API_ROOT
    name: str = "listenbrainz"

    _client: RestClient = field(init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        self._client = RestClient(
            base_url=self.api_root,
            service="ListenBrainz",
            headers={"Authorization": f"Token {self.token}"},
        )

    @retry_transient
    async def _fetch_feedback_page(self, offset: int) -> dict[str, Any]:
        return await self._client.get_json(
            f"feedback/user/{self.username}/get-feedback",
            params={
                "score": LOVE_SCORE,
                "offset": offset,
                "count": settings.api.listenbrainz_page_size,
            },
        )

    @retry_transient
    async def _send_feedback(self, recording_mbid: str, score: int) -> None:
        response = await self._client.request(
            "POST",
            "feedback/recording-feedback",
            json={"recording_mbid": recording_mbid, "score": score},
        )

        rate_limit = RateLimitInfo.from_headers(response.headers)
        if rate_limit.nearly_exhausted:
            logger.info(
                "Rate limit window nearly exhausted, pausing",
                sleep_seconds=rate_limit.wait_seconds,
            )
            await asyncio.sleep(rate_limit.wait_seconds)

    async def _submit(self, tracks: Sequence[LovedTrack], score: int) -> int:
        submitted = 0
        for track in tracks:
            if not track.track_mbid:
                logger.warning(
                    "Skipping track without recording MBID",
                    track=track.display_name,
                )
                continue
            await self._send_feedback(track.track_mbid, score)
            submitted += 1
        return submitted

    @resilient_operation("listenbrainz_get_loved_tracks")
    async def get_loved_tracks(self) -> list[LovedTrack]:
        tracks: list[LovedTrack] = []
        offset = 0

        while True:
            page = await self._fetch_feedback_page(offset)
            feedback = page.get("feedback") or []
            tracks.extend(
                LovedTrack(track_mbid=item["recording_mbid"])
                for item in feedback
                if item.get("recording_mbid")
            )
            offset += len(feedback)
            if not feedback or offset >= page.get("total_count", 0):
                break

        logger.info(f"Retrieved {len(tracks)} loved recordings for {self.username}")
        return tracks

    @resilient_operation("listenbrainz_love_tracks")
    async def love_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        loved = await self._submit(tracks, LOVE_SCORE)
        if tracks:
            logger.info(f"Loved {loved}/{len(tracks)} recordings on ListenBrainz")
        return loved

    @resilient_operation("listenbrainz_unlove_tracks")
    async def unlove_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        cleared = await self._submit(tracks, CLEAR_SCORE)
        if tracks:
            logger.info(f"Cleared {cleared}/{len(tracks)} recordings on ListenBrainz")
        return cleared


def get_connector_config() -> ConnectorConfig:
    """ListenBrainz connector configuration."""

    def factory(config: Any) -> ListenBrainzConnector | None:
        credentials = config.credentials
        if not (credentials.listenbrainz_token and credentials.listenbrainz_username):
            return None
        return ListenBrainzConnector(
            token=credentials.listenbrainz_token,
            username=credentials.listenbrainz_username,
        )

    return {"description": "ListenBrainz", "factory": factory}
