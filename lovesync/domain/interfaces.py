"""Domain interfaces following Clean Architecture principles.

These interfaces define the contracts for music services without depending
on infrastructure implementations.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from lovesync.domain.entities import LovedTrack


@runtime_checkable
class TrackSource(Protocol):
    """A music service that holds a set of loved tracks.

    Every connector implements this one protocol, so the orchestration never
    branches on which service it is talking to.
    """

    name: str

    async def get_loved_tracks(self) -> list[LovedTrack]:
        """Fetch every track the user has loved on this service.

        Raises:
            TransientError: Rate limited or network failure after retries
            FatalError: Authentication failure or malformed response
        """
        ...

    async def love_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        """Mark tracks as loved. Idempotent; empty input is a no-op.

        Returns:
            Number of tracks the service was asked to love
        """
        ...

    async def unlove_tracks(self, tracks: Sequence[LovedTrack]) -> int:
        """Remove the loved mark from tracks. Idempotent; empty input is a no-op.

        Returns:
            Number of tracks the service was asked to unlove
        """
        ...
