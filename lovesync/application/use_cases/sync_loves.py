"""Loved-track synchronization from one source service to many destinations.

The source's loved tracks are the desired state. Each destination is
reconciled against it independently: tracks the destination is missing get
loved, and with `remove_other` the destination's extra tracks get unloved.
A failing destination is reported in its own result and never stops the
others.
"""

import asyncio
from collections.abc import Iterable, Mapping
import time

from attrs import define, field

from lovesync.config import get_logger
from lovesync.domain.entities import LovedTrack, SyncResult
from lovesync.domain.exceptions import ConfigurationError, LoveSyncError
from lovesync.domain.interfaces import TrackSource
from lovesync.domain.matching import segment_tracks

logger = get_logger(__name__)

# Periods shorter than this mean "run once"
MIN_PERIOD_SECONDS = 60


def _clean_names(value: str | Iterable[str]) -> list[str]:
    """Accept a comma-separated string or a list; trim and drop blanks."""
    names = value.split(",") if isinstance(value, str) else value
    return [name.strip() for name in names if name.strip()]


@define(frozen=True, slots=True)
class SyncLovesCommand:
    """Command for syncing loved tracks from a source to destinations."""

    source: str = field(converter=str.strip)
    destinations: list[str] = field(factory=list, converter=_clean_names)
    dry_run: bool = False
    remove_other: bool = False


@define(slots=True)
class SyncLovesUseCase:
    """Use case for reconciling loved tracks across services.

    Sources are injected by name, so the use case never knows which concrete
    service it is talking to.
    """

    sources: Mapping[str, TrackSource]

    async def execute(self, command: SyncLovesCommand) -> list[SyncResult]:
        """Run one sync pass.

        Raises:
            ConfigurationError: Source or a destination is missing or unconfigured
            LoveSyncError: The source's loved tracks could not be fetched
        """
        source, destinations = self._resolve(command)

        logger.info(f"Fetching loved tracks from {command.source}")
        source_tracks = await source.get_loved_tracks()
        logger.info(f"Found {len(source_tracks)} loved tracks on {command.source}")

        return [
            await self._sync_destination(command, source_tracks, name, destination)
            for name, destination in destinations
        ]

    def _resolve(
        self, command: SyncLovesCommand
    ) -> tuple[TrackSource, list[tuple[str, TrackSource]]]:
        if not command.source:
            raise ConfigurationError("No source specified")
        if not command.destinations:
            raise ConfigurationError("No destinations specified")

        available = ", ".join(sorted(self.sources)) or "none"
        source = self.sources.get(command.source)
        if source is None:
            raise ConfigurationError(
                f"Source '{command.source}' is not configured (available: {available})"
            )

        destinations: list[tuple[str, TrackSource]] = []
        for name in command.destinations:
            if name == command.source:
                logger.info(f"Skipping destination {name}: it is the source")
                continue
            destination = self.sources.get(name)
            if destination is None:
                raise ConfigurationError(
                    f"Destination '{name}' is not configured (available: {available})"
                )
            destinations.append((name, destination))

        return source, destinations

    async def _sync_destination(
        self,
        command: SyncLovesCommand,
        source_tracks: list[LovedTrack],
        name: str,
        destination: TrackSource,
    ) -> SyncResult:
        start_time = time.perf_counter()
        result = SyncResult(
            source=command.source,
            destination=name,
            source_count=len(source_tracks),
            dry_run=command.dry_run,
        )

        try:
            destination_tracks = await destination.get_loved_tracks()
            result.destination_count = len(destination_tracks)

            segment = segment_tracks(source_tracks, destination_tracks)
            result.to_love = segment.missing
            result.to_unlove = segment.extra if command.remove_other else []

            logger.info(
                f"{name}: {len(segment.matched)} already loved, "
                f"{len(result.to_love)} to love, {len(result.to_unlove)} to unlove",
                unmatched_on_destination=len(segment.extra),
            )

            if command.dry_run:
                for track in result.to_love:
                    logger.info(f"Would love {track.display_name}", destination=name)
                for track in result.to_unlove:
                    logger.info(f"Would unlove {track.display_name}", destination=name)
            else:
                if result.to_love:
                    result.loved_count = await destination.love_tracks(result.to_love)
                if result.to_unlove:
                    result.unloved_count = await destination.unlove_tracks(
                        result.to_unlove
                    )
        except LoveSyncError as e:
            logger.error(
                f"Sync to {name} failed: {e}",
                destination=name,
                error_type=type(e).__name__,
            )
            result.error = str(e)
        finally:
            result.execution_time = time.perf_counter() - start_time

        return result


async def run_periodically(
    use_case: SyncLovesUseCase,
    command: SyncLovesCommand,
    period_seconds: float,
    iterations: int | None = None,
) -> list[SyncResult]:
    """Run the sync once, or repeatedly every `period_seconds`.

    A period under a minute means a single run. Otherwise the sync repeats
    until cancelled, or `iterations` times when given. A failing pass is
    logged and the loop carries on with the next one.

    Returns:
        Results of the last completed pass
    """
    if period_seconds < MIN_PERIOD_SECONDS:
        return await use_case.execute(command)

    results: list[SyncResult] = []
    completed = 0
    while iterations is None or completed < iterations:
        if completed:
            logger.info(f"Next sync in {period_seconds:g} seconds")
            await asyncio.sleep(period_seconds)

        try:
            results = await use_case.execute(command)
        except ConfigurationError:
            raise
        except LoveSyncError as e:
            logger.error(f"Sync pass failed: {e}", error_type=type(e).__name__)
        completed += 1

    return results
