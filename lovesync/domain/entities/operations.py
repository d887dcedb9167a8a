"""Operation-related domain entities."""

from attrs import define, field

from .track import LovedTrack


@define(slots=True)
class SyncResult:
    """Outcome of reconciling one destination against the source.

    `to_love` and `to_unlove` hold what the reconciliation decided; the
    counts hold what the destination actually acted on. A dry run leaves
    both counts at zero.
    """

    source: str
    destination: str
    source_count: int = 0
    destination_count: int = 0
    to_love: list[LovedTrack] = field(factory=list)
    to_unlove: list[LovedTrack] = field(factory=list)
    loved_count: int = 0
    unloved_count: int = 0
    dry_run: bool = False
    error: str | None = None
    execution_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None
