"""Pure domain types for track matching."""

from enum import IntEnum

from attrs import define, field

from lovesync.domain.entities import LovedTrack


class MatchScore(IntEnum):
    """How confident we are that two records denote the same recording.

    Ordered: a higher tier always beats a lower one, tiers are never summed.
    """

    NO_MATCH = 0
    FUZZY = 1
    EXACT = 2
    ARTIST_MBID = 3
    ALBUM_ARTIST_MBID = 4
    TRACK_MBID = 5


@define(frozen=True, slots=True)
class SegmentResult:
    """Partition of a desired and an actual collection.

    Attributes:
        matched: Desired tracks that have a counterpart in actual
        missing: Desired tracks with no counterpart (need loving)
        extra: Actual tracks with no counterpart in desired (candidates for unloving)
    """

    matched: list[LovedTrack] = field(factory=list)
    missing: list[LovedTrack] = field(factory=list)
    extra: list[LovedTrack] = field(factory=list)


@define(frozen=True, slots=True)
class MatchCandidate:
    """A scored (desired index, actual index) pair considered for pairing."""

    desired_index: int
    actual_index: int
    score: MatchScore
