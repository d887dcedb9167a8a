"""Track matching algorithms and types for cross-service identity."""

from .algorithms import (
    FEATURING_SEPARATORS,
    MAX_LEVENSHTEIN_DISTANCE,
    find_best_match,
    match_score,
    normalize_for_matching,
    segment_tracks,
)
from .types import MatchCandidate, MatchScore, SegmentResult

__all__ = [
    "FEATURING_SEPARATORS",
    "MAX_LEVENSHTEIN_DISTANCE",
    "MatchCandidate",
    "MatchScore",
    "SegmentResult",
    "find_best_match",
    "match_score",
    "normalize_for_matching",
    "segment_tracks",
]
