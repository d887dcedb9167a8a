"""lovesync domain layer - pure business logic with no service dependencies."""

from . import entities, matching
from .entities import LovedTrack, SyncResult
from .exceptions import ConfigurationError, FatalError, LoveSyncError, TransientError
from .interfaces import TrackSource
from .matching import (
    MatchScore,
    SegmentResult,
    find_best_match,
    match_score,
    normalize_for_matching,
    segment_tracks,
)

__all__ = [
    # Modules
    "entities",
    "matching",
    # Entities
    "LovedTrack",
    "SyncResult",
    # Errors
    "ConfigurationError",
    "FatalError",
    "LoveSyncError",
    "TransientError",
    # Interfaces
    "TrackSource",
    # Matching
    "MatchScore",
    "SegmentResult",
    "find_best_match",
    "match_score",
    "normalize_for_matching",
    "segment_tracks",
]
