"""Domain entities for loved-track synchronization."""

from .operations import SyncResult
from .track import LovedTrack

__all__ = [
    "LovedTrack",
    "SyncResult",
]
