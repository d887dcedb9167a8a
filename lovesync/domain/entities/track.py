"""Track-related domain entities.

Pure track representations with zero service dependencies.
"""

from typing import Any

from attrs import asdict, define, field


def _text(value: str | None) -> str:
    """Coerce missing values to the empty string, which means "unknown"."""
    return value or ""


@define(frozen=True, slots=True)
class LovedTrack:
    """Immutable identity record for one loved track.

    Every field is optional: an empty string means the service did not
    provide it. MBIDs are MusicBrainz identifiers for the recording, the
    artist and the album (release).
    """

    title: str = field(default="", converter=_text)
    artist: str = field(default="", converter=_text)
    album: str = field(default="", converter=_text)
    track_mbid: str = field(default="", converter=_text)
    artist_mbid: str = field(default="", converter=_text)
    album_mbid: str = field(default="", converter=_text)

    @property
    def display_name(self) -> str:
        """Human-readable label used in logs and reports."""
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.artist or self.track_mbid or "<unknown track>"

    def as_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary, omitting unknown fields."""
        return {key: value for key, value in asdict(self).items() if value}
