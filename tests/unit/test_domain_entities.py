"""Tests for domain entities."""

import attrs
import pytest

from lovesync.domain.entities import LovedTrack, SyncResult


class TestLovedTrack:
    """Test the track identity record."""

    def test_defaults_are_empty(self):
        """Test that every field defaults to the empty string."""
        record = LovedTrack()
        assert attrs.astuple(record) == ("", "", "", "", "", "")

    def test_none_means_unknown(self):
        """Test that None from a service payload is stored as empty."""
        record = LovedTrack(title=None, artist="Artist", track_mbid=None)
        assert record.title == ""
        assert record.track_mbid == ""

    def test_immutable(self):
        """Test that records cannot be modified."""
        record = LovedTrack(title="Song")
        with pytest.raises(attrs.exceptions.FrozenInstanceError):
            record.title = "Other"

    def test_value_equality(self):
        """Test that records with equal fields are equal and hashable."""
        assert LovedTrack(title="Song", artist="A") == LovedTrack(title="Song", artist="A")
        assert len({LovedTrack(title="Song"), LovedTrack(title="Song")}) == 1

    @pytest.mark.parametrize(
        ("record", "expected"),
        [
            (LovedTrack(artist="Artist", title="Song"), "Artist - Song"),
            (LovedTrack(title="Song"), "Song"),
            (LovedTrack(artist="Artist"), "Artist"),
            (LovedTrack(track_mbid="mbid-1"), "mbid-1"),
            (LovedTrack(), "<unknown track>"),
        ],
    )
    def test_display_name(self, record, expected):
        """Test the label used in logs and reports."""
        assert record.display_name == expected

    def test_as_dict_omits_unknown_fields(self):
        """Test dictionary conversion."""
        record = LovedTrack(title="Song", track_mbid="mbid-1")
        assert record.as_dict() == {"title": "Song", "track_mbid": "mbid-1"}


class TestSyncResult:
    """Test the per-destination outcome."""

    def test_success_without_error(self):
        """Test that a result without an error is successful."""
        result = SyncResult(source="subsonic", destination="lastfm")
        assert result.success
        assert result.to_love == []
        assert result.loved_count == 0

    def test_failure_with_error(self):
        """Test that recording an error marks the result failed."""
        result = SyncResult(source="subsonic", destination="lastfm", error="denied")
        assert not result.success
