"""Tests for domain layer matching algorithms and types.

These tests exercise the pure scoring, locating and reconciliation logic
with no service involved.
"""

import pytest

from lovesync.domain.entities import LovedTrack
from lovesync.domain.matching import (
    MatchScore,
    find_best_match,
    match_score,
    normalize_for_matching,
    segment_tracks,
)
from tests.fixtures.sources import track


class TestNormalizeForMatching:
    """Test the comparison key used for fuzzy matching."""

    def test_case_and_parentheses_and_article(self):
        """Test that case, parenthesized text and a leading "the" are ignored."""
        assert normalize_for_matching("THE Song (Live)") == normalize_for_matching(
            "song"
        )

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Song (Remastered) (2011)", "song"),
            ("(Intro) The Song", "song"),
            ("Song (unterminated", "song (unterminated"),
            ("Song )(", "song )("),
            ("Artist Feat. Other", "artist"),
            ("Artist ft. Other", "artist"),
            ("Artist ft Other", "artist"),
            ("Artist featuring Other", "artist"),
            ("  Lots   of\tspace  ", "lots of space"),
            ("Theatre", "theatre"),
            ("", ""),
        ],
    )
    def test_normalization_cases(self, raw, expected):
        """Test individual normalization rules."""
        assert normalize_for_matching(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "The The Song",
            "Song\tfeat. Someone",
            "Song (Live) feat. X (Remix)",
            "  the   the   the  ",
            "Artist (feat. Other) ft. Third",
        ],
    )
    def test_idempotent(self, raw):
        """Test that normalizing twice gives the same key as normalizing once."""
        once = normalize_for_matching(raw)
        assert normalize_for_matching(once) == once

    def test_separator_hidden_by_whitespace(self):
        """Test that a tab before "feat." is still treated as a featuring credit."""
        assert normalize_for_matching("Song\tfeat. Someone") == "song"


class TestMatchScore:
    """Test the tiered scorer."""

    def test_track_mbid(self):
        """Test that equal recording MBIDs win regardless of text."""
        a = track("Artist", "Song", track_mbid="mbid-1")
        b = track("Other Artist", "Other", track_mbid="mbid-1")
        assert match_score(a, b) == MatchScore.TRACK_MBID

    def test_track_mbid_beats_exact_text(self):
        """Test that an MBID match is reported even when text is also exact."""
        a = track("Artist", "Song", track_mbid="mbid-1")
        b = track("Artist", "Song", track_mbid="mbid-1")
        assert match_score(a, b) == MatchScore.TRACK_MBID

    def test_track_mbid_is_case_sensitive(self):
        """Test that identifiers compare as exact strings."""
        a = LovedTrack(track_mbid="ABC")
        b = LovedTrack(track_mbid="abc")
        assert match_score(a, b) == MatchScore.NO_MATCH

    def test_album_and_artist_mbid(self):
        """Test that matching album and artist MBIDs score above artist-only."""
        a = track("Alpha Band", "First Song", artist_mbid="ar-1", album_mbid="al-1")
        b = track("Omega Group", "Other Track", artist_mbid="ar-1", album_mbid="al-1")
        assert match_score(a, b) == MatchScore.ALBUM_ARTIST_MBID

    def test_artist_mbid_with_same_title(self):
        """Test artist MBID plus case-insensitive title equality."""
        a = track("Alpha Band", "First Song", artist_mbid="ar-1")
        b = track("Omega Group", "FIRST SONG", artist_mbid="ar-1")
        assert match_score(a, b) == MatchScore.ARTIST_MBID

    def test_artist_mbid_with_different_title_falls_through(self):
        """Test that an artist MBID alone is not enough."""
        a = track("Alpha Band", "First Song", artist_mbid="ar-1")
        b = track("Omega Group", "Other Track", artist_mbid="ar-1")
        assert match_score(a, b) == MatchScore.NO_MATCH

    def test_exact_is_case_insensitive(self):
        """Test exact artist and title comparison ignoring case."""
        a = track("RADIOHEAD", "creep")
        b = track("Radiohead", "Creep")
        assert match_score(a, b) == MatchScore.EXACT

    def test_exact_uses_simple_case_folding(self):
        """Test that "ß" is not expanded to "ss" for exact comparison."""
        a = track("Die Ärzte", "Straße")
        b = track("DIE ÄRZTE", "STRASSE")
        assert match_score(a, b) == MatchScore.FUZZY

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            (track("Artist", "Song (Remastered)"), track("Artist", "Song")),
            (track("Radiohead", "Paranoid Android"), track("Radiohed", "Paranoid Androd")),
            (track("Artist feat. Guest", "Song"), track("Artist", "Song")),
            (track("The Beatles", "Help!"), track("Beatles", "Help!")),
            (track("abc", "song"), track("abc", "sxxx")),
        ],
    )
    def test_fuzzy(self, a, b):
        """Test text matches within an edit distance of three."""
        assert match_score(a, b) == MatchScore.FUZZY

    def test_fuzzy_distance_above_limit(self):
        """Test that an edit distance of four is not a match."""
        assert match_score(track("abc", "song"), track("abc", "wxyz")) == (
            MatchScore.NO_MATCH
        )

    def test_unrelated_tracks(self):
        """Test that unrelated tracks do not match."""
        assert match_score(track("Radiohead", "Creep"), track("Muse", "Uprising")) == (
            MatchScore.NO_MATCH
        )

    def test_empty_records(self):
        """Test that empty records never match, even each other."""
        assert match_score(LovedTrack(), LovedTrack()) == MatchScore.NO_MATCH

    def test_text_requires_artist_and_title(self):
        """Test that title-only records are never compared as text."""
        assert match_score(LovedTrack(title="Song"), LovedTrack(title="Song")) == (
            MatchScore.NO_MATCH
        )

    def test_tiers_are_ordered(self):
        """Test the total order of confidence tiers."""
        assert (
            MatchScore.NO_MATCH
            < MatchScore.FUZZY
            < MatchScore.EXACT
            < MatchScore.ARTIST_MBID
            < MatchScore.ALBUM_ARTIST_MBID
            < MatchScore.TRACK_MBID
        )

    def test_symmetric(self):
        """Test that score(a, b) == score(b, a) across a mixed set of records."""
        records = [
            LovedTrack(),
            track("Artist", "Song"),
            track("artist", "SONG"),
            track("Artist", "Song (Live)"),
            track("Artist", "Song", track_mbid="t-1"),
            track("Someone", "Else", track_mbid="t-1"),
            track("A", "Song", artist_mbid="ar-1"),
            track("B", "song", artist_mbid="ar-1", album_mbid="al-1"),
            track("C", "Other", artist_mbid="ar-1", album_mbid="al-1"),
            LovedTrack(title="Song"),
        ]
        for a in records:
            for b in records:
                assert match_score(a, b) == match_score(b, a)


class TestFindBestMatch:
    """Test locating a single record among candidates."""

    def test_empty_candidates(self):
        """Test that an empty collection yields no match."""
        assert find_best_match([], track("Artist", "Song")) is None

    def test_no_candidate_matches(self):
        """Test that all-NO_MATCH candidates yield no match."""
        candidates = [track("Muse", "Uprising"), track("Blur", "Parklife")]
        assert find_best_match(candidates, track("Radiohead", "Creep")) is None

    def test_earliest_wins_ties(self):
        """Test that the first candidate with the maximum score is returned."""
        candidates = [
            track("Muse", "Uprising"),
            track("Radiohead", "Creep"),
            track("radiohead", "creep"),
        ]
        assert find_best_match(candidates, track("Radiohead", "Creep")) == 1

    def test_higher_tier_later_wins(self):
        """Test that a stronger match later in the list beats an earlier weaker one."""
        candidates = [
            track("Radiohead", "Creep (Live)"),
            track("Radiohead", "Creep"),
            track("Radiohead", "Creep", track_mbid="t-1"),
        ]
        target = track("Radiohead", "Creep", track_mbid="t-1")
        assert find_best_match(candidates, target) == 2


class TestSegmentTracks:
    """Test reconciliation of desired and actual collections."""

    def test_empty_actual(self):
        """Test that everything desired is missing when nothing is loved."""
        desired = [track("A", "One"), track("B", "Two")]
        result = segment_tracks(desired, [])
        assert result.missing == desired
        assert result.matched == []
        assert result.extra == []

    def test_empty_desired(self):
        """Test that everything loved is extra when nothing is desired."""
        actual = [track("A", "One"), track("B", "Two")]
        result = segment_tracks([], actual)
        assert result.extra == actual
        assert result.matched == []
        assert result.missing == []

    def test_identical_collections(self):
        """Test that a copied collection matches completely."""
        desired = [
            track("Radiohead", "Creep"),
            track("Muse", "Uprising", track_mbid="t-2"),
            LovedTrack(track_mbid="t-3"),
        ]
        result = segment_tracks(desired, list(desired))
        assert result.missing == []
        assert len(result.matched) == len(desired)
        assert result.extra == []

    def test_identifier_wins_over_text_mismatch(self):
        """Test that a shared recording MBID pairs textually different records."""
        desired = [track("Artist", "Song", track_mbid="mbid-1")]
        actual = [track("Other Artist", "Other", track_mbid="mbid-1")]
        result = segment_tracks(desired, actual)
        assert result.matched == desired
        assert result.missing == []
        assert result.extra == []

    def test_fuzzy_pairing(self):
        """Test that a remaster tag does not prevent pairing."""
        desired = [track("Artist", "Song (Remastered)")]
        actual = [track("Artist", "Song")]
        result = segment_tracks(desired, actual)
        assert len(result.matched) == 1
        assert result.missing == []
        assert result.extra == []

    def test_duplicates_compete_for_one_record(self):
        """Test that two identical desired records cannot share one actual record."""
        desired = [track("Artist", "Song"), track("Artist", "Song")]
        actual = [track("Artist", "Song")]
        result = segment_tracks(desired, actual)
        assert len(result.matched) == 1
        assert len(result.missing) == 1
        assert result.extra == []

    def test_equal_scores_favour_earlier_desired(self):
        """Test that the first desired record wins a tie for one actual record."""
        desired = [track("Artist", "Song"), track("ARTIST", "SONG")]
        actual = [track("artist", "song")]
        assert match_score(desired[0], actual[0]) == match_score(desired[1], actual[0])

        result = segment_tracks(desired, actual)

        assert result.matched == [desired[0]]
        assert result.missing == [desired[1]]
        assert result.extra == []

    def test_equal_scores_favour_earlier_actual(self):
        """Test that a desired record pairs with the first of two equal candidates."""
        desired = [track("Artist", "Song")]
        actual = [track("ARTIST", "SONG"), track("artist", "song")]
        assert match_score(desired[0], actual[0]) == match_score(desired[0], actual[1])

        result = segment_tracks(desired, actual)

        assert result.matched == desired
        assert result.extra == [actual[1]]

    def test_highest_score_committed_first(self):
        """Test that a stronger pair is committed before an earlier weaker one."""
        text_only = track("Artist", "Song")
        with_mbid = track("Artist", "Song", track_mbid="t-1")
        actual = [track("Artist", "Song", track_mbid="t-1")]

        result = segment_tracks([text_only, with_mbid], actual)

        assert result.matched == [with_mbid]
        assert result.missing == [text_only]

    def test_matched_values_come_from_desired(self):
        """Test that matched holds the desired records, not their counterparts."""
        desired = [track("Artist", "Song", track_mbid="t-1")]
        actual = [track("Somebody", "Different", track_mbid="t-1")]
        result = segment_tracks(desired, actual)
        assert result.matched[0] is desired[0]

    def test_orders_are_preserved(self):
        """Test that missing keeps desired order and extra keeps actual order."""
        desired = [track("Coldplay", "Yellow"), track("Shared", "Tune"), track("Adele", "Hello")]
        actual = [track("Zedd", "Clarity"), track("Shared", "Tune"), track("Yes", "Roundabout")]
        result = segment_tracks(desired, actual)
        assert result.missing == [desired[0], desired[2]]
        assert result.extra == [actual[0], actual[2]]

    def test_deterministic(self):
        """Test that ambiguous inputs resolve the same way every time."""
        desired = [track("Artist", "Song"), track("Artist", "Song!"), track("Artist", "Song")]
        actual = [track("artist", "song"), track("Artist", "Song?")]
        first = segment_tracks(desired, actual)
        for _ in range(5):
            assert segment_tracks(desired, actual) == first
