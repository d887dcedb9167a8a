"""Pure algorithms for track matching and reconciliation.

These functions do no I/O and hold no state. They decide whether two
records denote the same recording, find the best candidate for a single
record, and split a desired collection against an actual one.
"""

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from lovesync.domain.entities import LovedTrack

from .types import MatchCandidate, MatchScore, SegmentResult

# Largest edit distance between normalized "artist|title" keys that still matches
MAX_LEVENSHTEIN_DISTANCE = 3

# Everything after one of these is a featured-artist credit
FEATURING_SEPARATORS = (" feat.", " feat ", " ft.", " ft ", " featuring ")


def _remove_parenthesized(text: str) -> str:
    """Drop every "(...)" group; an unterminated "(" is left alone."""
    while (start := text.find("(")) != -1:
        end = text.find(")", start)
        if end == -1:
            break
        text = text[:start] + text[end + 1 :]
    return text


def _normalize_once(text: str) -> str:
    text = _remove_parenthesized(text.lower())

    for separator in FEATURING_SEPARATORS:
        if (idx := text.find(separator)) != -1:
            text = text[:idx]

    text = " ".join(text.split())
    return text.removeprefix("the ")


def normalize_for_matching(text: str) -> str:
    """Reduce an artist or title to a comparison key.

    Lower-cases, strips parenthesized text ("(Remastered)", "(Live)"), cuts
    featured-artist credits, collapses whitespace and drops a leading "the ".
    Applied until nothing changes, so normalizing twice gives the same key
    as normalizing once, even for "The The Song" or a tab before "feat.".
    """
    while (normalized := _normalize_once(text)) != text:
        text = normalized
    return text


def _same_text(a: str, b: str) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def _same_id(a: str, b: str) -> bool:
    return bool(a) and bool(b) and a == b


def match_score(a: LovedTrack, b: LovedTrack) -> MatchScore:
    """Score how likely two records are the same recording.

    Rules are tried from strongest to weakest and the first one that holds
    decides the score. Identifiers win over any text comparison.

    Args:
        a: First record
        b: Second record

    Returns:
        The highest tier whose rule is satisfied, NO_MATCH if none is
    """
    if _same_id(a.track_mbid, b.track_mbid):
        return MatchScore.TRACK_MBID

    same_artist_id = _same_id(a.artist_mbid, b.artist_mbid)

    if same_artist_id and _same_id(a.album_mbid, b.album_mbid):
        return MatchScore.ALBUM_ARTIST_MBID

    if same_artist_id and _same_text(a.title, b.title):
        return MatchScore.ARTIST_MBID

    if not (a.artist and b.artist and a.title and b.title):
        return MatchScore.NO_MATCH

    if _same_text(a.artist, b.artist) and _same_text(a.title, b.title):
        return MatchScore.EXACT

    a_key = f"{normalize_for_matching(a.artist)}|{normalize_for_matching(a.title)}"
    b_key = f"{normalize_for_matching(b.artist)}|{normalize_for_matching(b.title)}"
    distance = Levenshtein.distance(
        a_key, b_key, score_cutoff=MAX_LEVENSHTEIN_DISTANCE
    )
    if distance <= MAX_LEVENSHTEIN_DISTANCE:
        return MatchScore.FUZZY

    return MatchScore.NO_MATCH


def find_best_match(
    candidates: Sequence[LovedTrack], target: LovedTrack
) -> int | None:
    """Find the candidate that best matches the target.

    Ties go to the earliest candidate.

    Args:
        candidates: Records to search, typically a service's whole catalogue
        target: Record to look for

    Returns:
        Index into candidates, or None if nothing matches at all
    """
    best_index = None
    best_score = MatchScore.NO_MATCH

    for index, candidate in enumerate(candidates):
        score = match_score(candidate, target)
        if score > best_score:
            best_score = score
            best_index = index

    return best_index


def segment_tracks(
    desired: Sequence[LovedTrack], actual: Sequence[LovedTrack]
) -> SegmentResult:
    """Split desired and actual collections into matched, missing and extra.

    Every desired/actual pair that matches at all is scored, then pairs are
    committed greedily from the highest score down; a record takes part in
    at most one pair. Equal scores are committed in generation order
    (desired index, then actual index) because the sort is stable.

    This is a greedy approximation of a maximum-weight bipartite matching,
    not an exact solver: an early high-scoring pair can leave another record
    unpaired that an optimal assignment would have paired.

    Args:
        desired: Tracks that should be loved (from the source)
        actual: Tracks that are loved (on the destination)

    Returns:
        SegmentResult with matched/missing in desired order, extra in actual order
    """
    candidates = [
        MatchCandidate(i, j, score)
        for i, desired_track in enumerate(desired)
        for j, actual_track in enumerate(actual)
        if (score := match_score(desired_track, actual_track)) != MatchScore.NO_MATCH
    ]
    candidates = sorted(candidates, key=lambda c: c.score, reverse=True)

    matched_desired: set[int] = set()
    matched_actual: set[int] = set()

    for candidate in candidates:
        if (
            candidate.desired_index in matched_desired
            or candidate.actual_index in matched_actual
        ):
            continue
        matched_desired.add(candidate.desired_index)
        matched_actual.add(candidate.actual_index)

    return SegmentResult(
        matched=[t for i, t in enumerate(desired) if i in matched_desired],
        missing=[t for i, t in enumerate(desired) if i not in matched_desired],
        extra=[t for j, t in enumerate(actual) if j not in matched_actual],
    )
