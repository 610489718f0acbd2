"""Day inference for matches that carry no timestamp yet."""

from __future__ import annotations

from collections.abc import Iterable

from matchjumper import Match
from matchjumper.days import DateLike, day_index

# Name markers of the qualification phase; VIQC calls its qualifiers "Teamwork".
QUALIFICATION_MARKERS = ("qual", "practice", "teamwork")


def is_qualification(match: Match) -> bool:
    name = (match.name or "").lower()
    return any(marker in name for marker in QUALIFICATION_MARKERS)


def infer_day_index(match: Match, siblings: Iterable[Match], event_start: DateLike) -> int:
    """Guess the event day of an untimestamped match from its siblings.

    Elimination matches run as a block right after qualifications, so the
    latest timestamped qualification match of the same division is the best
    proxy. Without one, the earliest timestamped sibling of any kind is used,
    and without any timestamped sibling the answer is day 0.
    """
    pool = [m for m in siblings if m.id != match.id]
    if match.division_id is not None:
        pool = [m for m in pool if m.division_id == match.division_id]

    timestamped = [m for m in pool if m.timestamp is not None]
    if not timestamped:
        return 0

    qualifications = [m for m in timestamped if is_qualification(m)]
    if qualifications:
        latest = max(qualifications, key=lambda m: m.timestamp)
        return day_index(latest.timestamp, event_start)

    earliest = min(timestamped, key=lambda m: m.timestamp)
    return day_index(earliest.timestamp, event_start)


def match_day_index(match: Match, siblings: Iterable[Match], event_start: DateLike) -> int:
    """Event day of a match: direct when timestamped, inferred otherwise."""
    if match.timestamp is not None:
        return day_index(match.timestamp, event_start)
    return infer_day_index(match, siblings, event_start)
