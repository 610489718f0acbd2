"""Pick the stream showing a match and the second to seek to."""

from __future__ import annotations

from collections.abc import Iterable

from matchjumper import Match, ResolutionResult, Stream
from matchjumper.days import DateLike, day_index

NOT_SCHEDULED = "Match not played or scheduled yet"
NO_CALIBRATED_STREAM = "No calibrated stream"
BEFORE_STREAM_START = "Match happened before the stream started"


def narrow(streams: list[Stream], attribute: str, value: int | None) -> list[Stream]:
    """Keep streams whose attribute equals ``value`` or is unset.

    Never stricter than what is available: an empty result falls back to the
    input.
    """
    if value is None:
        return streams
    narrowed = [s for s in streams if getattr(s, attribute) in (None, value)]
    return narrowed or streams


def candidate_streams(match: Match, streams: Iterable[Stream], event_start: DateLike) -> list[Stream]:
    """Calibrated streams left after the division and day narrowing."""
    timestamp = match.timestamp
    calibrated = [s for s in streams if s.calibration_origin is not None]
    if timestamp is None or not calibrated:
        return []

    pool = narrow(calibrated, "division_id", match.division_id)
    return narrow(pool, "day_index", day_index(timestamp, event_start))


def select_stream(match: Match, streams: Iterable[Stream], event_start: DateLike) -> Stream | None:
    """Closest stream that started at or before the match.

    If every candidate started after the match, the earliest-starting one is
    returned instead; callers see a negative offset for it.
    """
    pool = candidate_streams(match, streams, event_start)
    if not pool:
        return None

    timestamp = match.timestamp
    started_before = [s for s in pool if s.calibration_origin <= timestamp]
    if started_before:
        # Ties go to the more specific stream (day slot over backup).
        return max(
            started_before,
            key=lambda s: (s.calibration_origin, s.day_index is not None, s.division_id is not None),
        )
    return min(pool, key=lambda s: s.calibration_origin)


def resolve_stream(
    match: Match | None,
    streams: Iterable[Stream] | None,
    event_start: DateLike,
) -> ResolutionResult:
    """Resolve a match to ``(stream_id, seek_seconds)`` or a blocked result."""
    if match is None or match.timestamp is None:
        return ResolutionResult.block(NOT_SCHEDULED)

    selected = select_stream(match, streams or [], event_start)
    if selected is None:
        return ResolutionResult.block(NO_CALIBRATED_STREAM)

    offset = (match.timestamp - selected.calibration_origin).total_seconds()
    if offset < 0:
        return ResolutionResult.block(BEFORE_STREAM_START)

    return ResolutionResult.resolved(selected.id, int(round(offset)))
