"""Explain why a match is grayed out."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from matchjumper import Match, Stream
from matchjumper.days import DateLike, day_index
from matchjumper.resolver import narrow, resolve_stream

NO_STREAMS = "No livestreams added yet"
NOT_CALIBRATED = "Stream added but not calibrated yet"


def _clock(instant: datetime, reference: datetime) -> str:
    if instant.tzinfo is not None and reference.tzinfo is not None:
        instant = instant.astimezone(reference.tzinfo)
    return instant.strftime("%H:%M")


def gray_out_reason(
    match: Match | None,
    streams: Iterable[Stream] | None,
    event_start: DateLike,
) -> str | None:
    """Reason a played match cannot be jumped to, or None.

    Future matches are not grayed out. Whenever :func:`resolve_stream` blocks
    a timestamped match this returns a reason, and None whenever it resolves.
    """
    if match is None or match.timestamp is None:
        return None

    streams = list(streams or [])
    if not resolve_stream(match, streams, event_start).blocked:
        return None

    timestamp = match.timestamp
    match_day = day_index(timestamp, event_start)

    added = [s for s in streams if s.has_video or s.is_calibrated]
    if not added:
        return NO_STREAMS

    scoped = narrow(added, "division_id", match.division_id)
    for_day = [s for s in scoped if s.day_index is None or s.day_index == match_day]
    if not for_day:
        return f"No livestream for Day {match_day + 1}"

    calibrated = [s for s in for_day if s.is_calibrated]
    if not calibrated:
        return NOT_CALIBRATED

    earliest = min(calibrated, key=lambda s: s.calibration_origin)
    return (
        f"Stream started at {_clock(earliest.calibration_origin, timestamp)}, "
        f"but match was at {_clock(timestamp, timestamp)}"
    )
