"""Calendar-day arithmetic for multi-day events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from matchjumper import Event, Stream

DateLike = date | datetime | str | None


def parse_instant(value: datetime | str | None) -> datetime | None:
    """Parse an ISO-8601 instant. Returns None for missing or malformed input.

    Values without an offset are taken to be UTC, so every instant that
    leaves this function is timezone-aware.
    """
    if isinstance(value, datetime):
        instant = value
    elif not value or not isinstance(value, str):
        return None
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def parse_date(value: DateLike) -> date | None:
    """Reduce a date, datetime or ISO string to its calendar date.

    The calendar date is the one written in the value's own offset, so
    ``2024-03-01T23:30:00-05:00`` is March 1st.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        instant = parse_instant(text)
        return instant.date() if instant else None


def event_day_count(start: DateLike, end: DateLike) -> int:
    """Number of calendar days an event spans, at least 1."""
    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is None or end_date is None:
        return 1
    return max(1, abs((end_date - start_date).days) + 1)


def day_index(instant: DateLike, event_start: DateLike) -> int:
    """0-based event day an instant falls on; time of day is ignored."""
    instant_date = parse_date(instant)
    start_date = parse_date(event_start)
    if instant_date is None or start_date is None:
        return 0
    return max(0, (instant_date - start_date).days)


def day_date(event_start: DateLike, index: int) -> date | None:
    start_date = parse_date(event_start)
    if start_date is None:
        return None
    return start_date + timedelta(days=index)


def day_label(event: Event, index: int) -> str:
    """Display label of a day slot, e.g. ``Day 2 - Mar 2``."""
    if event.day_count <= 1:
        return "Livestream"
    when = day_date(event.start, index)
    if when is None:
        return f"Day {index + 1}"
    return f"Day {index + 1} - {when.strftime('%b')} {when.day}"


@dataclass(frozen=True)
class StreamDateWarning:
    """A calibrated stream whose start lies outside the event dates."""

    stream_id: str
    stream_date: date
    matched_day_index: int
    is_before_event: bool
    is_after_event: bool


def stream_outside_event(stream: Stream, event: Event) -> StreamDateWarning | None:
    """Check that a stream's calibrated start falls within the event dates.

    Uncalibrated streams and events without bounds are never flagged.
    """
    if stream.calibration_origin is None:
        return None
    start_date = parse_date(event.start)
    end_date = parse_date(event.end)
    if start_date is None or end_date is None:
        return None

    stream_date = stream.calibration_origin.date()
    if start_date <= stream_date <= end_date:
        return None
    return StreamDateWarning(
        stream_id=stream.id,
        stream_date=stream_date,
        matched_day_index=day_index(stream_date, start_date),
        is_before_event=stream_date < start_date,
        is_after_event=stream_date > end_date,
    )
