"""ICS calendar export of a team's matches with replay links."""

from __future__ import annotations

from datetime import timedelta

from icalendar import Calendar, Event as CalendarEvent

from matchjumper import Event, Match, Stream
from matchjumper.diagnostics import gray_out_reason
from matchjumper.resolver import resolve_stream
from matchjumper.streams import find_stream
from matchjumper.youtube import watch_url

MATCH_DURATION = timedelta(minutes=5)


def create_match_calendar(
    event: Event,
    team_number: str,
    matches: list[Match],
    streams: list[Stream],
) -> Calendar:
    """Create an ICS calendar of a team's timestamped matches at an event."""
    cal = Calendar()
    cal.add("prodid", f"-//{event.sku} Match Jumper//robotevents.com//")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", f"{team_number} at {event.name}")

    for match in matches:
        if match.timestamp is None:
            continue
        cal.add_component(_create_match_event(event, team_number, match, streams))

    return cal


def _alliance_summary(match: Match) -> str:
    sides = []
    for alliance in match.alliances:
        teams = " ".join(t.number for t in alliance.teams) or "TBD"
        score = "" if alliance.score is None else f" ({alliance.score})"
        sides.append(f"{alliance.color.title()}: {teams}{score}")
    return " vs ".join(sides)


def _create_match_event(event: Event, team_number: str, match: Match, streams: list[Stream]) -> CalendarEvent:
    entry = CalendarEvent()
    entry.add("summary", f"{team_number} · {match.name}")
    entry.add("dtstart", match.timestamp)
    entry.add("dtend", match.timestamp + MATCH_DURATION)

    description = [event.name]
    alliances = _alliance_summary(match)
    if alliances:
        description.append(alliances)

    result = resolve_stream(match, streams, event.start)
    stream = find_stream(streams, result.stream_id) if not result.blocked else None
    if stream is not None and stream.video_id:
        link = watch_url(stream.video_id, result.seek_seconds)
        description.append(f"Watch: {link}")
        entry.add("url", link)
    else:
        reason = gray_out_reason(match, streams, event.start) or result.reason or "no video URL entered"
        description.append(f"Replay unavailable: {reason}")

    entry.add("description", "\n\n".join(description))
    entry.add("uid", f"{event.sku.lower()}-{match.id}@robotevents.com")
    entry.add("status", "CONFIRMED")
    entry.add("transp", "TRANSPARENT")
    return entry
