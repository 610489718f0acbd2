#!/usr/bin/env python3
"""
Match Jumper: Match Resolution

Loads a team's matches at an event, calibrates the event's streams and
prints, for every match, the stream and second to jump to (or why the match
is grayed out). Optionally exports an ICS calendar with replay links.

Usage:
    python jump_to_match.py RE-VRC-24-1234 1234A
    python jump_to_match.py RE-VRC-24-1234 1234A --calibrate --save
    python jump_to_match.py RE-VRC-24-1234 1234A --sync "Qualifier #12=2120"
    python jump_to_match.py RE-VRC-24-1234 1234A --drift stream-div-1-day-0=-5
    python jump_to_match.py RE-VRC-24-1234 1234A --ics public/1234a.ics
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from functools import partial
from pathlib import Path

from matchjumper import Event, Match, Stream
from matchjumper.calendar_gen import create_match_calendar
from matchjumper.calibration import adjust_drift, calibrate_manual, calibrate_pool
from matchjumper.day_inference import match_day_index
from matchjumper.days import stream_outside_event
from matchjumper.diagnostics import gray_out_reason
from matchjumper.normalizer import provision_empty_streams, stream_slot_id
from matchjumper.notify import notify_run_errors
from matchjumper.resolver import resolve_stream
from matchjumper.robotevents import (
    get_event_by_sku,
    get_team_by_number,
    list_event_matches,
    matches_for_team,
)
from matchjumper.streams import find_stream, replace_stream, stream_from_dict, stream_to_dict
from matchjumper.youtube import get_broadcast_start_instant, watch_url


def load_streams(path: Path, event: Event) -> list[Stream]:
    """Load a stream pool written by detect_streams.py, or start with empty slots."""
    if not path.exists():
        print(f"  No stream file at {path} — starting with empty slots")
        return provision_empty_streams(event)
    with open(path) as f:
        data = json.load(f)
    return [stream_from_dict(s) for s in data.get("streams", [])]


def save_streams(path: Path, streams: list[Stream]) -> None:
    data = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {}
    data["streams"] = [stream_to_dict(s) for s in streams]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def format_offset(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def find_match(matches: list[Match], name: str) -> Match | None:
    wanted = name.strip().lower()
    return next((m for m in matches if m.name.lower() == wanted), None)


def apply_manual_sync(
    value: str,
    event: Event,
    all_matches: list[Match],
    streams: list[Stream],
    errors: list[str],
) -> list[Stream]:
    """Apply ``MATCH=SECONDS[@STREAM_ID]``: the match is at SECONDS into the stream."""
    try:
        match_name, position = value.rsplit("=", 1)
        stream_id = None
        if "@" in position:
            position, stream_id = position.split("@", 1)
        seconds = float(position)
    except ValueError:
        errors.append(f"Bad --sync value {value!r} (expected MATCH=SECONDS[@STREAM_ID])")
        return streams

    match = find_match(all_matches, match_name)
    if match is None:
        errors.append(f"--sync: no match named {match_name!r}")
        return streams

    if stream_id is None:
        day = match_day_index(match, all_matches, event.start)
        division_id = match.division_id or event.effective_divisions[0].id
        stream_id = stream_slot_id(division_id, day)

    stream = find_stream(streams, stream_id)
    if stream is None:
        errors.append(f"--sync: no stream {stream_id!r}")
        return streams

    outcome = calibrate_manual(stream, match.timestamp, seconds)
    if not outcome.calibrated:
        errors.append(f"--sync {match.name}: {outcome.diagnostic}")
        return streams
    print(f"  Synced {stream.id} from {match.name}: starts {outcome.stream.calibration_origin.isoformat()}")
    return replace_stream(streams, outcome.stream)


def apply_drift(value: str, streams: list[Stream], errors: list[str]) -> list[Stream]:
    try:
        stream_id, delta = value.rsplit("=", 1)
        delta_seconds = float(delta)
    except ValueError:
        errors.append(f"Bad --drift value {value!r} (expected STREAM_ID=SECONDS)")
        return streams

    stream = find_stream(streams, stream_id)
    if stream is None:
        errors.append(f"--drift: no stream {stream_id!r}")
        return streams

    outcome = adjust_drift(stream, delta_seconds)
    if not outcome.calibrated:
        errors.append(f"--drift {stream_id}: {outcome.diagnostic}")
        return streams
    print(f"  Adjusted {stream_id} by {delta_seconds:+g}s")
    return replace_stream(streams, outcome.stream)


def print_match(match: Match, event: Event, siblings: list[Match], streams: list[Stream]) -> None:
    day = match_day_index(match, siblings, event.start)
    when = match.timestamp.strftime("%H:%M") if match.timestamp else "--:--"
    prefix = f"  {match.name:<16} Day {day + 1}  {when}"

    if match.timestamp is None:
        print(f"{prefix}  upcoming")
        return

    result = resolve_stream(match, streams, event.start)
    if result.blocked:
        print(f"{prefix}  ✗ {gray_out_reason(match, streams, event.start)}")
        return

    stream = find_stream(streams, result.stream_id)
    link = watch_url(stream.video_id, result.seek_seconds) if stream and stream.video_id else ""
    print(f"{prefix}  → {result.stream_id} @ {format_offset(result.seek_seconds)}  {link}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve a team's matches to livestream offsets")
    parser.add_argument("sku", help="Event SKU, e.g. RE-VRC-24-1234")
    parser.add_argument("team", help="Team number, e.g. 1234A")
    parser.add_argument("--streams", type=Path, help="Stream file (default: public/data/<sku>.json)")
    parser.add_argument("--calibrate", action="store_true", help="Calibrate streams from YouTube metadata")
    parser.add_argument("--sync", action="append", default=[], metavar="MATCH=SECONDS[@STREAM_ID]")
    parser.add_argument("--drift", action="append", default=[], metavar="STREAM_ID=SECONDS")
    parser.add_argument("--ics", type=Path, help="Write an ICS calendar with replay links")
    parser.add_argument("--save", action="store_true", help="Write calibrations back to the stream file")
    args = parser.parse_args()

    robotevents_key = os.environ.get("ROBOTEVENTS_API_KEY", "")
    youtube_key = os.environ.get("YOUTUBE_API_KEY", "")
    if not robotevents_key:
        print("ERROR: ROBOTEVENTS_API_KEY is not set")
        return 1

    errors: list[str] = []

    print(f"Loading {args.sku} / {args.team} from RobotEvents...")
    try:
        event = get_event_by_sku(args.sku, robotevents_key)
        team = get_team_by_number(args.team, robotevents_key)
    except Exception as e:
        print(f"  ERROR: {e}")
        notify_run_errors("Match resolution", [str(e)])
        return 1

    all_matches, match_errors = list_event_matches(event, robotevents_key)
    errors.extend(match_errors)
    team_matches = matches_for_team(all_matches, team.id)
    print(f"  {event.name}: {len(all_matches)} matches, {len(team_matches)} for {team.number}")

    streams_path = args.streams or Path("public/data") / f"{event.sku.lower()}.json"
    streams = load_streams(streams_path, event)

    if args.calibrate:
        if youtube_key:
            print("\nCalibrating streams from YouTube...")
            streams, diagnostics = calibrate_pool(
                streams, partial(get_broadcast_start_instant, api_key=youtube_key)
            )
            for stream_id, diagnostic in diagnostics.items():
                print(f"  {stream_id}: {diagnostic}")
        else:
            print("\nYOUTUBE_API_KEY not set — skipping automatic calibration")

    for value in args.sync:
        streams = apply_manual_sync(value, event, all_matches, streams, errors)
    for value in args.drift:
        streams = apply_drift(value, streams, errors)

    for stream in streams:
        warning = stream_outside_event(stream, event)
        if warning:
            side = "before" if warning.is_before_event else "after"
            print(f"  Warning: {stream.id} starts {warning.stream_date} ({side} the event)")

    print(f"\nMatches for {team.number}:")
    for match in team_matches:
        print_match(match, event, all_matches, streams)

    if args.ics:
        cal = create_match_calendar(event, team.number, team_matches, streams)
        args.ics.parent.mkdir(parents=True, exist_ok=True)
        args.ics.write_bytes(cal.to_ical())
        print(f"\nSaved {args.ics}")

    if args.save:
        save_streams(streams_path, streams)
        print(f"Saved {streams_path}")

    if errors:
        print(f"\nErrors encountered: {len(errors)}")
        for err in errors:
            print(f"  - {err}")
        notify_run_errors("Match resolution", errors)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
