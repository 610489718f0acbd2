#!/usr/bin/env python3
"""
Match Jumper: Livestream Detection

Looks up a RobotEvents event, scrapes its webcast links, searches the linked
YouTube channels for broadcasts during the event and provisions one stream
slot per division and day. Results are cached for an hour and written to
public/data/<sku>.json.

Usage:
    python detect_streams.py RE-VRC-24-1234
    python detect_streams.py RE-VRC-24-1234 --dry-run    # Print, don't write
    python detect_streams.py RE-VRC-24-1234 --no-cache   # Ignore cached results
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from functools import partial
from pathlib import Path

from matchjumper import Event
from matchjumper.cache import DISCOVERY_TTL, FileCache, cached, discovery_cache_key
from matchjumper.discovery import discover_candidates
from matchjumper.normalizer import provision_streams
from matchjumper.notify import notify_run_errors
from matchjumper.robotevents import get_event_by_sku
from matchjumper.scraper import fetch_webcast_links
from matchjumper.streams import stream_to_dict
from matchjumper.youtube import search_channel_broadcasts


def detect(event: Event, youtube_key: str | None, errors: list[str]) -> list[dict]:
    """Run discovery and provisioning; returns serialized streams."""
    result = discover_candidates(
        event,
        fetch_links=fetch_webcast_links,
        search=search_channel_broadcasts,
        api_key=youtube_key,
    )
    print(f"  Found {len(result.candidates)} candidate video(s), {len(result.channels)} channel link(s)")
    if result.channels and not youtube_key:
        print("  YOUTUBE_API_KEY not set — channel links skipped")
    if result.timed_out:
        print("  Warning: discovery hit its time limit, results are partial")
    errors.extend(result.errors)

    streams = provision_streams(event, result.candidates)
    return [stream_to_dict(s) for s in streams]


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect livestreams for a RobotEvents event")
    parser.add_argument("sku", help="Event SKU, e.g. RE-VRC-24-1234")
    parser.add_argument("--dry-run", action="store_true", help="Print streams without writing")
    parser.add_argument("--no-cache", action="store_true", help="Skip the discovery cache")
    parser.add_argument("--cache-dir", default="cache", type=Path)
    parser.add_argument("--output-dir", default="public/data", type=Path)
    args = parser.parse_args()

    robotevents_key = os.environ.get("ROBOTEVENTS_API_KEY", "")
    youtube_key = os.environ.get("YOUTUBE_API_KEY") or None
    if not robotevents_key:
        print("ERROR: ROBOTEVENTS_API_KEY is not set")
        return 1

    errors: list[str] = []

    print(f"Looking up {args.sku} on RobotEvents...")
    try:
        event = get_event_by_sku(args.sku, robotevents_key)
    except Exception as e:
        print(f"  ERROR: {e}")
        notify_run_errors("Stream detection", [f"Event lookup failed for {args.sku}: {e}"])
        return 1

    divisions = ", ".join(d.name for d in event.effective_divisions)
    print(f"  {event.name} ({event.start} → {event.end}, {event.day_count} day(s); {divisions})")

    cache = None if args.no_cache else FileCache(args.cache_dir)
    streams, from_cache = cached(
        cache,
        discovery_cache_key(event.sku),
        partial(detect, event, youtube_key, errors),
        ttl=DISCOVERY_TTL,
    )
    if from_cache:
        print("  Using cached streams")

    filled = [s for s in streams if s["video_id"]]
    print(f"\n{len(filled)} of {len(streams)} stream slot(s) filled")
    for s in streams:
        video = s["url"] or "(empty — add a URL manually)"
        print(f"  {s['id']:<24} {s['label']:<18} {video}")

    if not args.dry_run:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        out_path = args.output_dir / f"{event.sku.lower()}.json"
        data = {
            "event": {
                "id": event.id,
                "sku": event.sku,
                "name": event.name,
                "start": event.start.isoformat() if event.start else None,
                "end": event.end.isoformat() if event.end else None,
                "divisions": [{"id": d.id, "name": d.name} for d in event.divisions],
            },
            "streams": streams,
            "generated_utc": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        out_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"\nSaved {out_path}")
    else:
        print("\n[Dry run — nothing written]")

    if errors:
        print(f"\nErrors encountered: {len(errors)}")
        for err in errors:
            print(f"  - {err}")
        notify_run_errors("Stream detection", errors)
        return 1

    print("\nDone")
    return 0


if __name__ == "__main__":
    sys.exit(main())
