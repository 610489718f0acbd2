"""Livestream discovery: scrape the event page, then search linked channels."""

from __future__ import annotations

import time
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, time as dt_time, timedelta, timezone

from matchjumper import Channel, DirectVideo, Event, WebcastLink
from matchjumper.classifier import classify_links, division_hint
from matchjumper.days import parse_date

DISCOVERY_TIMEOUT = 60  # seconds, hard ceiling for the whole discovery
WINDOW_BUFFER = timedelta(days=1)

LinkFetcher = Callable[[str], list[WebcastLink]]
ChannelSearch = Callable[[str, datetime, datetime, str], list[dict]]


@dataclass
class DiscoveryResult:
    """Candidates found for an event plus the per-channel errors hit on the way."""

    candidates: list[DirectVideo] = field(default_factory=list)
    channels: list[Channel] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    timed_out: bool = False


def search_window(event: Event) -> tuple[datetime, datetime] | None:
    """``[start - 1 day, end + 1 day]`` as UTC instants; None without dates."""
    start = parse_date(event.start)
    end = parse_date(event.end) or start
    if start is None:
        return None
    window_start = datetime.combine(start, dt_time.min, tzinfo=timezone.utc) - WINDOW_BUFFER
    window_end = datetime.combine(end, dt_time.max, tzinfo=timezone.utc) + WINDOW_BUFFER
    return window_start, window_end.replace(microsecond=0)


def _channel_candidates(channel: Channel, results: list[dict], event: Event) -> list[DirectVideo]:
    videos: list[DirectVideo] = []
    for result in results:
        title = result.get("title", "")
        hint = channel.division_hint
        if hint is None:
            hint = division_hint(title, event.divisions)
        videos.append(DirectVideo(
            video_id=result["video_id"],
            label=title,
            division_hint=hint,
            published_at=result.get("published_at"),
        ))
    return videos


def discover_candidates(
    event: Event,
    fetch_links: LinkFetcher,
    search: ChannelSearch,
    api_key: str | None = None,
    timeout: float = DISCOVERY_TIMEOUT,
) -> DiscoveryResult:
    """Find direct-video candidates for an event.

    Channel searches run concurrently, one worker per channel. A failing
    channel is recorded in ``errors`` and does not affect the others; past
    ``timeout`` the searches still running are abandoned and whatever was
    collected so far is returned.
    """
    deadline = time.monotonic() + timeout
    links = fetch_links(event.sku)
    direct, channels = classify_links(links, event.divisions)
    result = DiscoveryResult(candidates=list(direct), channels=channels)

    window = search_window(event)
    if not channels or not api_key or window is None:
        return result

    window_start, window_end = window
    executor = ThreadPoolExecutor(max_workers=len(channels))
    futures: dict[Future, int] = {
        executor.submit(search, channel.channel_id, window_start, window_end, api_key): index
        for index, channel in enumerate(channels)
    }
    found: dict[int, list[DirectVideo]] = {}
    try:
        pending = set(futures)
        while pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                result.timed_out = True
                for index in sorted(futures[future] for future in pending):
                    result.errors.append(f"Search for channel {channels[index].channel_id} timed out")
                break
            done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
            for future in done:
                index = futures[future]
                channel = channels[index]
                try:
                    results = future.result()
                except Exception as e:
                    result.errors.append(f"Search for channel {channel.channel_id} failed: {e}")
                    continue
                found[index] = _channel_candidates(channel, results, event)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    # Keep page order regardless of completion order.
    for index in sorted(found):
        result.candidates.extend(found[index])
    return result
