"""YouTube URL parsing and Data API v3 access (search + broadcast metadata)."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from urllib.parse import urlparse

import requests

from matchjumper.days import parse_instant

API_BASE = "https://www.googleapis.com/youtube/v3"
REQUEST_TIMEOUT = 15  # seconds
MAX_COMPLETED_RESULTS = 10
MAX_LIVE_RESULTS = 5
YOUTUBE_HOSTS = ("youtube.com", "youtu.be", "youtube-nocookie.com")

_VIDEO_ID_RE = re.compile(
    r"^.*(?:youtu\.be/|v/|u/\w/|embed/|watch\?v=|live/|&v=)([^#&?/]*).*"
)
_CHANNEL_PATTERNS = (
    (re.compile(r"youtube\.com/@([^/?#]+)"), "@{}"),
    (re.compile(r"youtube\.com/channel/([^/?#]+)"), "{}"),
    (re.compile(r"youtube\.com/c/([^/?#]+)"), "{}"),
    (re.compile(r"youtube\.com/user/([^/?#]+)"), "{}"),
)


def _is_youtube_host(url: str) -> bool:
    text = url.strip()
    if "//" not in text:
        text = f"https://{text}"
    host = (urlparse(text).hostname or "").lower()
    return any(host == h or host.endswith(f".{h}") for h in YOUTUBE_HOSTS)


def extract_video_id(url: str | None) -> str | None:
    """Extract the 11-character video id from a watch, short, live or embed URL."""
    if not url or not _is_youtube_host(url):
        return None
    match = _VIDEO_ID_RE.match(url.strip())
    if match and len(match.group(1)) == 11:
        return match.group(1)
    return None


def is_channel_link(url: str | None) -> bool:
    """True when the URL is a channel or user page rather than a video."""
    return extract_channel_id(url) is not None


def extract_channel_id(url: str | None) -> str | None:
    """Channel id (or ``@handle``) from a channel-page URL."""
    if not url:
        return None
    for pattern, template in _CHANNEL_PATTERNS:
        match = pattern.search(url)
        if match:
            return template.format(match.group(1))
    return None


def watch_url(video_id: str, seconds: int | None = None) -> str:
    """Watch link, optionally starting at a given second."""
    url = f"https://www.youtube.com/watch?v={video_id}"
    if seconds:
        url += f"&t={int(seconds)}s"
    return url


def _to_rfc3339(instant: datetime) -> str:
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return instant.strftime("%Y-%m-%dT%H:%M:%SZ")


def _get(endpoint: str, params: dict, api_key: str) -> dict:
    response = requests.get(
        f"{API_BASE}/{endpoint}",
        params={**params, "key": api_key},
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


def parse_search_results(payload: dict) -> list[dict]:
    """Turn a search.list payload into ``{video_id, title, published_at}`` dicts."""
    results: list[dict] = []
    for item in payload.get("items") or []:
        video_id = (item.get("id") or {}).get("videoId")
        if not video_id:
            continue
        snippet = item.get("snippet") or {}
        results.append({
            "video_id": video_id,
            "title": snippet.get("title", ""),
            "published_at": parse_instant(snippet.get("publishedAt")),
        })
    return results


def parse_broadcast_start(payload: dict) -> datetime | None:
    """Actual broadcast start from a videos.list liveStreamingDetails payload."""
    items = payload.get("items") or []
    if not items:
        return None
    details = items[0].get("liveStreamingDetails") or {}
    return parse_instant(details.get("actualStartTime"))


def resolve_channel_id(handle: str, api_key: str) -> str | None:
    """Resolve an ``@handle`` to a channel id. Plain ids pass through."""
    if not handle.startswith("@"):
        return handle
    payload = _get(
        "search",
        {"part": "snippet", "type": "channel", "q": handle, "maxResults": 1},
        api_key,
    )
    items = payload.get("items") or []
    if not items:
        return None
    return (items[0].get("id") or {}).get("channelId")


def search_channel_broadcasts(
    channel_id: str,
    window_start: datetime,
    window_end: datetime,
    api_key: str,
) -> list[dict]:
    """Completed broadcasts in the window plus any broadcast live right now."""
    resolved = resolve_channel_id(channel_id, api_key)
    if not resolved:
        return []

    completed = _get(
        "search",
        {
            "part": "snippet",
            "channelId": resolved,
            "type": "video",
            "eventType": "completed",
            "publishedAfter": _to_rfc3339(window_start),
            "publishedBefore": _to_rfc3339(window_end),
            "maxResults": MAX_COMPLETED_RESULTS,
        },
        api_key,
    )
    live = _get(
        "search",
        {
            "part": "snippet",
            "channelId": resolved,
            "type": "video",
            "eventType": "live",
            "maxResults": MAX_LIVE_RESULTS,
        },
        api_key,
    )
    return parse_search_results(completed) + parse_search_results(live)


def get_broadcast_start_instant(video_id: str, api_key: str) -> datetime | None:
    """Instant the broadcast actually went live, or None if YouTube does not say."""
    payload = _get(
        "videos",
        {"part": "liveStreamingDetails", "id": video_id},
        api_key,
    )
    return parse_broadcast_start(payload)
