"""Classify scraped webcast links into direct videos and channels."""

from __future__ import annotations

import re
from collections.abc import Iterable

from matchjumper import Channel, DirectVideo, Division, WebcastLink
from matchjumper.youtube import extract_channel_id, extract_video_id

_DIVISION_TOKEN_RE = re.compile(r"\b(?:division|div)\s*\.?\s*([a-z0-9]+)", re.IGNORECASE)


def division_hint(text: str | None, divisions: Iterable[Division]) -> int | None:
    """Division id whose name the text mentions, or None.

    A full division name appearing in the text wins (longest name first, so
    "Science" does not shadow "Science Technology"). Otherwise a
    "Division X" / "Div X" token is matched against the words of each
    division name.
    """
    if not text:
        return None
    haystack = text.lower()
    named = [d for d in divisions if d.name and d.name.strip()]

    for division in sorted(named, key=lambda d: len(d.name), reverse=True):
        if division.name.strip().lower() in haystack:
            return division.id

    for token_match in _DIVISION_TOKEN_RE.finditer(haystack):
        token = token_match.group(1)
        for division in named:
            words = re.findall(r"[a-z0-9]+", division.name.lower())
            if token in words and token not in ("division", "div"):
                return division.id

    return None


def classify_links(
    links: Iterable[WebcastLink],
    divisions: Iterable[Division],
) -> tuple[list[DirectVideo], list[Channel]]:
    """Split links into direct-video and channel candidates; drop the rest."""
    divisions = list(divisions)
    direct: list[DirectVideo] = []
    channels: list[Channel] = []

    for link in links:
        hint = division_hint(link.label_text, divisions)
        if hint is None:
            hint = division_hint(link.context_text, divisions)

        video_id = extract_video_id(link.url)
        if video_id:
            direct.append(DirectVideo(video_id=video_id, label=link.label_text, division_hint=hint))
            continue

        channel_id = extract_channel_id(link.url)
        if channel_id:
            channels.append(Channel(
                channel_id=channel_id,
                channel_url=link.url,
                label=link.label_text,
                division_hint=hint,
            ))

    return direct, channels
