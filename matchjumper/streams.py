"""Stream pool editing and JSON (de)serialization.

The pool is a plain list treated as a value: every function returns a new
list and leaves its input untouched.
"""

from __future__ import annotations

from dataclasses import replace

from matchjumper import Stream
from matchjumper.days import parse_instant
from matchjumper.youtube import extract_video_id


def find_stream(streams: list[Stream], stream_id: str) -> Stream | None:
    return next((s for s in streams if s.id == stream_id), None)


def replace_stream(streams: list[Stream], updated: Stream) -> list[Stream]:
    return [updated if s.id == updated.id else s for s in streams]


def set_stream_url(streams: list[Stream], stream_id: str, url: str) -> list[Stream]:
    """Enter a URL for a slot.

    The video id is recomputed from the URL; a different video means the old
    calibration no longer applies and is cleared.
    """
    stream = find_stream(streams, stream_id)
    if stream is None:
        return list(streams)

    url = (url or "").strip()
    video_id = extract_video_id(url)
    origin = stream.calibration_origin if video_id and video_id == stream.video_id else None
    return replace_stream(streams, replace(
        stream,
        url=url,
        video_id=video_id,
        calibration_origin=origin,
        source="manual" if url else stream.source,
    ))


def add_backup_stream(streams: list[Stream], url: str = "") -> list[Stream]:
    """Append a backup stream that applies to every day and division."""
    backups = [s for s in streams if s.day_index is None]
    number = len(backups) + 1
    taken = {s.id for s in streams}
    stream_id = f"stream-backup-{number}"
    while stream_id in taken:
        number += 1
        stream_id = f"stream-backup-{number}"

    backup = Stream(
        id=stream_id,
        url=(url or "").strip(),
        video_id=extract_video_id(url),
        label=f"Backup Stream {number}",
        source="backup",
    )
    return [*streams, backup]


def remove_stream(streams: list[Stream], stream_id: str) -> list[Stream]:
    return [s for s in streams if s.id != stream_id]


def stream_to_dict(stream: Stream) -> dict:
    """Convert a Stream to a JSON-serializable dict."""
    return {
        "id": stream.id,
        "url": stream.url,
        "video_id": stream.video_id,
        "division_id": stream.division_id,
        "day_index": stream.day_index,
        "calibration_origin": (
            stream.calibration_origin.isoformat() if stream.calibration_origin else None
        ),
        "label": stream.label,
        "source": stream.source,
        "title": stream.title,
    }


def stream_from_dict(data: dict) -> Stream:
    url = data.get("url") or ""
    return Stream(
        id=str(data["id"]),
        url=url,
        video_id=data.get("video_id") or extract_video_id(url),
        division_id=data.get("division_id"),
        day_index=data.get("day_index"),
        calibration_origin=parse_instant(data.get("calibration_origin")),
        label=data.get("label", ""),
        source=data.get("source", "manual"),
        title=data.get("title"),
    )
