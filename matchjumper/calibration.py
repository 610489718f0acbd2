"""Stream calibration: find the wall-clock instant a stream's 0:00 corresponds to."""

from __future__ import annotations

import math
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

import requests

from matchjumper import Stream

BroadcastStartLookup = Callable[[str], datetime | None]

MAX_CALIBRATION_WORKERS = 8


@dataclass(frozen=True)
class CalibrationOutcome:
    """The (possibly updated) stream and, when nothing changed, why."""

    stream: Stream
    diagnostic: str | None = None

    @property
    def calibrated(self) -> bool:
        return self.diagnostic is None


def calibrate_automatic(stream: Stream, fetch_start: BroadcastStartLookup) -> CalibrationOutcome:
    """Use the platform's recorded broadcast start as the origin."""
    if not stream.video_id:
        return CalibrationOutcome(stream, "No video URL entered for this stream")

    try:
        started = fetch_start(stream.video_id)
    except requests.RequestException as e:
        return CalibrationOutcome(stream, f"Could not load stream details: {e}")

    if started is None:
        return CalibrationOutcome(
            stream,
            "Start time not available for this video; sync it manually from a known match",
        )
    if started.tzinfo is None:
        return CalibrationOutcome(stream, "Broadcast start has no timezone; sync it manually")

    return CalibrationOutcome(replace(stream, calibration_origin=started))


def calibrate_pool(
    streams: list[Stream],
    fetch_start: BroadcastStartLookup,
) -> tuple[list[Stream], dict[str, str]]:
    """Calibrate every stream with a video concurrently.

    Returns the new pool and a ``{stream_id: diagnostic}`` map for the streams
    that stayed uncalibrated. Streams without a video are left alone.
    """
    targets = [s for s in streams if s.video_id]
    if not targets:
        return list(streams), {}

    def calibrate_one(stream: Stream) -> CalibrationOutcome:
        try:
            return calibrate_automatic(stream, fetch_start)
        except Exception as e:
            return CalibrationOutcome(stream, f"Could not read stream details: {e}")

    workers = min(len(targets), MAX_CALIBRATION_WORKERS)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        outcomes = list(executor.map(calibrate_one, targets))

    updated = {o.stream.id: o.stream for o in outcomes}
    diagnostics = {o.stream.id: o.diagnostic for o in outcomes if o.diagnostic}
    return [updated.get(s.id, s) for s in streams], diagnostics


def calibrate_manual(
    stream: Stream,
    match_timestamp: datetime | None,
    playback_seconds: float,
) -> CalibrationOutcome:
    """Solve ``origin = t - p`` from a match being watched at position ``p``.

    Any single pair works, and recalibrating simply overwrites the origin.
    """
    if match_timestamp is None:
        return CalibrationOutcome(stream, "This match has no start time to sync against")
    if match_timestamp.tzinfo is None:
        return CalibrationOutcome(stream, "Match start time has no timezone")
    if playback_seconds is None or not math.isfinite(playback_seconds) or playback_seconds < 0:
        return CalibrationOutcome(stream, "Playback position must be a non-negative number of seconds")

    origin = match_timestamp - timedelta(seconds=playback_seconds)
    return CalibrationOutcome(replace(stream, calibration_origin=origin))


def adjust_drift(stream: Stream, delta_seconds: float) -> CalibrationOutcome:
    """Nudge a calibrated stream's origin by a few seconds."""
    if stream.calibration_origin is None:
        return CalibrationOutcome(stream, "Stream is not calibrated yet")
    if delta_seconds is None or not math.isfinite(delta_seconds):
        return CalibrationOutcome(stream, "Drift adjustment must be a number of seconds")

    origin = stream.calibration_origin + timedelta(seconds=delta_seconds)
    return CalibrationOutcome(replace(stream, calibration_origin=origin))
