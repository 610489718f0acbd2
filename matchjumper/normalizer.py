"""Merge discovered candidates and provision the event's stream slots."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import replace

from matchjumper import DirectVideo, Event, Stream
from matchjumper.days import day_label
from matchjumper.youtube import watch_url


def stream_slot_id(division_id: int, day: int) -> str:
    return f"stream-div-{division_id}-day-{day}"


def dedupe_candidates(candidates: Iterable[DirectVideo]) -> list[DirectVideo]:
    """One candidate per video id, in discovery order.

    A later duplicate only contributes its division hint when the first
    occurrence had none.
    """
    unique: dict[str, DirectVideo] = {}
    for candidate in candidates:
        existing = unique.get(candidate.video_id)
        if existing is None:
            unique[candidate.video_id] = candidate
        elif existing.division_hint is None and candidate.division_hint is not None:
            unique[candidate.video_id] = replace(existing, division_hint=candidate.division_hint)
    return list(unique.values())


def _assign_slots(event: Event, candidates: list[DirectVideo]) -> dict[tuple[int, int], DirectVideo]:
    divisions = event.effective_divisions
    days = event.day_count
    slots: dict[tuple[int, int], DirectVideo] = {}

    if len(divisions) == 1 and len(candidates) == 1:
        slots[(divisions[0].id, 0)] = candidates[0]
        return slots

    used: set[str] = set()
    for division in divisions:
        for day in range(days):
            candidate = next(
                (c for c in candidates if c.video_id not in used and c.division_hint == division.id),
                None,
            )
            if candidate is None:
                break
            slots[(division.id, day)] = candidate
            used.add(candidate.video_id)

    division_ids = {d.id for d in divisions}
    leftovers = deque(
        c for c in candidates
        if c.video_id not in used and c.division_hint not in division_ids
    )

    for division in divisions:
        if not leftovers:
            break
        if (division.id, 0) not in slots:
            slots[(division.id, 0)] = leftovers.popleft()

    # A single-division event has no ambiguity left: later videos are later days.
    if len(divisions) == 1:
        only = divisions[0].id
        for day in range(1, days):
            if not leftovers:
                break
            if (only, day) not in slots:
                slots[(only, day)] = leftovers.popleft()

    return slots


def provision_streams(event: Event, candidates: Iterable[DirectVideo]) -> list[Stream]:
    """Build the full ``Division x day`` stream grid, filled where discovery allows.

    Slots no candidate could be assigned to stay empty (no URL) so they can be
    filled in by hand. Never raises.
    """
    unique = dedupe_candidates(candidates)
    slots = _assign_slots(event, unique)
    streams: list[Stream] = []

    for division in event.effective_divisions:
        for day in range(event.day_count):
            candidate = slots.get((division.id, day))
            streams.append(Stream(
                id=stream_slot_id(division.id, day),
                url=watch_url(candidate.video_id) if candidate else "",
                video_id=candidate.video_id if candidate else None,
                division_id=division.id,
                day_index=day,
                label=day_label(event, day),
                source="detected" if candidate else "manual",
                title=candidate.label if candidate else None,
            ))

    return streams


def provision_empty_streams(event: Event) -> list[Stream]:
    """Empty slots for every ``Division x day`` combination."""
    return provision_streams(event, [])
