"""RobotEvents API v2 client: events, divisions, teams and matches."""

from __future__ import annotations

import re
from collections.abc import Iterable

import requests

from matchjumper import Alliance, Division, Event, Match, Team
from matchjumper.days import parse_date, parse_instant

BASE_URL = "https://www.robotevents.com/api/v2"
PER_PAGE = 250
REQUEST_TIMEOUT = 30  # seconds


class RobotEventsError(Exception):
    """Raised when a lookup the caller depends on comes back empty."""


def _headers(api_key: str) -> dict:
    return {
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }


def _get(path: str, api_key: str, params: dict | None = None) -> dict:
    response = requests.get(
        f"{BASE_URL}{path}",
        headers=_headers(api_key),
        params=params,
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


def _get_all_pages(path: str, api_key: str, params: dict | None = None) -> list[dict]:
    """Drain a paginated endpoint."""
    items: list[dict] = []
    page = 1
    last_page = 1
    while page <= last_page:
        payload = _get(path, api_key, {**(params or {}), "page": page, "per_page": PER_PAGE})
        items.extend(payload.get("data") or [])
        last_page = (payload.get("meta") or {}).get("last_page") or 1
        page += 1
    return items


# --- Payload parsing ---


def parse_division(payload: dict) -> Division:
    return Division(id=int(payload["id"]), name=payload.get("name") or "")


def parse_event(payload: dict) -> Event:
    return Event(
        id=int(payload["id"]),
        sku=payload.get("sku") or "",
        name=payload.get("name") or "",
        start=parse_date(payload.get("start")),
        end=parse_date(payload.get("end")),
        divisions=[parse_division(d) for d in payload.get("divisions") or []],
    )


def parse_team(payload: dict) -> Team:
    # Match payloads nest the team one level down: {"team": {...}, "sitting": false}
    team = payload.get("team") if isinstance(payload.get("team"), dict) else payload
    return Team(
        id=int(team["id"]),
        number=str(team.get("number") or team.get("name") or ""),
        name=team.get("team_name") or team.get("name") or "",
    )


def parse_alliance(payload: dict) -> Alliance:
    score = payload.get("score")
    return Alliance(
        color=payload.get("color") or "",
        score=score if isinstance(score, int) else None,
        teams=tuple(parse_team(t) for t in payload.get("teams") or [] if t),
    )


def parse_match(payload: dict, division_id: int | None = None) -> Match:
    """Build a Match from an API payload.

    The division comes from the payload when present, else from the
    division the match list was requested for.
    """
    division = payload.get("division") or {}
    return Match(
        id=int(payload["id"]),
        name=payload.get("name") or "",
        started=parse_instant(payload.get("started")),
        scheduled=parse_instant(payload.get("scheduled")),
        division_id=int(division["id"]) if division.get("id") is not None else division_id,
        alliances=tuple(parse_alliance(a) for a in payload.get("alliances") or []),
    )


# --- Match ordering / filtering ---


def _natural_key(name: str) -> list:
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name or "")]


def sort_matches(matches: Iterable[Match]) -> list[Match]:
    """By start time; untimestamped matches last, in natural name order (Q2 < Q10)."""
    matches = list(matches)
    timestamped = sorted((m for m in matches if m.timestamp), key=lambda m: m.timestamp)
    unplayed = sorted((m for m in matches if not m.timestamp), key=lambda m: _natural_key(m.name))
    return timestamped + unplayed


def matches_for_team(matches: Iterable[Match], team_id: int) -> list[Match]:
    return [m for m in matches if m.has_team(team_id)]


# --- API calls ---


def get_event_by_sku(sku: str, api_key: str) -> Event:
    payload = _get("/events", api_key, {"sku[]": sku})
    data = payload.get("data") or []
    if not data:
        raise RobotEventsError(f"Event not found: {sku}")
    return parse_event(data[0])


def list_divisions(event_id: int, api_key: str) -> list[Division]:
    return [parse_division(d) for d in _get_all_pages(f"/events/{event_id}/divisions", api_key)]


def list_matches(event_id: int, division_id: int, api_key: str) -> list[Match]:
    payloads = _get_all_pages(f"/events/{event_id}/divisions/{division_id}/matches", api_key)
    return [parse_match(p, division_id) for p in payloads]


def list_event_matches(event: Event, api_key: str) -> tuple[list[Match], list[str]]:
    """All matches of every division. A failing division is reported, not raised."""
    matches: list[Match] = []
    errors: list[str] = []
    for division in event.effective_divisions:
        try:
            matches.extend(list_matches(event.id, division.id, api_key))
        except requests.RequestException as e:
            errors.append(f"Matches for division {division.name} unavailable: {e}")
    return sort_matches(matches), errors


def get_team_by_number(number: str, api_key: str) -> Team:
    payload = _get("/teams", api_key, {"number[]": number, "myTeams": "false"})
    data = payload.get("data") or []
    if not data:
        raise RobotEventsError(f"Team not found: {number}")
    exact = next((t for t in data if str(t.get("number", "")).upper() == number.upper()), data[0])
    return parse_team(exact)
