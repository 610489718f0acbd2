"""Match Jumper: shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

DEFAULT_DIVISION_ID = 1
DEFAULT_DIVISION_NAME = "Default Division"


@dataclass(frozen=True)
class Division:
    """A division of an event (its own field, its own schedule)."""

    id: int
    name: str


@dataclass
class Event:
    """A competition event as listed on RobotEvents."""

    id: int
    sku: str
    name: str
    start: date | None
    end: date | None
    divisions: list[Division] = field(default_factory=list)

    @property
    def day_count(self) -> int:
        from matchjumper.days import event_day_count

        return event_day_count(self.start, self.end)

    @property
    def effective_divisions(self) -> list[Division]:
        """Divisions to provision streams for; never empty."""
        if self.divisions:
            return list(self.divisions)
        return [Division(id=DEFAULT_DIVISION_ID, name=DEFAULT_DIVISION_NAME)]


@dataclass(frozen=True)
class Team:
    id: int
    number: str
    name: str = ""


@dataclass(frozen=True)
class Alliance:
    color: str
    score: int | None = None
    teams: tuple[Team, ...] = ()


@dataclass(frozen=True)
class Match:
    """A single match, read-only."""

    id: int
    name: str
    started: datetime | None = None
    scheduled: datetime | None = None
    division_id: int | None = None
    alliances: tuple[Alliance, ...] = ()

    @property
    def timestamp(self) -> datetime | None:
        """Start instant: actual start wins over the schedule."""
        return self.started or self.scheduled

    @property
    def is_timestamped(self) -> bool:
        return self.timestamp is not None

    def has_team(self, team_id: int) -> bool:
        return any(t.id == team_id for a in self.alliances for t in a.teams)


@dataclass(frozen=True)
class WebcastLink:
    """A link scraped from an event's webcast listing."""

    url: str
    label_text: str = ""
    context_text: str = ""


@dataclass(frozen=True)
class DirectVideo:
    """A candidate that points at a single video."""

    video_id: str
    label: str = ""
    division_hint: int | None = None
    published_at: datetime | None = None


@dataclass(frozen=True)
class Channel:
    """A candidate that points at a channel; needs a search to yield videos."""

    channel_id: str
    channel_url: str
    label: str = ""
    division_hint: int | None = None


@dataclass(frozen=True)
class Stream:
    """One livestream slot of an event.

    ``calibration_origin`` is the wall-clock instant that playback position
    0:00 corresponds to, so ``origin + playback = wall clock``.
    """

    id: str
    url: str = ""
    video_id: str | None = None
    division_id: int | None = None
    day_index: int | None = None
    calibration_origin: datetime | None = None
    label: str = ""
    source: str = "manual"
    title: str | None = None

    @property
    def is_calibrated(self) -> bool:
        return self.calibration_origin is not None

    @property
    def has_video(self) -> bool:
        return bool(self.video_id or self.url)


@dataclass(frozen=True)
class ResolutionResult:
    """Either a seek target or a blocked result with a reason."""

    stream_id: str | None = None
    seek_seconds: int | None = None
    blocked: bool = False
    reason: str | None = None

    @classmethod
    def resolved(cls, stream_id: str, seek_seconds: int) -> ResolutionResult:
        return cls(stream_id=stream_id, seek_seconds=seek_seconds)

    @classmethod
    def block(cls, reason: str) -> ResolutionResult:
        return cls(blocked=True, reason=reason)
