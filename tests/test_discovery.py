"""Tests for webcast scraping, link classification, channel search and provisioning."""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
import requests

from matchjumper import Channel, DirectVideo, Division, Event, WebcastLink
from matchjumper.classifier import classify_links, division_hint
from matchjumper.discovery import discover_candidates, search_window
from matchjumper.normalizer import dedupe_candidates, provision_empty_streams, provision_streams
from matchjumper.scraper import parse_webcast_links_from_html
from matchjumper.youtube import (
    extract_channel_id,
    extract_video_id,
    is_channel_link,
    parse_broadcast_start,
    parse_search_results,
    watch_url,
)

FIXTURE_DIR = Path(__file__).parent / "fixtures"

DIVISIONS = [
    Division(id=1, name="Science"),
    Division(id=2, name="Technology"),
    Division(id=3, name="Arts"),
]

EVENT = Event(
    id=55000,
    sku="RE-VRC-24-1234",
    name="Signature Event",
    start=date(2024, 3, 1),
    end=date(2024, 3, 2),
    divisions=DIVISIONS,
)


@pytest.fixture
def fixture_html() -> str:
    return (FIXTURE_DIR / "event_page.html").read_text()


@pytest.fixture
def links(fixture_html: str) -> list[WebcastLink]:
    return parse_webcast_links_from_html(fixture_html)


# --- YouTube URL parsing ---


class TestYouTubeUrls:
    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/live/dQw4w9WgXcQ?si=abc",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "youtube.com/watch?v=dQw4w9WgXcQ&t=30s",
    ])
    def test_video_id_shapes(self, url: str) -> None:
        assert extract_video_id(url) == "dQw4w9WgXcQ"

    @pytest.mark.parametrize("url", [
        "",
        None,
        "https://www.youtube.com/@VEXRobotics",
        "https://www.youtube.com/watch?v=short",
        "https://www.twitch.tv/vexrobotics",
    ])
    def test_not_a_video(self, url) -> None:
        assert extract_video_id(url) is None

    def test_channel_ids(self) -> None:
        assert extract_channel_id("https://www.youtube.com/@VEXRobotics/streams") == "@VEXRobotics"
        assert extract_channel_id("https://www.youtube.com/channel/UC123") == "UC123"
        assert extract_channel_id("https://www.youtube.com/c/RECFoundation") == "RECFoundation"
        assert extract_channel_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") is None
        assert is_channel_link("https://youtube.com/user/vexrobotics")

    def test_watch_url(self) -> None:
        assert watch_url("dQw4w9WgXcQ") == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert watch_url("dQw4w9WgXcQ", 2120) == "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=2120s"


class TestYouTubePayloads:
    def test_parse_search_results(self) -> None:
        payload = {
            "items": [
                {
                    "id": {"kind": "youtube#video", "videoId": "AbCdEfGhI01"},
                    "snippet": {"title": "Science Division Day 1", "publishedAt": "2024-03-01T13:00:00Z"},
                },
                {"id": {"kind": "youtube#channel", "channelId": "UC123"}, "snippet": {}},
            ]
        }
        results = parse_search_results(payload)
        assert results == [{
            "video_id": "AbCdEfGhI01",
            "title": "Science Division Day 1",
            "published_at": datetime(2024, 3, 1, 13, tzinfo=timezone.utc),
        }]

    def test_parse_broadcast_start(self) -> None:
        payload = {"items": [{"liveStreamingDetails": {"actualStartTime": "2024-03-01T09:00:00Z"}}]}
        assert parse_broadcast_start(payload) == datetime(2024, 3, 1, 9, tzinfo=timezone.utc)

    def test_parse_broadcast_start_not_a_livestream(self) -> None:
        assert parse_broadcast_start({"items": [{"id": "x"}]}) is None
        assert parse_broadcast_start({"items": []}) is None


# --- Scraper ---


class TestScraper:
    def test_finds_youtube_and_other_links(self, links: list[WebcastLink]) -> None:
        urls = [link.url for link in links]
        assert "https://www.youtube.com/watch?v=AbCdEfGhI01" in urls
        assert "https://www.youtube.com/channel/UC1234567890abcdefghij" in urls
        assert "https://www.twitch.tv/vexrobotics" in urls

    def test_duplicate_links_kept_once(self, links: list[WebcastLink]) -> None:
        urls = [link.url for link in links]
        assert urls.count("https://www.youtube.com/watch?v=AbCdEfGhI01") == 1

    def test_label_and_context(self, links: list[WebcastLink]) -> None:
        first = links[0]
        assert first.label_text == "Day 1 Stream"
        assert "Science Division" in first.context_text

    def test_ignores_non_webcast_links(self, links: list[WebcastLink]) -> None:
        assert all("robotevents.com" not in link.url for link in links)

    def test_empty_html_returns_empty(self) -> None:
        assert parse_webcast_links_from_html("<html><body></body></html>") == []


# --- Classifier ---


class TestDivisionHint:
    def test_division_name_in_label(self) -> None:
        assert division_hint("Technology Division - Day 2", DIVISIONS) == 2

    def test_case_insensitive(self) -> None:
        assert division_hint("ARTS livestream", DIVISIONS) == 3

    def test_division_token(self) -> None:
        divisions = [Division(id=7, name="Division 1"), Division(id=8, name="Division 2")]
        assert division_hint("Div. 2 stream", divisions) == 8

    def test_longest_name_first(self) -> None:
        divisions = [Division(id=1, name="Science"), Division(id=2, name="Science Technology")]
        assert division_hint("Science Technology field", divisions) == 2

    def test_no_match(self) -> None:
        assert division_hint("Main stream", DIVISIONS) is None
        assert division_hint("", DIVISIONS) is None
        assert division_hint("Science", []) is None


class TestClassifier:
    def test_splits_videos_and_channels(self, links: list[WebcastLink]) -> None:
        direct, channels = classify_links(links, DIVISIONS)
        assert [v.video_id for v in direct] == ["AbCdEfGhI01", "AbCdEfGhI02", "AbCdEfGhI03"]
        assert [c.channel_id for c in channels] == ["@VEXRobotics", "UC1234567890abcdefghij"]

    def test_hints_from_label_and_context(self, links: list[WebcastLink]) -> None:
        direct, channels = classify_links(links, DIVISIONS)
        assert [v.division_hint for v in direct] == [1, 2, 3]
        assert [c.division_hint for c in channels] == [None, None]

    def test_unrecognized_links_discarded(self) -> None:
        direct, channels = classify_links(
            [WebcastLink("https://www.twitch.tv/vexrobotics"), WebcastLink("https://example.com")],
            DIVISIONS,
        )
        assert direct == []
        assert channels == []


# --- Discovery ---


def fixed_links(*links: WebcastLink):
    return lambda sku: list(links)


CHANNEL_A = WebcastLink("https://www.youtube.com/@ChannelA", "Science Division")
CHANNEL_B = WebcastLink("https://www.youtube.com/@ChannelB", "Field B")
DIRECT = WebcastLink("https://youtu.be/AbCdEfGhI09", "Main stream")


class TestDiscovery:
    def test_search_window_has_one_day_buffer(self) -> None:
        window_start, window_end = search_window(EVENT)
        assert window_start == datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert window_end == datetime(2024, 3, 3, 23, 59, 59, tzinfo=timezone.utc)

    def test_channel_results_inherit_hint(self) -> None:
        def search(channel_id, start, end, api_key):
            return [{"video_id": "ChanAVid001", "title": "Day 1", "published_at": None}]

        result = discover_candidates(EVENT, fixed_links(CHANNEL_A), search, api_key="key")
        assert result.candidates == [DirectVideo(video_id="ChanAVid001", label="Day 1", division_hint=1)]
        assert result.errors == []

    def test_title_hint_when_channel_has_none(self) -> None:
        def search(channel_id, start, end, api_key):
            return [{"video_id": "ChanBVid001", "title": "Arts Division - Saturday"}]

        result = discover_candidates(EVENT, fixed_links(CHANNEL_B), search, api_key="key")
        assert result.candidates[0].division_hint == 3

    def test_missing_api_key_skips_channels(self) -> None:
        def search(*args):
            raise AssertionError("search must not run without a key")

        result = discover_candidates(EVENT, fixed_links(DIRECT, CHANNEL_A), search, api_key=None)
        assert [c.video_id for c in result.candidates] == ["AbCdEfGhI09"]
        assert len(result.channels) == 1
        assert result.errors == []

    def test_failing_channel_is_isolated(self) -> None:
        def search(channel_id, start, end, api_key):
            if channel_id == "@ChannelA":
                raise requests.HTTPError("403 quota exceeded")
            return [{"video_id": "ChanBVid001", "title": "Stream"}]

        result = discover_candidates(EVENT, fixed_links(DIRECT, CHANNEL_A, CHANNEL_B), search, api_key="key")
        assert [c.video_id for c in result.candidates] == ["AbCdEfGhI09", "ChanBVid001"]
        assert len(result.errors) == 1
        assert "@ChannelA" in result.errors[0]

    def test_results_keep_page_order(self) -> None:
        def search(channel_id, start, end, api_key):
            if channel_id == "@ChannelA":
                time.sleep(0.2)
            return [{"video_id": f"{channel_id[1:]}01", "title": ""}]

        result = discover_candidates(EVENT, fixed_links(CHANNEL_A, CHANNEL_B), search, api_key="key")
        assert [c.video_id for c in result.candidates] == ["ChannelA01", "ChannelB01"]

    def test_timeout_returns_partial_results(self) -> None:
        def search(channel_id, start, end, api_key):
            if channel_id == "@ChannelA":
                time.sleep(2)
            return [{"video_id": f"{channel_id[1:]}01", "title": ""}]

        result = discover_candidates(
            EVENT, fixed_links(DIRECT, CHANNEL_A, CHANNEL_B), search, api_key="key", timeout=0.5
        )
        assert result.timed_out
        assert [c.video_id for c in result.candidates] == ["AbCdEfGhI09", "ChannelB01"]
        assert result.errors == ["Search for channel @ChannelA timed out"]


# --- Normalizer ---


def video(video_id: str, hint: int | None = None) -> DirectVideo:
    return DirectVideo(video_id=video_id, division_hint=hint)


class TestNormalizer:
    def test_dedupe_keeps_first_and_borrows_hint(self) -> None:
        merged = dedupe_candidates([video("A"), video("B", 2), video("A", 1)])
        assert merged == [video("A", 1), video("B", 2)]

    def test_single_division_single_candidate(self) -> None:
        event = Event(id=1, sku="RE-1", name="Local", start=date(2024, 3, 1), end=date(2024, 3, 1),
                      divisions=[Division(id=9, name="Default")])
        streams = provision_streams(event, [video("OnlyVideo01")])
        assert len(streams) == 1
        assert streams[0].id == "stream-div-9-day-0"
        assert streams[0].video_id == "OnlyVideo01"
        assert streams[0].url == "https://www.youtube.com/watch?v=OnlyVideo01"
        assert streams[0].label == "Livestream"
        assert streams[0].source == "detected"

    def test_hinted_candidates_fill_their_division_by_day(self) -> None:
        streams = provision_streams(EVENT, [video("S1", 1), video("T1", 2), video("S2", 1)])
        by_id = {s.id: s.video_id for s in streams}
        assert by_id["stream-div-1-day-0"] == "S1"
        assert by_id["stream-div-1-day-1"] == "S2"
        assert by_id["stream-div-2-day-0"] == "T1"
        assert by_id["stream-div-2-day-1"] is None
        assert by_id["stream-div-3-day-0"] is None

    def test_unhinted_fill_remaining_day_zero_slots(self) -> None:
        streams = provision_streams(EVENT, [video("S1", 1), video("X1"), video("X2", 99), video("X3")])
        by_id = {s.id: s.video_id for s in streams}
        assert by_id["stream-div-1-day-0"] == "S1"
        assert by_id["stream-div-2-day-0"] == "X1"
        assert by_id["stream-div-3-day-0"] == "X2"
        assert by_id["stream-div-1-day-1"] is None
        assert "X3" not in by_id.values()

    def test_single_division_unhinted_continue_into_later_days(self) -> None:
        event = Event(id=1, sku="RE-1", name="Two days", start=date(2024, 3, 1), end=date(2024, 3, 2))
        streams = provision_streams(event, [video("Day1Video01"), video("Day2Video01")])
        assert [(s.id, s.video_id) for s in streams] == [
            ("stream-div-1-day-0", "Day1Video01"),
            ("stream-div-1-day-1", "Day2Video01"),
        ]

    def test_no_candidates_gives_empty_grid(self) -> None:
        streams = provision_streams(EVENT, [])
        assert len(streams) == len(DIVISIONS) * EVENT.day_count
        assert all(s.url == "" and s.video_id is None for s in streams)
        assert all(s.calibration_origin is None for s in streams)
        assert {(s.division_id, s.day_index) for s in streams} == {
            (d.id, day) for d in DIVISIONS for day in range(2)
        }

    def test_empty_channel_search_provisions_empty_slots(self) -> None:
        result = discover_candidates(
            EVENT, fixed_links(CHANNEL_A), lambda *args: [], api_key="key"
        )
        streams = provision_streams(EVENT, result.candidates)
        assert streams == provision_empty_streams(EVENT)
        assert not any(s.video_id for s in streams)

    def test_day_indices_within_event(self) -> None:
        streams = provision_streams(EVENT, [video(f"V{i}", 1) for i in range(5)])
        assert all(s.day_index < EVENT.day_count for s in streams)
        assert len(streams) == 6
