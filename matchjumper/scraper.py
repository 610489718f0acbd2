"""RobotEvents event page scraper for webcast links."""

from __future__ import annotations

import requests
from bs4 import BeautifulSoup, Tag

from matchjumper import WebcastLink

USER_AGENT = "Mozilla/5.0 (compatible; MatchJumperBot/1.0)"
EVENT_PAGE_URL = "https://www.robotevents.com/robot-competitions/vex-robotics-competition/{sku}.html"
REQUEST_TIMEOUT = 20  # seconds

# Most specific first; a link found by an earlier selector keeps its label.
WEBCAST_SELECTORS = (
    "#webcast a",
    '.tab-content a[href*="youtube"]',
    '.tab-content a[href*="youtu.be"]',
    'a[href*="youtube.com/live"]',
    'a[href*="youtube.com/watch"]',
    'a[href*="youtu.be/"]',
    'a[href*="youtube.com/@"]',
    'a[href*="youtube.com/channel"]',
    'a[href*="youtube.com/c/"]',
)


def fetch_webcast_links(sku: str) -> list[WebcastLink]:
    """Fetch an event page and return its webcast links.

    Best effort: any failure (404, timeout, bad HTML) yields an empty list.
    """
    url = EVENT_PAGE_URL.format(sku=sku)
    headers = {"User-Agent": USER_AGENT}

    try:
        response = requests.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        print(f"  RobotEvents page unavailable for {sku}: {e}")
        return []

    return parse_webcast_links_from_html(response.text)


def parse_webcast_links_from_html(html: str) -> list[WebcastLink]:
    """Parse webcast links from raw event page HTML (used by tests)."""
    soup = BeautifulSoup(html, "html.parser")
    links: list[WebcastLink] = []
    seen: set[str] = set()

    for selector in WEBCAST_SELECTORS:
        for anchor in soup.select(selector):
            href = (anchor.get("href") or "").strip()
            if not href or href in seen:
                continue
            seen.add(href)
            links.append(WebcastLink(
                url=href,
                label_text=anchor.get_text(" ", strip=True),
                context_text=_context_text(anchor),
            ))

    return links


def _context_text(anchor: Tag) -> str:
    """Text around a link; division names usually sit in the parent element."""
    parent = anchor.parent
    if not isinstance(parent, Tag):
        return ""
    return parent.get_text(" ", strip=True)
