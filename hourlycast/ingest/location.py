"""Location display-name heuristics for the upstream hourly page."""

import re

from bs4 import BeautifulSoup

LOCATION_SELECTORS = (
    ".header-loc",
    ".header-city-link h1",
    "h1.header-loc",
    '[data-qa="locationName"]',
    ".location-name",
)

# "Culver City, CA Hourly Weather | AccuWeather"
_TITLE_RE = re.compile(
    r"^\s*(?P<name>[^|]+?)\s+(?:Hourly|Weather|Forecast)\b", re.IGNORECASE
)
_TRAILING_TEMP_RE = re.compile(r"\s*-?\d{1,3}\s*°\s*[FC]?\s*$", re.IGNORECASE)


def clean_location(text: str | None) -> str | None:
    """Collapse whitespace and strip a trailing temperature artifact like "72°"."""
    if not text:
        return None
    text = " ".join(text.split())
    text = _TRAILING_TEMP_RE.sub("", text).strip(" ,-|")
    return text or None


def _from_selectors(soup: BeautifulSoup) -> str | None:
    for selector in LOCATION_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        name = clean_location(el.get_text(" ", strip=True))
        if name:
            return name
    return None


def _from_title(soup: BeautifulSoup) -> str | None:
    if soup.title is None or not soup.title.string:
        return None
    match = _TITLE_RE.match(soup.title.string)
    if not match:
        return None
    return clean_location(match.group("name"))


def _from_header(soup: BeautifulSoup) -> str | None:
    el = soup.find("h1")
    if el is None:
        return None
    return clean_location(el.get_text(" ", strip=True))


def extract_location(soup: BeautifulSoup) -> str | None:
    """Resolve the page's location name: explicit selectors, page title, then first h1."""
    for strategy in (_from_selectors, _from_title, _from_header):
        name = strategy(soup)
        if name:
            return name
    return None
