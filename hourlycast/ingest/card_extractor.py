"""Field extraction for a single hourly forecast card.

Each field is described by an ordered tuple of ``FieldStrategy`` entries. A
strategy pairs a CSS selector with a reader that turns a matched element into
a value (or ``None`` when it cannot). Strategies are tried in order and the
first non-None value wins; when every strategy misses the field falls back to
its default. Nothing in here raises on bad markup.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from bs4 import Tag

from hourlycast.models.forecast import DEFAULT_CONDITION, CardReading

MM_PER_INCH = 25.4

TEMP_RANGE = (0, 150)
# Range used when scanning the whole card text for a degree reading
TEXT_SCAN_TEMP_RANGE = (40, 120)

_TIME_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\b\.?", re.IGNORECASE)
_DEGREE_RE = re.compile(r"(-?\d{1,3})\s*°")
_PERCENT_RE = re.compile(r"(\d{1,3})\s*%")
_AMOUNT_RE = re.compile(
    r"(\d+(?:\.\d+)?|\.\d+)\s*(millimet(?:er|re)s?|mm|inch(?:es)?|in)\b",
    re.IGNORECASE,
)
_FEELS_LIKE_RE = re.compile(r"real-?feel|feels-?like", re.IGNORECASE)


@dataclass(frozen=True)
class FieldStrategy:
    selector: str
    read: Callable[[Tag], Any]
    skip: Callable[[Tag, Tag], bool] | None = None


def element_text(el: Tag) -> str:
    return " ".join(el.get_text(" ", strip=True).split())


def first_match(card: Tag, strategies: Sequence[FieldStrategy]) -> Any:
    """Return the first non-None value produced by ``strategies`` on ``card``."""
    for strategy in strategies:
        for el in card.select(strategy.selector):
            if strategy.skip is not None and strategy.skip(el, card):
                continue
            value = strategy.read(el)
            if value is not None:
                return value
    return None


# ── Parsers ─────────────────────────────────────────────────────


def parse_hour(text: str) -> int | None:
    """Parse "3 PM" or "3:00 PM" into a 24-hour hour of day."""
    match = _TIME_RE.search(text or "")
    if not match:
        return None
    hour = int(match.group(1))
    minutes = match.group(2)
    if not 1 <= hour <= 12 or (minutes is not None and int(minutes) > 59):
        return None
    is_pm = match.group(3).lower() == "p"
    if hour == 12:
        return 12 if is_pm else 0
    return hour + 12 if is_pm else hour


def parse_degrees(text: str, low: int = TEMP_RANGE[0], high: int = TEMP_RANGE[1]) -> int | None:
    """First integer directly followed by a degree mark, if within [low, high]."""
    match = _DEGREE_RE.search(text or "")
    if not match:
        return None
    value = int(match.group(1))
    return value if low <= value <= high else None


def scan_max_degrees(
    text: str,
    low: int = TEXT_SCAN_TEMP_RANGE[0],
    high: int = TEXT_SCAN_TEMP_RANGE[1],
) -> int | None:
    """Largest degree-marked integer in ``text`` within [low, high].

    The primary reading is usually the larger of the co-displayed values.
    """
    values = [int(v) for v in _DEGREE_RE.findall(text or "")]
    in_range = [v for v in values if low <= v <= high]
    return max(in_range) if in_range else None


def parse_percent(text: str) -> int | None:
    match = _PERCENT_RE.search(text or "")
    if not match:
        return None
    return min(100, max(0, int(match.group(1))))


def parse_amount_mm(text: str) -> float | None:
    """Parse "0.05 in" / "1.2 mm" style text into millimetres."""
    match = _AMOUNT_RE.search(text or "")
    if not match:
        return None
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("in"):
        amount *= MM_PER_INCH
    return max(0.0, amount)


def parse_phrase(text: str) -> str | None:
    text = " ".join((text or "").split())
    return text or None


def in_feels_like(el: Tag, card: Tag) -> bool:
    """True if ``el`` is, or is nested under, a "feels like" container within ``card``."""
    node: Tag | None = el
    while node is not None and node is not card:
        classes = " ".join(node.get("class") or [])
        marker = f"{classes} {node.get('data-qa') or ''}"
        if _FEELS_LIKE_RE.search(marker):
            return True
        node = node.parent
    return False


def _text_reader(parse: Callable[[str], Any]) -> Callable[[Tag], Any]:
    return lambda el: parse(element_text(el))


# ── Strategy tables ─────────────────────────────────────────────

TIME_SELECTORS = (
    ".hourly-card-header .time",
    ".time",
    '[data-qa="time"]',
    ".hourly-time",
    ".date",
    "h2",
    "h3",
    "time",
)

TEMPERATURE_SELECTORS = (
    ".temp",
    ".temperature",
    '[data-qa="temperature"]',
    ".hourly-temp",
    ".temp-value",
)

PRECIP_PROBABILITY_SELECTORS = (
    ".precip",
    ".precipitation",
    '[data-qa="precipitation"]',
    ".precip-prob",
    ".precipitation-probability",
)

PRECIP_AMOUNT_SELECTORS = (
    ".precip-amount",
    ".precipitation-amount",
    '[data-qa="precipitationAmount"]',
)

PHRASE_SELECTORS = (
    ".phrase",
    ".icon-phrase",
    '[data-qa="phrase"]',
    ".condition",
    ".weather-phrase",
)

TIME_STRATEGIES = tuple(FieldStrategy(s, _text_reader(parse_hour)) for s in TIME_SELECTORS)

TEMPERATURE_STRATEGIES = tuple(
    FieldStrategy(s, _text_reader(parse_degrees), skip=in_feels_like)
    for s in TEMPERATURE_SELECTORS
)

PRECIP_PROBABILITY_STRATEGIES = tuple(
    FieldStrategy(s, _text_reader(parse_percent)) for s in PRECIP_PROBABILITY_SELECTORS
)

PRECIP_AMOUNT_STRATEGIES = tuple(
    FieldStrategy(s, _text_reader(parse_amount_mm)) for s in PRECIP_AMOUNT_SELECTORS
)

PHRASE_STRATEGIES = tuple(
    FieldStrategy(s, _text_reader(parse_phrase)) for s in PHRASE_SELECTORS
) + (FieldStrategy("img[alt]", lambda el: parse_phrase(el.get("alt", ""))),)


# ── Card extraction ─────────────────────────────────────────────


def extract_temperature(card: Tag) -> int | None:
    direct = first_match(card, TEMPERATURE_STRATEGIES)
    if direct is not None:
        return direct
    return scan_max_degrees(element_text(card))


def extract_card(card: Tag, index: int, now: datetime) -> CardReading:
    """Read every field of one forecast card.

    ``now`` is the local wall-clock time; its hour seeds the fallback
    ``now.hour + index`` when the card has no parseable time.
    """
    hour = first_match(card, TIME_STRATEGIES)
    hour_parsed = hour is not None
    if hour is None:
        hour = now.hour + index

    probability = first_match(card, PRECIP_PROBABILITY_STRATEGIES)
    amount = first_match(card, PRECIP_AMOUNT_STRATEGIES)
    phrase = first_match(card, PHRASE_STRATEGIES)

    return CardReading(
        index=index,
        hour=hour,
        hour_parsed=hour_parsed,
        temperature=extract_temperature(card),
        precipitation_probability=probability if probability is not None else 0,
        precipitation_amount_mm=amount if amount is not None else 0.0,
        condition_phrase=phrase if phrase is not None else DEFAULT_CONDITION,
    )
