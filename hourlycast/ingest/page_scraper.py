"""Page scraper: loads one upstream hourly page and turns its cards into ForecastHours."""

import logging
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Browser
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from hourlycast.config.schema import LocationConfig, ScraperConfig
from hourlycast.ingest.card_extractor import extract_card
from hourlycast.ingest.location import extract_location
from hourlycast.models.common import ScrapeMode
from hourlycast.models.forecast import CardReading, ForecastHour, PageScrape

logger = logging.getLogger(__name__)

CARD_SELECTORS = (
    ".hourly-card",
    '[data-qa="hourlyCard"]',
    ".hourly-list-item",
    ".hourly-wrapper .card",
    ".accordion-item.hour",
)

_CONTAINER_PREDICATE = "(selectors) => selectors.some((s) => document.querySelector(s) !== null)"


class ScrapeError(Exception):
    """Raised when a page yields no usable forecast records."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


def find_cards(soup: BeautifulSoup, limit: int) -> list[Tag]:
    """First non-empty match from CARD_SELECTORS, capped at ``limit``."""
    for selector in CARD_SELECTORS:
        cards = soup.select(selector)
        if cards:
            return cards[:limit]
    return []


def card_datetime(reading: CardReading, mode: ScrapeMode, now: datetime) -> datetime:
    """Synthesize the UTC instant for a card from its local hour.

    Primary cards sit on today's date, bumped a day when a parsed hour is
    already behind the current hour (the list wrapped past midnight).
    Secondary cards sit on tomorrow's date.
    """
    tz = now.tzinfo
    base: date = now.date()
    if mode is ScrapeMode.SECONDARY:
        base += timedelta(days=1)
    elif reading.hour < now.hour:
        base += timedelta(days=1)

    days, hour = divmod(reading.hour, 24)
    local = datetime.combine(base + timedelta(days=days), time(hour), tzinfo=tz)
    return local.astimezone(UTC)


def to_forecast_hour(reading: CardReading, mode: ScrapeMode, now: datetime) -> ForecastHour | None:
    if reading.temperature is None:
        return None
    return ForecastHour(
        datetime=card_datetime(reading, mode, now),
        temperature=reading.temperature,
        precipitation_probability=reading.precipitation_probability,
        precipitation_amount=reading.precipitation_amount_mm,
        condition_phrase=reading.condition_phrase,
        is_daylight=reading.is_daylight,
    )


def parse_forecast_page(
    html: str,
    mode: ScrapeMode,
    now: datetime,
    max_cards: int = 16,
    url: str | None = None,
) -> PageScrape:
    """Extract location (primary mode only) and hourly records from rendered HTML.

    Cards without a temperature are dropped. Raises ScrapeError when nothing
    usable is left.
    """
    soup = BeautifulSoup(html, "html.parser")
    location = extract_location(soup) if mode is ScrapeMode.PRIMARY else None

    cards = find_cards(soup, max_cards)
    if not cards:
        raise ScrapeError("No forecast cards found on page", url)

    hours: list[ForecastHour] = []
    for index, card in enumerate(cards):
        hour = to_forecast_hour(extract_card(card, index, now), mode, now)
        if hour is not None:
            hours.append(hour)

    dropped = len(cards) - len(hours)
    if dropped:
        logger.info("Dropped %d of %d cards without a temperature", dropped, len(cards))
    if not hours:
        raise ScrapeError(f"None of {len(cards)} forecast cards had a temperature", url)

    return PageScrape(mode=mode, url=url or "", location=location, hours=hours)


class PageScraper:
    """Drives one browser page per call against an upstream hourly URL."""

    def __init__(self, config: ScraperConfig, location: LocationConfig):
        self.config = config
        self.tz = ZoneInfo(location.timezone)

    def local_now(self) -> datetime:
        return datetime.now(self.tz)

    async def scrape(self, browser: Browser, url: str, mode: ScrapeMode) -> PageScrape:
        cfg = self.config
        page = await browser.new_page(
            user_agent=cfg.user_agent,
            viewport={"width": cfg.viewport_width, "height": cfg.viewport_height},
            locale="en-US",
            extra_http_headers={"Accept-Language": cfg.accept_language},
        )
        try:
            logger.info("Scraping %s (%s)", url, mode)
            await page.goto(url, wait_until="networkidle", timeout=cfg.navigation_timeout_ms)
            await page.wait_for_timeout(cfg.settle_delay_ms)

            try:
                await page.wait_for_function(
                    _CONTAINER_PREDICATE,
                    arg=list(CARD_SELECTORS),
                    timeout=cfg.selector_timeout_ms,
                )
            except PlaywrightTimeoutError:
                logger.warning(
                    "Forecast container did not appear within %dms on %s, extracting anyway",
                    cfg.selector_timeout_ms, url,
                )

            html = await page.content()
            result = parse_forecast_page(
                html, mode, self.local_now(), max_cards=cfg.max_hours, url=url
            )
            logger.info(
                "Scraped %d hours from %s (location=%s)",
                len(result.hours), url, result.location,
            )
            return result
        finally:
            try:
                await page.close()
            except Exception:
                logger.debug("Failed to close page for %s", url, exc_info=True)
