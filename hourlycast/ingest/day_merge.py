"""Day merge policy: today's scrape plus tomorrow's when the day is running out."""

import logging
from collections.abc import Iterable
from datetime import datetime, time, timedelta
from typing import Protocol

from playwright.async_api import Browser

from hourlycast.config.schema import ScraperConfig
from hourlycast.models.common import ScrapeMode
from hourlycast.models.forecast import UNKNOWN_LOCATION, ForecastHour, ForecastSet, PageScrape

logger = logging.getLogger(__name__)


class ForecastFetchError(Exception):
    """Raised when a refresh produces no forecast hours at all."""


class Scraper(Protocol):
    async def scrape(self, browser: Browser, url: str, mode: ScrapeMode) -> PageScrape: ...

    def local_now(self) -> datetime: ...


def hours_remaining_today(now: datetime) -> float:
    """Hours from ``now`` until the next local midnight."""
    midnight = datetime.combine(now.date() + timedelta(days=1), time(0), tzinfo=now.tzinfo)
    return (midnight - now).total_seconds() / 3600


def merge_hours(
    today: Iterable[ForecastHour],
    tomorrow: Iterable[ForecastHour],
    limit: int,
) -> list[ForecastHour]:
    """Today's hours plus tomorrow's unseen timestamps, ascending, truncated to ``limit``."""
    merged: list[ForecastHour] = []
    seen: set[datetime] = set()
    for hour in [*today, *tomorrow]:
        if hour.datetime in seen:
            continue
        seen.add(hour.datetime)
        merged.append(hour)
    merged.sort(key=lambda h: h.datetime)
    return merged[:limit]


class DayMergePolicy:
    def __init__(self, scraper: Scraper, config: ScraperConfig):
        self.scraper = scraper
        self.config = config

    async def build(self, browser: Browser, now: datetime | None = None) -> ForecastSet:
        """Run one refresh's scrapes and merge them into a ForecastSet.

        The secondary (tomorrow) scrape is best-effort; a failure there
        leaves a today-only result.
        """
        if now is None:
            now = self.scraper.local_now()

        primary = await self.scraper.scrape(browser, self.config.primary_url, ScrapeMode.PRIMARY)

        tomorrow: list[ForecastHour] = []
        remaining = hours_remaining_today(now)
        if remaining < self.config.second_day_threshold_hours:
            logger.info("%.1f hours left today, fetching tomorrow's forecast", remaining)
            try:
                secondary = await self.scraper.scrape(
                    browser, self.config.secondary_url, ScrapeMode.SECONDARY
                )
                tomorrow = secondary.hours
            except Exception:
                logger.exception("Tomorrow's forecast unavailable, continuing with today only")

        hours = merge_hours(primary.hours, tomorrow, self.config.max_hours)
        if not hours:
            raise ForecastFetchError("Forecast scrape produced no hours")

        return ForecastSet(location=primary.location or UNKNOWN_LOCATION, hours=tuple(hours))
