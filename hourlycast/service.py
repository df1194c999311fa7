"""Forecast service: wires browser, scraper, merge policy, cache and screenshot together.

The FastAPI lifespan calls start()/stop(); CLI one-shot commands use
run_once() and shut the browser down afterwards.
"""

import asyncio
import logging

from hourlycast.browser.session import BrowserSession
from hourlycast.cache.forecast_cache import ForecastCache, ForecastUnavailableError
from hourlycast.config.loader import config_hash
from hourlycast.config.schema import AppConfig
from hourlycast.display.eink import DashboardCapture
from hourlycast.ingest.day_merge import DayMergePolicy, Scraper
from hourlycast.ingest.page_scraper import PageScraper
from hourlycast.models.forecast import CacheEntry, ForecastSet

logger = logging.getLogger(__name__)


class RefreshTimeoutError(Exception):
    """Raised when a whole refresh exceeds its time budget."""


def local_base_url(config: AppConfig) -> str:
    host = config.server.host
    if host in ("0.0.0.0", "::", ""):
        host = "127.0.0.1"
    return f"http://{host}:{config.server.port}/"


class ForecastService:
    def __init__(
        self,
        config: AppConfig,
        session: BrowserSession | None = None,
        scraper: Scraper | None = None,
        capture: DashboardCapture | None = None,
    ):
        self.config = config
        self.session = session or BrowserSession(config.browser)
        self.scraper = scraper or PageScraper(config.scraper, config.location)
        self.policy = DayMergePolicy(self.scraper, config.scraper)
        self.cache = ForecastCache(
            self.refresh_forecast,
            refresh_interval=config.cache.refresh_interval_minutes * 60,
        )
        self.capture = capture
        if self.capture is None and config.display.enabled:
            self.capture = DashboardCapture(
                self.session, config.display, local_base_url(config)
            )
        self._started = False

    async def refresh_forecast(self) -> ForecastSet:
        """Build one ForecastSet, tearing the browser down if it overruns."""
        timeout = self.config.cache.refresh_timeout_seconds
        try:
            return await asyncio.wait_for(self._build(), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("Refresh exceeded %.0fs, resetting browser", timeout)
            await self.session.reset()
            raise RefreshTimeoutError(f"Refresh exceeded {timeout:.0f}s") from e

    async def _build(self) -> ForecastSet:
        browser = await self.session.acquire()
        return await self.policy.build(browser)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        if self.capture is not None:
            self.cache.add_refresh_listener(self.capture.on_refresh)
        if self.config.cache.scheduled_refresh:
            self.cache.start_scheduled_refresh()
        logger.info("Forecast service started (config %s)", config_hash(self.config))

    async def stop(self) -> None:
        await self.cache.stop()
        await self.session.shutdown()
        self._started = False
        logger.info("Forecast service stopped")

    async def run_once(self) -> CacheEntry:
        """One refresh outside the scheduler; raises if nothing could be fetched."""
        try:
            await self.cache.refresh()
            entry = self.cache.entry
            if entry is None:
                raise ForecastUnavailableError(
                    "Forecast refresh failed"
                ) from self.cache.last_error
            return entry
        finally:
            await self.session.shutdown()

