"""Tests for the forecast service wiring."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from hourlycast.cache.forecast_cache import ForecastUnavailableError
from hourlycast.config.schema import AppConfig
from hourlycast.ingest.page_scraper import ScrapeError
from hourlycast.models.common import ScrapeMode
from hourlycast.models.forecast import ForecastSet, PageScrape
from hourlycast.service import ForecastService, RefreshTimeoutError, local_base_url


class StubSession:
    def __init__(self):
        self.acquired = 0
        self.resets = 0
        self.shutdowns = 0
        self.is_running = False

    async def acquire(self):
        self.acquired += 1
        self.is_running = True
        return object()

    async def reset(self) -> None:
        self.resets += 1
        self.is_running = False

    async def shutdown(self) -> None:
        self.shutdowns += 1
        self.is_running = False


class StubScraper:
    def __init__(self, forecast: ForecastSet, now: datetime, error: Exception | None = None, delay: float = 0):
        self.forecast = forecast
        self.now = now
        self.error = error
        self.delay = delay

    def local_now(self) -> datetime:
        return self.now

    async def scrape(self, browser, url: str, mode: ScrapeMode) -> PageScrape:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return PageScrape(mode=mode, url=url, location=self.forecast.location, hours=list(self.forecast.hours))


@pytest.fixture
def morning(local_afternoon: datetime) -> datetime:
    return local_afternoon.replace(hour=8)


class TestLocalBaseUrl:
    def test_wildcard_host(self):
        assert local_base_url(AppConfig()) == "http://127.0.0.1:3000/"

    def test_explicit_host(self):
        config = AppConfig(server={"host": "192.168.1.20", "port": 8080})
        assert local_base_url(config) == "http://192.168.1.20:8080/"


class TestRefreshForecast:
    @pytest.mark.anyio
    async def test_builds_forecast(self, offline_config, sample_forecast, morning):
        session = StubSession()
        service = ForecastService(offline_config, session=session, scraper=StubScraper(sample_forecast, morning))
        result = await service.refresh_forecast()
        assert result.location == "Test Town"
        assert len(result.hours) == len(sample_forecast.hours)
        assert session.acquired == 1

    @pytest.mark.anyio
    async def test_timeout_resets_browser(self, offline_config, sample_forecast, morning):
        config = offline_config.model_copy(
            update={"cache": offline_config.cache.model_copy(update={"refresh_timeout_seconds": 0.05})}
        )
        session = StubSession()
        scraper = StubScraper(sample_forecast, morning, delay=1.0)
        service = ForecastService(config, session=session, scraper=scraper)
        with pytest.raises(RefreshTimeoutError):
            await service.refresh_forecast()
        assert session.resets == 1

    @pytest.mark.anyio
    async def test_timeout_keeps_stale_cache(self, offline_config, sample_forecast, morning):
        config = offline_config.model_copy(
            update={"cache": offline_config.cache.model_copy(update={"refresh_timeout_seconds": 0.05})}
        )
        service = ForecastService(
            config, session=StubSession(), scraper=StubScraper(sample_forecast, morning, delay=1.0)
        )
        primed = service.cache.prime(sample_forecast)
        assert await service.cache.refresh() is False
        assert service.cache.entry is primed
        assert isinstance(service.cache.last_error, RefreshTimeoutError)


class TestRunOnce:
    @pytest.mark.anyio
    async def test_success(self, offline_config, sample_forecast, morning):
        session = StubSession()
        service = ForecastService(offline_config, session=session, scraper=StubScraper(sample_forecast, morning))
        entry = await service.run_once()
        assert entry.forecast.location == "Test Town"
        assert session.shutdowns == 1

    @pytest.mark.anyio
    async def test_failure(self, offline_config, sample_forecast, morning):
        session = StubSession()
        scraper = StubScraper(sample_forecast, morning, error=ScrapeError("blocked"))
        service = ForecastService(offline_config, session=session, scraper=scraper)
        with pytest.raises(ForecastUnavailableError) as exc_info:
            await service.run_once()
        assert isinstance(exc_info.value.__cause__, ScrapeError)
        assert session.shutdowns == 1


class TestLifecycle:
    @pytest.mark.anyio
    async def test_display_disabled_has_no_capture(self, offline_config):
        service = ForecastService(offline_config, session=StubSession())
        assert service.capture is None

    @pytest.mark.anyio
    async def test_capture_registered_on_start(self, offline_config, sample_forecast, morning):
        capture = AsyncMock()
        service = ForecastService(
            offline_config,
            session=StubSession(),
            scraper=StubScraper(sample_forecast, morning),
            capture=capture,
        )
        await service.start()
        await service.cache.refresh()
        for _ in range(10):
            if capture.on_refresh.await_count:
                break
            await asyncio.sleep(0)
        await service.stop()
        capture.on_refresh.assert_awaited_once_with(service.cache.entry)

    @pytest.mark.anyio
    async def test_scheduled_refresh(self, offline_config, sample_forecast, morning):
        config = offline_config.model_copy(
            update={"cache": offline_config.cache.model_copy(update={"scheduled_refresh": True})}
        )
        session = StubSession()
        service = ForecastService(config, session=session, scraper=StubScraper(sample_forecast, morning))
        await service.start()
        for _ in range(50):
            if service.cache.entry is not None:
                break
            await asyncio.sleep(0.01)
        await service.stop()
        assert service.cache.entry is not None
        assert session.shutdowns == 1
