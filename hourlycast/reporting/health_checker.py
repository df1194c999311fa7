"""Health checker: cache freshness, refresh state, browser and upstream reachability."""

import httpx

from hourlycast.browser.session import BrowserSession
from hourlycast.cache.forecast_cache import ForecastCache
from hourlycast.config.schema import ScraperConfig
from hourlycast.models.common import to_wire_timestamp, utc_now
from hourlycast.models.reporting import HealthStatus, UpstreamStatus


class HealthChecker:
    def __init__(self, cache: ForecastCache, session: BrowserSession):
        self.cache = cache
        self.session = session

    def check(self) -> HealthStatus:
        entry = self.cache.entry
        error = self.cache.last_error
        refreshed = self.cache.last_refresh_at
        return HealthStatus(
            cache_populated=entry is not None,
            cache_age_minutes=entry.age_minutes(utc_now()) if entry else None,
            hours_cached=len(entry.forecast.hours) if entry else 0,
            refresh_in_progress=self.cache.refresh_in_progress,
            last_refresh_at=to_wire_timestamp(refreshed) if refreshed else None,
            last_error=str(error) if error else None,
            browser_running=self.session.is_running,
        )


def check_upstream(config: ScraperConfig, timeout: float = 10.0) -> list[UpstreamStatus]:
    """Plain HTTP reachability of the upstream forecast pages."""
    results = []
    for url in (config.primary_url, config.secondary_url):
        try:
            resp = httpx.get(
                url,
                headers={
                    "User-Agent": config.user_agent,
                    "Accept-Language": config.accept_language,
                },
                timeout=timeout,
                follow_redirects=True,
            )
            results.append(
                UpstreamStatus(url=url, reachable=resp.status_code < 400, status_code=resp.status_code)
            )
        except httpx.HTTPError as e:
            results.append(UpstreamStatus(url=url, reachable=False, error=str(e)))
    return results
