"""In-memory forecast cache with single-flight refresh and stale fallback."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime

from hourlycast.models.common import utc_now
from hourlycast.models.forecast import CacheEntry, ForecastSet

logger = logging.getLogger(__name__)

RefreshListener = Callable[[CacheEntry], Awaitable[None]]


class ForecastUnavailableError(Exception):
    """Raised by get() when the cache is empty after a refresh attempt."""


class ForecastCache:
    """Holds the last good ForecastSet and serializes refreshes.

    At most one refresh runs at a time. Callers arriving while one is in
    flight share its completion future instead of starting their own.
    """

    def __init__(
        self,
        build: Callable[[], Awaitable[ForecastSet]],
        refresh_interval: float = 3600.0,
    ):
        self._build = build
        self.refresh_interval = refresh_interval
        self._entry: CacheEntry | None = None
        self._inflight: asyncio.Future[None] | None = None
        self._last_error: BaseException | None = None
        self._last_refresh_at: datetime | None = None
        self._listeners: list[RefreshListener] = []
        self._background: set[asyncio.Task] = set()
        self._schedule_task: asyncio.Task | None = None

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    @property
    def refresh_in_progress(self) -> bool:
        return self._inflight is not None

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    @property
    def last_refresh_at(self) -> datetime | None:
        return self._last_refresh_at

    def add_refresh_listener(self, listener: RefreshListener) -> None:
        self._listeners.append(listener)

    def prime(self, forecast: ForecastSet, fetched_at: datetime | None = None) -> CacheEntry:
        """Install an entry without scraping."""
        self._entry = CacheEntry(forecast=forecast, fetched_at=fetched_at or utc_now())
        return self._entry

    async def get(self) -> CacheEntry:
        if self._entry is not None:
            return self._entry

        if self._inflight is not None:
            await asyncio.shield(self._inflight)
        else:
            await self.refresh()

        if self._entry is None:
            raise ForecastUnavailableError("No forecast data available") from self._last_error
        return self._entry

    async def refresh(self) -> bool:
        """Run one refresh unless one is already in flight.

        Returns True when a new entry was stored. Failures are logged and the
        previous entry, if any, stays in place.
        """
        if self._inflight is not None:
            logger.info("Refresh already in progress, skipping")
            return False

        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._inflight = done
        started = time.monotonic()
        try:
            forecast = await self._build()
            entry = CacheEntry(forecast=forecast, fetched_at=utc_now())
            self._entry = entry
            self._last_error = None
            self._last_refresh_at = entry.fetched_at
            logger.info(
                "Forecast refreshed: %d hours for %s in %.1fs",
                len(forecast.hours), forecast.location, time.monotonic() - started,
            )
        except Exception as e:
            self._last_error = e
            if self._entry is not None:
                logger.exception("Forecast refresh failed, serving cached data")
            else:
                logger.exception("Forecast refresh failed with no cached data")
            return False
        finally:
            self._inflight = None
            if not done.done():
                done.set_result(None)

        self._notify(entry)
        return True

    def _notify(self, entry: CacheEntry) -> None:
        for listener in self._listeners:
            task = asyncio.create_task(self._run_listener(listener, entry))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def _run_listener(self, listener: RefreshListener, entry: CacheEntry) -> None:
        try:
            await listener(entry)
        except Exception:
            logger.exception("Refresh listener %r failed", listener)

    # ── Scheduling ──────────────────────────────────────────────

    def start_scheduled_refresh(self) -> asyncio.Task:
        """Refresh now, then every ``refresh_interval`` seconds until stop()."""
        if self._schedule_task is None or self._schedule_task.done():
            self._schedule_task = asyncio.create_task(self._schedule_loop())
        return self._schedule_task

    async def _schedule_loop(self) -> None:
        logger.info("Scheduled refresh every %.0fs", self.refresh_interval)
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            await self.refresh()
            # next_at tracks scheduled start times, not completion times
            next_at += self.refresh_interval
            now = loop.time()
            if next_at < now:
                skipped = int((now - next_at) // self.refresh_interval) + 1
                logger.warning("Refresh overran %d scheduled slot(s)", skipped)
                next_at += skipped * self.refresh_interval
            await asyncio.sleep(max(0.0, next_at - now))

    async def stop(self) -> None:
        tasks = list(self._background)
        if self._schedule_task is not None:
            tasks.append(self._schedule_task)
            self._schedule_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
