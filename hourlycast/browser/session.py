"""Browser session: one lazily launched, process-wide Chromium instance."""

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from hourlycast.config.schema import BrowserConfig

logger = logging.getLogger(__name__)


class BrowserLaunchError(Exception):
    """Raised when no browser could be launched."""


class BrowserNotFoundError(BrowserLaunchError):
    """Raised when the bundled browser failed and no system executable exists."""


def find_executable(candidates: list[str]) -> str | None:
    """First existing, executable path in ``candidates``."""
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
    return None


class BrowserSession:
    """Owns the Playwright driver and a single shared Browser.

    Only this class launches or closes the browser; scrapers and the
    screenshot capture borrow it through acquire().
    """

    def __init__(
        self,
        config: BrowserConfig,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.config = config
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it on first use."""
        async with self._lock:
            if self._browser is not None and not self._browser.is_connected():
                logger.warning("Browser disconnected, relaunching")
                await self._close_unlocked()
            if self._browser is None:
                self._browser = await self._launch()
            return self._browser

    async def _launch(self) -> Browser:
        if self._playwright is None:
            self._playwright = await self._playwright_factory().start()
        chromium = self._playwright.chromium
        options = {"headless": self.config.headless, "args": list(self.config.launch_args)}

        if self.config.executable_path:
            logger.info("Launching browser from %s", self.config.executable_path)
            try:
                return await chromium.launch(
                    executable_path=self.config.executable_path, **options
                )
            except PlaywrightError as e:
                raise BrowserLaunchError(
                    f"Failed to launch configured browser {self.config.executable_path}: {e}"
                ) from e

        try:
            browser = await chromium.launch(**options)
            logger.info("Launched bundled Chromium")
            return browser
        except PlaywrightError as e:
            logger.warning("Bundled Chromium failed to launch: %s", e)
            bundled_error = e

        executable = find_executable(self.config.fallback_executables)
        if executable is None:
            raise BrowserNotFoundError(
                "No browser executable available: bundled Chromium failed "
                f"({bundled_error}) and none of {self.config.fallback_executables} exist"
            ) from bundled_error

        logger.info("Retrying launch with system browser %s", executable)
        try:
            return await chromium.launch(executable_path=executable, **options)
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Failed to launch {executable}: {e}") from e

    async def reset(self) -> None:
        """Tear the browser down so the next acquire() starts a fresh one."""
        async with self._lock:
            await self._close_unlocked(stop_driver=False)

    async def shutdown(self) -> None:
        async with self._lock:
            await self._close_unlocked()

    async def _close_unlocked(self, stop_driver: bool = True) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                logger.debug("Failed to close browser", exc_info=True)
            finally:
                self._browser = None
            logger.info("Browser closed")
        if stop_driver and self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError:
                logger.debug("Failed to stop Playwright driver", exc_info=True)
            finally:
                self._playwright = None
