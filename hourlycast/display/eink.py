"""Dashboard screenshot capture and monochrome conversion for e-ink panels."""

import io
import logging
from pathlib import Path

from PIL import Image

from hourlycast.browser.session import BrowserSession
from hourlycast.config.schema import DisplayConfig
from hourlycast.models.forecast import CacheEntry

logger = logging.getLogger(__name__)

_GRID_READY = (
    "() => { const grid = document.getElementById('weather-grid');"
    " return grid !== null && grid.children.length > 0; }"
)


def to_monochrome(png_bytes: bytes, width: int, height: int, threshold: int) -> Image.Image:
    """Resize to the panel size, greyscale, and threshold to pure black/white."""
    with Image.open(io.BytesIO(png_bytes)) as img:
        grey = img.convert("L").resize((width, height))
    return grey.point(lambda p: 255 if p >= threshold else 0).convert("1")


def save_bitmap(image: Image.Image, path: str | Path) -> Path:
    """Write ``image`` in the format implied by the file suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".png":
        image.save(path, optimize=True)
    else:
        image.save(path)
    return path


class DashboardCapture:
    """Screenshots the locally served dashboard after each cache refresh."""

    def __init__(self, session: BrowserSession, config: DisplayConfig, base_url: str):
        self.session = session
        self.config = config
        self.base_url = config.base_url or base_url

    async def capture(self, url: str | None = None) -> Path:
        cfg = self.config
        url = url or self.base_url
        browser = await self.session.acquire()
        page = await browser.new_page(
            viewport={"width": cfg.width, "height": cfg.height},
            device_scale_factor=1,
        )
        try:
            await page.goto(url, wait_until="networkidle", timeout=cfg.page_timeout_ms)
            await page.wait_for_function(_GRID_READY, timeout=cfg.render_timeout_ms)
            await page.wait_for_timeout(cfg.settle_delay_ms)
            png = await page.screenshot(full_page=False)
        finally:
            try:
                await page.close()
            except Exception:
                logger.debug("Failed to close screenshot page for %s", url, exc_info=True)

        image = to_monochrome(png, cfg.width, cfg.height, cfg.threshold)
        output = save_bitmap(image, cfg.output_path)
        if cfg.bitmap_path:
            save_bitmap(image, cfg.bitmap_path)
        logger.info("Saved e-ink screenshot to %s", output)
        return output

    async def on_refresh(self, entry: CacheEntry) -> None:
        try:
            await self.capture()
        except Exception:
            logger.exception("E-ink screenshot failed after refresh")
