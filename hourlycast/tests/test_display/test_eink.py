"""Tests for dashboard capture and monochrome conversion."""

import io
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from hourlycast.config.schema import DisplayConfig
from hourlycast.display.eink import DashboardCapture, save_bitmap, to_monochrome


def png_bytes(width: int = 20, height: int = 10) -> bytes:
    """Left half light grey, right half dark grey, one column exactly at 180."""
    img = Image.new("RGB", (width, height), (200, 200, 200))
    for x in range(width // 2, width):
        for y in range(height):
            img.putpixel((x, y), (100, 100, 100))
    for y in range(height):
        img.putpixel((0, y), (180, 180, 180))
        img.putpixel((1, y), (179, 179, 179))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestToMonochrome:
    def test_threshold(self):
        image = to_monochrome(png_bytes(), 20, 10, 180)
        assert image.mode == "1"
        assert image.size == (20, 10)
        assert image.getpixel((5, 5)) == 255
        assert image.getpixel((15, 5)) == 0

    def test_threshold_is_inclusive(self):
        image = to_monochrome(png_bytes(), 20, 10, 180)
        assert image.getpixel((0, 5)) == 255
        assert image.getpixel((1, 5)) == 0

    def test_resized_to_panel(self):
        image = to_monochrome(png_bytes(40, 20), 960, 640, 180)
        assert image.size == (960, 640)

    def test_only_black_and_white(self):
        image = to_monochrome(png_bytes(), 20, 10, 150)
        assert set(image.getdata()) <= {0, 255}


class TestSaveBitmap:
    @pytest.mark.parametrize("name", ["out.png", "out.bmp"])
    def test_writes_and_creates_dirs(self, tmp_path: Path, name: str):
        image = to_monochrome(png_bytes(), 20, 10, 180)
        path = save_bitmap(image, tmp_path / "nested" / name)
        assert path.exists()
        with Image.open(path) as saved:
            assert saved.size == (20, 10)
            assert saved.mode == "1"


@pytest.fixture
def display_config(tmp_path: Path) -> DisplayConfig:
    return DisplayConfig(
        output_path=str(tmp_path / "eink.png"),
        bitmap_path=str(tmp_path / "eink.bmp"),
        width=20,
        height=10,
        settle_delay_ms=0,
    )


def fake_session(screenshot: bytes):
    page = AsyncMock()
    page.screenshot.return_value = screenshot
    browser = AsyncMock()
    browser.new_page.return_value = page
    session = AsyncMock()
    session.acquire.return_value = browser
    return session, browser, page


class TestDashboardCapture:
    @pytest.mark.anyio
    async def test_capture_writes_png_and_bitmap(self, display_config: DisplayConfig):
        session, browser, page = fake_session(png_bytes())
        capture = DashboardCapture(session, display_config, "http://127.0.0.1:3000/")

        output = await capture.capture()

        assert output == Path(display_config.output_path)
        assert output.exists()
        assert Path(display_config.bitmap_path).exists()
        page.goto.assert_awaited_once()
        assert page.goto.await_args.args[0] == "http://127.0.0.1:3000/"
        assert browser.new_page.await_args.kwargs["viewport"] == {"width": 20, "height": 10}
        page.close.assert_awaited_once()

    @pytest.mark.anyio
    async def test_explicit_url(self, display_config: DisplayConfig):
        session, _, page = fake_session(png_bytes())
        capture = DashboardCapture(session, display_config, "http://127.0.0.1:3000/")
        await capture.capture("http://kiosk.local:8000/")
        assert page.goto.await_args.args[0] == "http://kiosk.local:8000/"

    @pytest.mark.anyio
    async def test_configured_base_url(self, display_config: DisplayConfig):
        config = display_config.model_copy(update={"base_url": "http://dash.test/"})
        session, _, page = fake_session(png_bytes())
        await DashboardCapture(session, config, "http://127.0.0.1:3000/").capture()
        assert page.goto.await_args.args[0] == "http://dash.test/"

    @pytest.mark.anyio
    async def test_no_bitmap_path(self, display_config: DisplayConfig):
        config = display_config.model_copy(update={"bitmap_path": None})
        session, _, _ = fake_session(png_bytes())
        await DashboardCapture(session, config, "http://x/").capture()
        assert Path(config.output_path).exists()
        assert not Path(display_config.bitmap_path).exists()

    @pytest.mark.anyio
    async def test_page_closed_on_render_timeout(self, display_config: DisplayConfig):
        session, _, page = fake_session(png_bytes())
        page.wait_for_function.side_effect = TimeoutError("grid never rendered")
        with pytest.raises(TimeoutError):
            await DashboardCapture(session, display_config, "http://x/").capture()
        page.close.assert_awaited_once()
        assert not Path(display_config.output_path).exists()

    @pytest.mark.anyio
    async def test_on_refresh_swallows_errors(self, display_config: DisplayConfig):
        session, _, _ = fake_session(png_bytes())
        session.acquire.side_effect = RuntimeError("browser gone")
        capture = DashboardCapture(session, display_config, "http://x/")
        await capture.on_refresh(entry=None)

    @pytest.mark.anyio
    async def test_close_failure_does_not_mask_render_error(self, display_config: DisplayConfig):
        session, _, page = fake_session(png_bytes())
        page.wait_for_function.side_effect = TimeoutError("grid never rendered")
        page.close.side_effect = RuntimeError("Target page, context or browser has been closed")
        with pytest.raises(TimeoutError):
            await DashboardCapture(session, display_config, "http://x/").capture()

    @pytest.mark.anyio
    async def test_close_failure_after_screenshot_still_saves(self, display_config: DisplayConfig):
        session, _, page = fake_session(png_bytes())
        page.close.side_effect = RuntimeError("Target closed")
        output = await DashboardCapture(session, display_config, "http://x/").capture()
        assert output.exists()
