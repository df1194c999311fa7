"""Hourly forecast dashboard: FastAPI backend serving cached forecast data + static UI."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from hourlycast.cache.forecast_cache import ForecastUnavailableError
from hourlycast.config.schema import AppConfig
from hourlycast.models.common import utc_now
from hourlycast.reporting.health_checker import HealthChecker
from hourlycast.service import ForecastService

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
INDEX_HTML = STATIC_DIR / "index.html"

FETCH_ERROR = "Failed to fetch weather data from AccuWeather. Please try again later."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def create_app(config: AppConfig, service: ForecastService | None = None) -> FastAPI:
    service = service or ForecastService(config)
    checker = HealthChecker(service.cache, service.session)
    background: set[asyncio.Task] = set()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.start()
        try:
            yield
        finally:
            await service.stop()

    app = FastAPI(title="Hourly Forecast Dashboard", version="0.1.0", lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # ── Data endpoints ──────────────────────────────────────────

    @app.get("/api/hourly-forecast")
    async def get_hourly_forecast():
        """Cached forecast; waits for the first refresh when the cache is empty."""
        try:
            entry = await service.cache.get()
        except ForecastUnavailableError:
            logger.error("Serving error: no forecast data available")
            return JSONResponse({"error": FETCH_ERROR}, status_code=500)
        return entry.to_payload(utc_now())

    @app.get("/api/health")
    async def get_health():
        return checker.check().to_dict()

    @app.post("/api/refresh")
    async def trigger_refresh():
        """Start a refresh in the background unless one is already running."""
        if service.cache.refresh_in_progress:
            return {"status": "in_progress"}
        task = asyncio.create_task(service.cache.refresh())
        background.add(task)
        task.add_done_callback(background.discard)
        return {"status": "started"}

    @app.get("/eink-preview.png")
    async def get_eink_preview():
        path = Path(config.display.output_path)
        if not path.exists():
            return JSONResponse({"error": "No screenshot captured yet"}, status_code=404)
        return FileResponse(path, media_type="image/png")

    # ── Serve dashboard ─────────────────────────────────────────

    @app.get("/")
    async def serve_dashboard():
        if INDEX_HTML.exists():
            return FileResponse(INDEX_HTML, media_type="text/html")
        return HTMLResponse("<h1>Dashboard not found</h1>", status_code=404)

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app
