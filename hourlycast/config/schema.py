"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

from hourlycast.config.defaults import (
    DEFAULT_FALLBACK_EXECUTABLES,
    DEFAULT_LAUNCH_ARGS,
    DEFAULT_USER_AGENT,
    PRIMARY_URL,
    SECONDARY_URL,
)


class LocationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    name: str = "Culver City, CA"
    timezone: str = "America/Los_Angeles"


class ScraperConfig(BaseModel):
    model_config = {"extra": "forbid"}

    primary_url: str = PRIMARY_URL
    secondary_url: str = SECONDARY_URL
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = Field(default=1920, ge=320)
    viewport_height: int = Field(default=1080, ge=240)
    accept_language: str = "en-US,en;q=0.9"
    navigation_timeout_ms: int = Field(default=60_000, ge=1_000)
    selector_timeout_ms: int = Field(default=30_000, ge=0)
    settle_delay_ms: int = Field(default=3_000, ge=0)
    max_hours: int = Field(default=16, ge=1, le=48)
    second_day_threshold_hours: float = Field(default=12.0, ge=0.0, le=24.0)


class BrowserConfig(BaseModel):
    model_config = {"extra": "forbid"}

    headless: bool = True
    launch_args: list[str] = list(DEFAULT_LAUNCH_ARGS)
    executable_path: str | None = None
    fallback_executables: list[str] = list(DEFAULT_FALLBACK_EXECUTABLES)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    refresh_interval_minutes: int = Field(default=60, ge=1)
    refresh_timeout_seconds: float = Field(default=180.0, gt=0.0)
    scheduled_refresh: bool = True


class ServerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)
    cors_origins: list[str] = ["*"]


class DisplayConfig(BaseModel):
    model_config = {"extra": "forbid"}

    enabled: bool = True
    base_url: str | None = None  # defaults to the local server
    output_path: str = "data/eink-preview.png"
    bitmap_path: str | None = "data/eink-preview.bmp"
    width: int = Field(default=960, ge=1)
    height: int = Field(default=640, ge=1)
    threshold: int = Field(default=180, ge=0, le=255)
    page_timeout_ms: int = Field(default=30_000, ge=1_000)
    render_timeout_ms: int = Field(default=15_000, ge=0)
    settle_delay_ms: int = Field(default=250, ge=0)


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    location: LocationConfig = LocationConfig()
    scraper: ScraperConfig = ScraperConfig()
    browser: BrowserConfig = BrowserConfig()
    cache: CacheConfig = CacheConfig()
    server: ServerConfig = ServerConfig()
    display: DisplayConfig = DisplayConfig()
