"""Shared test fixtures."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from hourlycast.config.schema import AppConfig
from hourlycast.display.demo import demo_forecast_set
from hourlycast.models.forecast import ForecastSet

LA = ZoneInfo("America/Los_Angeles")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment from leaking into config loading."""
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("HOURLYCAST_CONFIG", raising=False)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def default_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def offline_config(tmp_path: Path) -> AppConfig:
    """Config with no scheduler and no screenshot capture."""
    return AppConfig(
        cache={"scheduled_refresh": False},
        display={
            "enabled": False,
            "output_path": str(tmp_path / "eink.png"),
            "bitmap_path": str(tmp_path / "eink.bmp"),
        },
    )


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "scraper": {"max_hours": 12, "second_day_threshold_hours": 10.5},
        "cache": {"refresh_interval_minutes": 30},
        "server": {"port": 8080},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def hourly_page(fixtures_dir: Path) -> str:
    return (fixtures_dir / "hourly_today.html").read_text()


@pytest.fixture
def local_afternoon() -> datetime:
    """2 PM Pacific on a standard-time day (UTC-8)."""
    return datetime(2026, 3, 1, 14, 0, tzinfo=LA)


@pytest.fixture
def sample_forecast() -> ForecastSet:
    return demo_forecast_set(location="Test Town", hours=4)
