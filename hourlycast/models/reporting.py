"""Reporting and operational health models."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class HealthStatus:
    cache_populated: bool
    cache_age_minutes: int | None
    hours_cached: int
    refresh_in_progress: bool
    last_refresh_at: str | None
    last_error: str | None
    browser_running: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UpstreamStatus:
    url: str
    reachable: bool
    status_code: int | None = None
    error: str | None = None
