"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from enum import StrEnum


class ScrapeMode(StrEnum):
    PRIMARY = "primary"  # today: location + hours
    SECONDARY = "secondary"  # tomorrow: hours only


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_wire_timestamp(value: datetime) -> str:
    """Render an aware datetime as UTC ISO-8601 with a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
