"""Hourly forecast data models."""

from dataclasses import dataclass
from datetime import datetime

from hourlycast.models.common import ScrapeMode, to_wire_timestamp

UNKNOWN_LOCATION = "Unknown Location"
DEFAULT_CONDITION = "Clear"


@dataclass(frozen=True)
class CardReading:
    """Best-effort fields read from a single forecast card.

    ``hour`` is a local hour-of-day; when no time text parsed it is
    synthesized as ``current_hour + index`` and may exceed 23.
    """

    index: int
    hour: int
    hour_parsed: bool
    temperature: int | None
    precipitation_probability: int = 0
    precipitation_amount_mm: float = 0.0
    condition_phrase: str = DEFAULT_CONDITION

    @property
    def is_daylight(self) -> bool:
        return 6 <= self.hour % 24 < 20


@dataclass(frozen=True)
class ForecastHour:
    datetime: datetime  # aware, UTC
    temperature: int
    precipitation_probability: int
    precipitation_amount: float  # millimetres
    condition_phrase: str
    is_daylight: bool
    temperature_unit: str = "F"
    precipitation_unit: str = "mm"

    def to_dict(self) -> dict:
        return {
            "datetime": to_wire_timestamp(self.datetime),
            "temperature": self.temperature,
            "temperatureUnit": self.temperature_unit,
            "precipitationProbability": self.precipitation_probability,
            "precipitationAmount": self.precipitation_amount,
            "precipitationUnit": self.precipitation_unit,
            "conditionPhrase": self.condition_phrase,
            "isDaylight": self.is_daylight,
        }


@dataclass(frozen=True)
class PageScrape:
    mode: ScrapeMode
    url: str
    location: str | None
    hours: list[ForecastHour]


@dataclass(frozen=True)
class ForecastSet:
    location: str
    hours: tuple[ForecastHour, ...]

    def __post_init__(self) -> None:
        if not self.hours:
            raise ValueError("ForecastSet requires at least one hour")


@dataclass(frozen=True)
class CacheEntry:
    forecast: ForecastSet
    fetched_at: datetime  # aware, UTC

    def age_minutes(self, now: datetime) -> int:
        return max(0, int((now - self.fetched_at).total_seconds() // 60))

    def to_payload(self, now: datetime) -> dict:
        return {
            "location": self.forecast.location,
            "forecast": [h.to_dict() for h in self.forecast.hours],
            "cachedAt": to_wire_timestamp(self.fetched_at),
            "cacheAgeMinutes": self.age_minutes(now),
        }
