"""Deterministic demo forecast so e-ink previews are stable across runs."""

from datetime import UTC, datetime, timedelta

from hourlycast.models.forecast import ForecastHour, ForecastSet

DEMO_BASE = datetime(2026, 1, 15, 8, 0, tzinfo=UTC)

DEMO_PHRASES = (
    "Clear",
    "Partly cloudy",
    "Cloudy",
    "Windy",
    "Light rain",
    "Rain",
    "Showers",
    "Fog",
)


def demo_forecast_set(
    location: str = "Culver City (Demo)",
    base: datetime = DEMO_BASE,
    hours: int = 12,
) -> ForecastSet:
    records = []
    for i in range(hours):
        at = base + timedelta(hours=i)
        probability = min(100, (i * 9) % 101)
        amount = 0.0 if probability == 0 else round(probability / 100 * 3.0, 1)
        records.append(
            ForecastHour(
                datetime=at,
                temperature=58 + (i % 6) * 3,
                precipitation_probability=probability,
                precipitation_amount=amount,
                condition_phrase=DEMO_PHRASES[i % len(DEMO_PHRASES)],
                is_daylight=7 <= at.hour < 19,
            )
        )
    return ForecastSet(location=location, hours=tuple(records))
