"""Group 3-hour forecast samples into calendar-day summaries."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from typing import Any

from .conditions import map_condition, wind_ms_to_kmh
from .models import ForecastDay

DEFAULT_MAX_DAYS = 5


def first_weather(sample: Mapping[str, Any]) -> Mapping[str, Any]:
    """First entry of a sample's ``weather`` list, or an empty mapping."""
    weather = sample.get("weather")
    if isinstance(weather, list) and weather and isinstance(weather[0], Mapping):
        return weather[0]
    return {}


def sample_date(timestamp: int | float) -> date:
    """UTC calendar date for a Unix timestamp in seconds."""
    return datetime.fromtimestamp(timestamp, tz=UTC).date()


def aggregate_daily(
    samples: Iterable[Mapping[str, Any]],
    max_days: int = DEFAULT_MAX_DAYS,
) -> list[ForecastDay]:
    """Bucket raw provider samples by UTC date.

    The first sample of a date seeds the entry; later samples of the same date
    only widen ``temp_min``/``temp_max``. Entries keep first-seen order and are
    truncated to ``max_days``; fewer dates yield fewer entries.
    """
    days: dict[date, ForecastDay] = {}
    for sample in samples:
        day_key = sample_date(sample["dt"])
        main = sample["main"]
        existing = days.get(day_key)
        if existing is None:
            weather = first_weather(sample)
            days[day_key] = ForecastDay(
                date=day_key,
                temp_min=float(main["temp_min"]),
                temp_max=float(main["temp_max"]),
                humidity=float(main.get("humidity", 0)),
                wind_speed=wind_ms_to_kmh(float((sample.get("wind") or {}).get("speed", 0))),
                description=str(weather.get("description", "")),
                icon=weather.get("icon"),
                condition=map_condition(weather.get("id")),
            )
            continue
        existing.temp_min = min(existing.temp_min, float(main["temp_min"]))
        existing.temp_max = max(existing.temp_max, float(main["temp_max"]))

    return list(days.values())[:max_days]
