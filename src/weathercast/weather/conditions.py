"""Condition-code mapping and unit conversion helpers."""

from __future__ import annotations

import math
from typing import Any

from .models import Condition, TemperatureUnit

AQI_CATEGORIES = (
    "Good",
    "Moderate",
    "Unhealthy for Sensitive Groups",
    "Unhealthy",
    "Very Unhealthy",
    "Hazardous",
)

# (lower inclusive, upper exclusive, condition); first match wins.
_CODE_RANGES: tuple[tuple[int, int, Condition], ...] = (
    (200, 300, "thunderstorm"),
    (300, 400, "drizzle"),
    (500, 600, "rain"),
    (600, 700, "snow"),
    (700, 800, "mist"),
    (800, 801, "clear"),
)


def map_condition(code: Any) -> Condition:
    """Map a provider weather code onto a semantic condition category."""
    if isinstance(code, bool) or not isinstance(code, (int, float)):
        return "clouds"
    if isinstance(code, float) and not code.is_integer():
        return "clouds"
    for lower, upper, condition in _CODE_RANGES:
        if lower <= code < upper:
            return condition
    return "clouds"


def _round_half_away(value: float) -> int:
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def convert_temperature(celsius: float, unit: TemperatureUnit) -> float:
    """Convert a canonical Celsius value for display.

    Celsius passes through unchanged; fahrenheit is rounded to a whole degree.
    """
    if unit == "celsius":
        return celsius
    return _round_half_away(celsius * 9 / 5 + 32)


def format_temperature(celsius: float, unit: TemperatureUnit) -> str:
    value = convert_temperature(celsius, unit)
    suffix = "°F" if unit == "fahrenheit" else "°C"
    return f"{_round_half_away(value)}{suffix}"


def wind_ms_to_kmh(speed: float) -> float:
    """Provider wind speeds are m/s; the dashboard shows whole km/h."""
    return float(_round_half_away(speed * 3.6))


def air_quality_category(aqi: int) -> str:
    """Label for an AQI index; indexes above the scale count as the worst band."""
    if aqi < 1:
        return "Unknown"
    return AQI_CATEGORIES[min(aqi, len(AQI_CATEGORIES)) - 1]
