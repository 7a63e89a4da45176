"""Gateway payload fixtures shaped like the edge function's responses."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

BASE = datetime(2026, 2, 24, 12, 0, tzinfo=UTC)


def _unix(moment: datetime) -> int:
    return int(moment.timestamp())


def _location(name: str = "London", country: str = "GB") -> dict[str, Any]:
    return {"lat": 51.5074, "lon": -0.1278, "name": name, "country": country}


@pytest.fixture
def current_payload() -> dict[str, Any]:
    return {
        "location": _location(),
        "weather": {
            "dt": _unix(BASE),
            "main": {"temp": 14.2, "feels_like": 13.1, "humidity": 72, "pressure": 1012},
            "wind": {"speed": 4.1, "deg": 230},
            "visibility": 10000,
            "sys": {"sunrise": _unix(BASE.replace(hour=7)), "sunset": _unix(BASE.replace(hour=17))},
            "weather": [{"id": 803, "description": "broken clouds", "icon": "04d"}],
        },
        "airPollution": {"aqi": 2, "category": "Moderate", "pm2_5": 8.4, "pm10": 12.0},
    }


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    samples = []
    # 40 samples, 3 hours apart, starting at noon: six calendar dates.
    for index in range(40):
        moment = BASE + timedelta(hours=3 * index)
        samples.append(
            {
                "dt": _unix(moment),
                "main": {
                    "temp": 10.0 + index % 4,
                    "feels_like": 9.0 + index % 4,
                    "temp_min": 8.0 + index % 4,
                    "temp_max": 12.0 + index % 4,
                    "humidity": 60 + index % 10,
                },
                "wind": {"speed": 3.0},
                "weather": [{"id": 500, "description": "light rain", "icon": "10d"}],
                "pop": 0.35,
            }
        )
    return {"location": _location(), "forecast": {"list": samples}}


@pytest.fixture
def onecall_payload() -> dict[str, Any]:
    return {
        "location": _location(),
        "data": {
            "alerts": [
                {
                    "sender_name": "Met Office",
                    "event": "Yellow wind warning",
                    "start": _unix(BASE),
                    "end": _unix(BASE + timedelta(hours=18)),
                    "description": "Strong winds may cause travel disruption.",
                    "tags": ["Wind"],
                }
            ]
        },
        "hasAlerts": True,
    }
