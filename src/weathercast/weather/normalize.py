"""Normalize raw gateway payloads into canonical weather entities."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from ..exceptions import WeatherRequestError
from .aggregator import aggregate_daily, first_weather
from .conditions import air_quality_category, map_condition, wind_ms_to_kmh
from .models import (
    AirQuality,
    CurrentConditions,
    ForecastDay,
    HourlyForecast,
    Location,
    WeatherAlert,
)


def _malformed(context: str, detail: str) -> WeatherRequestError:
    return WeatherRequestError(
        f"Gateway {context} payload malformed: {detail}",
        code="UNKNOWN",
        retryable=True,
    )


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _from_unix(value: Any) -> datetime | None:
    seconds = _as_float(value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def normalize_location(payload: dict[str, Any], context: str) -> Location:
    raw = payload.get("location")
    if not isinstance(raw, dict):
        raise _malformed(context, "missing 'location' object")
    lat = _as_float(raw.get("lat"))
    lon = _as_float(raw.get("lon"))
    if lat is None or lon is None:
        raise _malformed(context, "location missing coordinates")
    return Location(
        latitude=lat,
        longitude=lon,
        name=_as_str(raw.get("name")) or "Your Location",
        country=_as_str(raw.get("country")) or "",
    )


def normalize_air_quality(raw: Any) -> AirQuality | None:
    """Air quality is optional; anything unparseable is dropped."""
    if not isinstance(raw, dict):
        return None
    aqi = raw.get("aqi")
    if isinstance(aqi, bool) or not isinstance(aqi, int):
        return None
    return AirQuality(
        aqi=aqi,
        category=_as_str(raw.get("category")) or air_quality_category(aqi),
        pm2_5=_as_float(raw.get("pm2_5")),
        pm10=_as_float(raw.get("pm10")),
    )


def normalize_current(payload: dict[str, Any]) -> CurrentConditions:
    """Normalize a ``current`` gateway response."""
    location = normalize_location(payload, "current")
    weather = payload.get("weather")
    if not isinstance(weather, dict):
        raise _malformed("current", "missing 'weather' object")
    main = weather.get("main")
    if not isinstance(main, dict):
        raise _malformed("current", "missing 'weather.main' object")

    temperature = _as_float(main.get("temp"))
    if temperature is None:
        raise _malformed("current", "missing temperature")
    observed_at = _from_unix(weather.get("dt"))
    if observed_at is None:
        raise _malformed("current", "missing observation timestamp")

    wind = weather.get("wind") if isinstance(weather.get("wind"), dict) else {}
    sys_block = weather.get("sys") if isinstance(weather.get("sys"), dict) else {}
    summary = first_weather(weather)
    feels_like = _as_float(main.get("feels_like"))

    return CurrentConditions(
        location=location,
        temperature=temperature,
        feels_like=feels_like if feels_like is not None else temperature,
        humidity=_as_float(main.get("humidity")) or 0.0,
        wind_speed=wind_ms_to_kmh(_as_float(wind.get("speed")) or 0.0),
        wind_direction=_as_float(wind.get("deg")),
        pressure=_as_float(main.get("pressure")),
        visibility=_as_float(weather.get("visibility")),
        description=_as_str(summary.get("description")) or "",
        icon=_as_str(summary.get("icon")),
        condition=map_condition(summary.get("id")),
        observed_at=observed_at,
        sunrise=_from_unix(sys_block.get("sunrise")),
        sunset=_from_unix(sys_block.get("sunset")),
        air_quality=normalize_air_quality(payload.get("airPollution")),
    )


def forecast_samples(payload: dict[str, Any]) -> list[dict[str, Any]]:
    forecast = payload.get("forecast")
    if not isinstance(forecast, dict):
        raise _malformed("forecast", "missing 'forecast' object")
    samples = forecast.get("list")
    if not isinstance(samples, list):
        raise _malformed("forecast", "missing 'forecast.list' array")
    return [item for item in samples if isinstance(item, dict)]


def normalize_daily(payload: dict[str, Any], max_days: int) -> list[ForecastDay]:
    """Normalize a ``forecast`` gateway response into per-day entries."""
    samples = forecast_samples(payload)
    try:
        return aggregate_daily(samples, max_days=max_days)
    except (
        AttributeError,
        KeyError,
        OverflowError,
        OSError,
        TypeError,
        ValueError,
        ValidationError,
    ) as exc:
        raise _malformed("forecast", f"unparseable sample ({type(exc).__name__})") from exc


def normalize_hourly(payload: dict[str, Any], limit: int) -> list[HourlyForecast]:
    """First ``limit`` samples of the forecast payload, provider order kept."""
    hourly: list[HourlyForecast] = []
    for sample in forecast_samples(payload)[:limit]:
        main = sample.get("main")
        timestamp = _from_unix(sample.get("dt"))
        temperature = _as_float(main.get("temp")) if isinstance(main, dict) else None
        if timestamp is None or temperature is None:
            raise _malformed("forecast", "sample missing 'dt' or 'main.temp'")
        summary = first_weather(sample)
        wind = sample.get("wind") if isinstance(sample.get("wind"), dict) else {}
        feels_like = _as_float(main.get("feels_like"))
        pop = _as_float(sample.get("pop")) or 0.0
        hourly.append(
            HourlyForecast(
                time=timestamp,
                temperature=temperature,
                feels_like=feels_like if feels_like is not None else temperature,
                humidity=_as_float(main.get("humidity")) or 0.0,
                description=_as_str(summary.get("description")) or "",
                icon=_as_str(summary.get("icon")),
                condition=map_condition(summary.get("id")),
                pop=min(100, max(0, round(pop * 100))),
                wind_speed=wind_ms_to_kmh(_as_float(wind.get("speed")) or 0.0),
            )
        )
    return hourly


def normalize_alerts(payload: dict[str, Any]) -> list[WeatherAlert]:
    """Alerts from a ``onecall`` response.

    A gateway that fell back to a plain forecast carries no ``data`` block,
    which means no alerts. Entries repeating an (event, start) pair are dropped.
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        return []
    raw_alerts = data.get("alerts")
    if not isinstance(raw_alerts, list):
        return []

    alerts: list[WeatherAlert] = []
    seen: set[tuple[str, datetime]] = set()
    for raw in raw_alerts:
        if not isinstance(raw, dict):
            continue
        event = _as_str(raw.get("event"))
        start = _from_unix(raw.get("start"))
        end = _from_unix(raw.get("end"))
        if event is None or start is None or end is None:
            continue
        tags = raw.get("tags") if isinstance(raw.get("tags"), list) else []
        alert = WeatherAlert(
            event=event,
            sender=_as_str(raw.get("sender_name")) or "",
            start=start,
            end=end,
            description=_as_str(raw.get("description")) or "",
            tags=[str(tag) for tag in tags],
        )
        if alert.identity in seen:
            continue
        seen.add(alert.identity)
        alerts.append(alert)
    return alerts
