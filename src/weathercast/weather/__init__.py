"""Weather gateway client, normalization and fetch orchestration."""

from .aggregator import aggregate_daily
from .base import WeatherGateway
from .cache import CacheStore, cache_key
from .client import WeatherClient
from .conditions import convert_temperature, format_temperature, map_condition
from .gateway import HttpWeatherGateway
from .models import (
    CachedSnapshot,
    CurrentConditions,
    FetchIntent,
    ForecastDay,
    HourlyForecast,
    Location,
    WeatherAlert,
    WeatherError,
    WeatherResult,
)
from .state import DashboardState

__all__ = [
    "CacheStore",
    "CachedSnapshot",
    "CurrentConditions",
    "DashboardState",
    "FetchIntent",
    "ForecastDay",
    "HourlyForecast",
    "HttpWeatherGateway",
    "Location",
    "WeatherAlert",
    "WeatherClient",
    "WeatherError",
    "WeatherGateway",
    "WeatherResult",
    "aggregate_daily",
    "cache_key",
    "convert_temperature",
    "format_temperature",
    "map_condition",
]
