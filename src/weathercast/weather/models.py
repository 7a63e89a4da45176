"""Typed models for normalized weather snapshots."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer, model_validator

Condition = Literal["clear", "clouds", "rain", "drizzle", "thunderstorm", "snow", "mist", "fog"]
TemperatureUnit = Literal["celsius", "fahrenheit"]
RequestType = Literal["current", "forecast", "onecall"]
ErrorCode = Literal[
    "NETWORK_ERROR",
    "CITY_NOT_FOUND",
    "RATE_LIMIT",
    "API_KEY_INVALID",
    "SERVER_ERROR",
    "TIMEOUT",
    "LOCATION_DENIED",
    "INVALID_INPUT",
    "UNKNOWN",
]
Outcome = Literal["ok", "cached", "error"]
CalendarDate = date

RETRYABLE_BY_CODE: dict[str, bool] = {
    "NETWORK_ERROR": True,
    "CITY_NOT_FOUND": False,
    "RATE_LIMIT": True,
    "API_KEY_INVALID": False,
    "SERVER_ERROR": True,
    "TIMEOUT": True,
    "LOCATION_DENIED": False,
    "INVALID_INPUT": False,
    "UNKNOWN": True,
}


def _coerce_timestamp(value: Any) -> Any:
    # Persisted entries carry epoch milliseconds.
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"timestamp {value!r} out of range") from exc
    if isinstance(value, datetime):
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)
    return value


def _to_epoch_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


Timestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    PlainSerializer(_to_epoch_ms, return_type=int, when_used="json"),
]


class Location(BaseModel):
    """Resolved location returned by the gateway's geocoding step."""

    latitude: float
    longitude: float
    name: str
    country: str = ""


class AirQuality(BaseModel):
    """Air-quality snapshot attached to current conditions."""

    aqi: int
    category: str
    pm2_5: float | None = None
    pm10: float | None = None


class CurrentConditions(BaseModel):
    """Normalized current conditions. Temperatures are Celsius, wind is km/h."""

    location: Location
    temperature: float
    feels_like: float
    humidity: float
    wind_speed: float
    wind_direction: float | None = None
    pressure: float | None = None
    visibility: float | None = None
    description: str
    icon: str | None = None
    condition: Condition
    observed_at: Timestamp
    sunrise: Timestamp | None = None
    sunset: Timestamp | None = None
    air_quality: AirQuality | None = None


class ForecastDay(BaseModel):
    """One calendar day aggregated from 3-hour samples."""

    date: CalendarDate
    temp_min: float
    temp_max: float
    humidity: float
    wind_speed: float
    description: str
    icon: str | None = None
    condition: Condition


class HourlyForecast(BaseModel):
    """One raw 3-hour forecast sample."""

    time: Timestamp
    temperature: float
    feels_like: float
    humidity: float
    description: str
    icon: str | None = None
    condition: Condition
    pop: int = Field(ge=0, le=100)
    wind_speed: float


class WeatherAlert(BaseModel):
    """Severe weather alert issued for a location."""

    event: str
    sender: str
    start: Timestamp
    end: Timestamp
    description: str = ""
    tags: list[str] = Field(default_factory=list)

    @property
    def identity(self) -> tuple[str, datetime]:
        return self.event, self.start


class CachedSnapshot(BaseModel):
    """Last successful full fetch for a cache key."""

    current: CurrentConditions
    daily: list[ForecastDay] = Field(default_factory=list)
    hourly: list[HourlyForecast] = Field(default_factory=list)
    alerts: list[WeatherAlert] = Field(default_factory=list)
    cached_at: Timestamp | None = None


class WeatherError(BaseModel):
    """Classified failure handed to the presentation layer."""

    message: str
    code: ErrorCode
    retryable: bool

    @classmethod
    def of(cls, code: ErrorCode, message: str) -> WeatherError:
        return cls(message=message, code=code, retryable=RETRYABLE_BY_CODE[code])


class WeatherResult(BaseModel):
    """Consolidated outcome of one orchestrated fetch."""

    outcome: Outcome
    snapshot: CachedSnapshot | None = None
    error: WeatherError | None = None
    cached_at: Timestamp | None = None
    stale: bool = False
    generation: int = 0

    @property
    def served_from_cache(self) -> bool:
        return self.outcome == "cached"


class FetchIntent(BaseModel):
    """A user request identified by either a city name or a coordinate pair."""

    city: str | None = None
    lat: float | None = None
    lon: float | None = None

    @classmethod
    def for_city(cls, city: str) -> FetchIntent:
        return cls(city=city)

    @classmethod
    def for_coords(cls, lat: float, lon: float) -> FetchIntent:
        return cls(lat=lat, lon=lon)

    @property
    def is_city(self) -> bool:
        return self.city is not None


class GatewayRequest(BaseModel):
    """Request body accepted by the upstream weather gateway."""

    city: str | None = None
    lat: float | None = None
    lon: float | None = None
    type: RequestType

    @model_validator(mode="after")
    def exactly_one_location(self) -> GatewayRequest:
        has_city = self.city is not None
        has_coords = self.lat is not None and self.lon is not None
        if has_city == has_coords:
            raise ValueError("Provide exactly one of city or (lat, lon).")
        return self

    @classmethod
    def from_intent(cls, intent: FetchIntent, request_type: RequestType) -> GatewayRequest:
        if intent.is_city:
            return cls(city=intent.city.strip(), type=request_type)
        return cls(lat=intent.lat, lon=intent.lon, type=request_type)
