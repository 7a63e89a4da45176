"""Typed settings loader for the weathercast client."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    weather_gateway_url: AnyUrl = Field(alias="WEATHER_GATEWAY_URL")
    weather_gateway_api_key: str | None = Field(
        default=None, alias="WEATHER_GATEWAY_API_KEY", repr=False
    )
    weather_timeout_seconds: float = Field(default=15.0, alias="WEATHER_TIMEOUT_SECONDS")

    storage_dir: Path = Field(default=Path("./data/storage"), alias="WEATHER_STORAGE_DIR")
    cache_ttl_seconds: int = Field(default=600, alias="WEATHER_CACHE_TTL_SECONDS")

    hourly_limit: int = Field(default=8, alias="WEATHER_HOURLY_LIMIT")
    forecast_days: int = Field(default=5, alias="WEATHER_FORECAST_DAYS")
    default_city: str = Field(default="London", alias="WEATHER_DEFAULT_CITY")
    default_unit: Literal["celsius", "fahrenheit"] = Field(
        default="celsius", alias="WEATHER_DEFAULT_UNIT"
    )

    @field_validator("weather_gateway_api_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat an empty env-string API key as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric limits and defaults."""
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("WEATHER_CACHE_TTL_SECONDS must be > 0.")
        if self.hourly_limit <= 0:
            raise ValueError("WEATHER_HOURLY_LIMIT must be > 0.")
        if self.forecast_days <= 0:
            raise ValueError("WEATHER_FORECAST_DAYS must be > 0.")
        if not self.default_city.strip():
            raise ValueError("WEATHER_DEFAULT_CITY must not be empty.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "gateway_url": str(self.weather_gateway_url),
            "api_key_configured": self.weather_gateway_api_key is not None,
            "timeout_seconds": self.weather_timeout_seconds,
            "storage_dir": str(self.storage_dir),
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "hourly_limit": self.hourly_limit,
            "forecast_days": self.forecast_days,
            "default_unit": self.default_unit,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc

    try:
        settings.storage_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Cannot create WEATHER_STORAGE_DIR {settings.storage_dir}: {exc}") from exc
    return settings
