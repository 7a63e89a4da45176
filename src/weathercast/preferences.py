"""Persisted display preferences: temperature unit and last searched city."""

from __future__ import annotations

import logging
from typing import get_args

from pydantic import BaseModel

from .exceptions import StorageError
from .storage import LocalStorage
from .weather.models import TemperatureUnit

UNIT_KEY = "preferences:unit"
LAST_CITY_KEY = "preferences:last_city"


class Preferences(BaseModel):
    """Explicit preference value passed alongside the weather client."""

    unit: TemperatureUnit = "celsius"
    last_city: str | None = None


class PreferencesStore:
    """Loads and saves each preference under its own storage key."""

    def __init__(
        self,
        storage: LocalStorage,
        logger: logging.Logger,
        default_unit: TemperatureUnit = "celsius",
    ) -> None:
        self.storage = storage
        self.logger = logger
        self.default_unit = default_unit

    def load(self) -> Preferences:
        return Preferences(unit=self._load_unit(), last_city=self._load_last_city())

    def save_unit(self, unit: TemperatureUnit) -> None:
        if unit not in get_args(TemperatureUnit):
            raise ValueError(f"Unsupported temperature unit {unit!r}.")
        self._write(UNIT_KEY, unit)

    def save_last_city(self, city: str) -> None:
        cleaned = city.strip()
        if cleaned:
            self._write(LAST_CITY_KEY, cleaned)

    def _load_unit(self) -> TemperatureUnit:
        value = self._read(UNIT_KEY)
        if value in get_args(TemperatureUnit):
            return value  # type: ignore[return-value]
        return self.default_unit

    def _load_last_city(self) -> str | None:
        value = self._read(LAST_CITY_KEY)
        if value is None or not value.strip():
            return None
        return value.strip()

    def _read(self, key: str) -> str | None:
        try:
            return self.storage.get_item(key)
        except StorageError as exc:
            self.logger.warning("Preference read failed: %s", exc)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self.storage.set_item(key, value)
        except StorageError as exc:
            self.logger.warning("Preference write failed: %s", exc)
