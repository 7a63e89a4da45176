"""Favorite cities kept in local storage."""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, TypeAdapter, ValidationError

from .exceptions import StorageError
from .storage import LocalStorage

STORAGE_KEY = "saved_cities"


class SavedCity(BaseModel):
    id: str
    name: str
    country: str = ""
    lat: float | None = None
    lon: float | None = None


_CITY_LIST = TypeAdapter(list[SavedCity])


class SavedCitiesStore:
    """List, add and remove saved cities. Unreadable storage reads as empty."""

    def __init__(self, storage: LocalStorage, logger: logging.Logger) -> None:
        self.storage = storage
        self.logger = logger

    def load(self) -> list[SavedCity]:
        try:
            raw = self.storage.get_item(STORAGE_KEY)
        except StorageError as exc:
            self.logger.warning("Saved cities read failed: %s", exc)
            return []
        if raw is None:
            return []
        try:
            return _CITY_LIST.validate_json(raw)
        except ValidationError:
            self.logger.warning("Discarding unreadable saved cities list")
            return []

    def save(
        self,
        name: str,
        country: str = "",
        lat: float | None = None,
        lon: float | None = None,
    ) -> list[SavedCity]:
        """Add a city unless one with the same name and country already exists."""
        cities = self.load()
        if any(c.name.lower() == name.lower() and c.country == country for c in cities):
            return cities
        city = SavedCity(id=uuid.uuid4().hex[:12], name=name, country=country, lat=lat, lon=lon)
        updated = [*cities, city]
        self._write(updated)
        return updated

    def remove(self, city_id: str) -> list[SavedCity]:
        updated = [c for c in self.load() if c.id != city_id]
        self._write(updated)
        return updated

    def _write(self, cities: list[SavedCity]) -> None:
        self.storage.set_item(STORAGE_KEY, _CITY_LIST.dump_json(cities).decode("utf-8"))
