"""Offline cache of the last successful weather snapshot per location."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from pydantic import ValidationError

from ..exceptions import StorageError
from ..storage import LocalStorage
from .models import CachedSnapshot, FetchIntent

CACHE_PREFIX = "weather_cache:"
DEFAULT_TTL_SECONDS = 600

_TWO_PLACES = Decimal("0.01")


def _round_coordinate(value: float) -> str:
    # Decimal of the literal repr so 51.505 rounds up like it reads.
    rounded = Decimal(repr(float(value))).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.2f}"


def cache_key(intent: FetchIntent) -> str:
    """Deterministic cache key for a fetch intent.

    City names are trimmed and lowercased; coordinates are rounded to two
    decimals so nearby requests share an entry.
    """
    if intent.is_city:
        return intent.city.strip().lower()
    if intent.lat is None or intent.lon is None:
        raise ValueError("Coordinate intent requires both lat and lon.")
    return f"{_round_coordinate(intent.lat)},{_round_coordinate(intent.lon)}"


class CacheStore:
    """Best-effort snapshot cache with a freshness window.

    Expired entries are still returned by ``get``: the caller decides whether a
    stale snapshot beats having no data at all.
    """

    def __init__(
        self,
        storage: LocalStorage,
        logger: logging.Logger,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage = storage
        self.logger = logger
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))

    def get(self, key: str) -> CachedSnapshot | None:
        try:
            raw = self.storage.get_item(CACHE_PREFIX + key)
        except StorageError as exc:
            self.logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            snapshot = CachedSnapshot.model_validate_json(raw)
        except ValidationError:
            self.logger.warning("Discarding unreadable cache entry for %s", key)
            return None
        if snapshot.cached_at is None:
            return None
        return snapshot

    def put(self, key: str, snapshot: CachedSnapshot, *, now: datetime | None = None) -> bool:
        """Store ``snapshot`` stamped with the current time.

        Returns False when storage refuses the write; callers are free to
        ignore it.
        """
        stamped = snapshot.model_copy(update={"cached_at": now or self._clock()})
        try:
            self.storage.set_item(CACHE_PREFIX + key, stamped.model_dump_json())
        except StorageError as exc:
            self.logger.warning("Cache write dropped for %s: %s", key, exc)
            return False
        return True

    def is_fresh(self, snapshot: CachedSnapshot, *, now: datetime | None = None) -> bool:
        if snapshot.cached_at is None:
            return False
        return (now or self._clock()) - snapshot.cached_at < self.ttl
