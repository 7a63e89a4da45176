"""Fetch orchestration: parallel gateway calls, normalization, cache fallback."""

from __future__ import annotations

import itertools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from ..exceptions import WeatherRequestError
from .base import WeatherGateway
from .cache import CacheStore, cache_key
from .models import (
    RETRYABLE_BY_CODE,
    CachedSnapshot,
    FetchIntent,
    GatewayRequest,
    RequestType,
    WeatherAlert,
    WeatherError,
    WeatherResult,
)
from .normalize import normalize_alerts, normalize_current, normalize_daily, normalize_hourly

_REQUEST_TYPES: tuple[RequestType, ...] = ("current", "forecast", "onecall")


class WeatherClient:
    """Turns a fetch intent into a consolidated result or a classified error.

    Upstream failures never raise out of ``fetch``; they come back as an
    ``error`` result. A connectivity failure is answered from the cache when a
    snapshot exists for the same key, flagged as ``cached``.
    """

    def __init__(
        self,
        gateway: WeatherGateway,
        cache: CacheStore,
        logger: logging.Logger,
        *,
        hourly_limit: int = 8,
        forecast_days: int = 5,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.logger = logger
        self.hourly_limit = hourly_limit
        self.forecast_days = forecast_days
        self._generations = itertools.count(1)
        self._current_generation = 0

    @property
    def current_generation(self) -> int:
        return self._current_generation

    def begin(self) -> int:
        """Start a new fetch generation; earlier generations become stale."""
        self._current_generation = next(self._generations)
        return self._current_generation

    def is_current(self, generation: int) -> bool:
        return generation == self._current_generation

    def fetch(self, intent: FetchIntent, *, generation: int | None = None) -> WeatherResult:
        if generation is None:
            generation = self.begin()

        invalid = self._validate(intent)
        if invalid is not None:
            return WeatherResult(outcome="error", error=invalid, generation=generation)

        key = cache_key(intent)
        cached = self.cache.get(key)

        with ThreadPoolExecutor(max_workers=len(_REQUEST_TYPES)) as pool:
            futures = {
                kind: pool.submit(self.gateway.request, GatewayRequest.from_intent(intent, kind))
                for kind in _REQUEST_TYPES
            }
            settled = {kind: self._settle(future) for kind, future in futures.items()}

        current_payload, current_error = settled["current"]
        forecast_payload, forecast_error = settled["forecast"]

        snapshot: CachedSnapshot | None = None
        if current_error is None and forecast_error is None:
            try:
                snapshot = CachedSnapshot(
                    current=normalize_current(current_payload),
                    daily=normalize_daily(forecast_payload, self.forecast_days),
                    hourly=normalize_hourly(forecast_payload, self.hourly_limit),
                    alerts=self._alerts(settled["onecall"], key),
                )
            except WeatherRequestError as exc:
                current_error = exc

        if snapshot is not None:
            # Cache write is fire-and-forget; a dropped write never fails the fetch.
            self.cache.put(key, snapshot)
            self.logger.info(
                "Weather fetched for %s (days=%d hourly=%d alerts=%d)",
                key,
                len(snapshot.daily),
                len(snapshot.hourly),
                len(snapshot.alerts),
                extra={"cache_key": key, "generation": generation, "outcome": "ok"},
            )
            return WeatherResult(outcome="ok", snapshot=snapshot, generation=generation)

        failure = self._primary_failure([current_error, forecast_error])
        if failure.code == "NETWORK_ERROR" and cached is not None:
            self.logger.warning(
                "Network unavailable for %s; serving snapshot cached at %s",
                key,
                cached.cached_at.isoformat() if cached.cached_at else "unknown",
                extra={"cache_key": key, "generation": generation, "outcome": "cached"},
            )
            return WeatherResult(
                outcome="cached",
                snapshot=cached,
                cached_at=cached.cached_at,
                stale=not self.cache.is_fresh(cached),
                generation=generation,
            )

        self.logger.warning(
            "Weather fetch for %s failed: %s (%s)",
            key,
            failure.message,
            failure.code,
            extra={"cache_key": key, "generation": generation, "code": failure.code},
        )
        return WeatherResult(outcome="error", error=failure, generation=generation)

    @staticmethod
    def _validate(intent: FetchIntent) -> WeatherError | None:
        if intent.is_city:
            if not intent.city.strip():
                return WeatherError.of("INVALID_INPUT", "Please enter a city name.")
            return None
        if intent.lat is None or intent.lon is None:
            return WeatherError.of("INVALID_INPUT", "City name or coordinates are required.")
        if not (-90 <= intent.lat <= 90):
            return WeatherError.of(
                "INVALID_INPUT", f"Invalid latitude {intent.lat}; expected between -90 and 90."
            )
        if not (-180 <= intent.lon <= 180):
            return WeatherError.of(
                "INVALID_INPUT", f"Invalid longitude {intent.lon}; expected between -180 and 180."
            )
        return None

    @staticmethod
    def _settle(
        future: Future[dict[str, Any]],
    ) -> tuple[dict[str, Any] | None, WeatherRequestError | None]:
        try:
            return future.result(), None
        except WeatherRequestError as exc:
            return None, exc

    def _alerts(
        self,
        settled: tuple[dict[str, Any] | None, WeatherRequestError | None],
        key: str,
    ) -> list[WeatherAlert]:
        payload, error = settled
        if error is not None:
            self.logger.info(
                "Alerts unavailable for %s (%s); continuing without",
                key,
                error.code,
                extra={"cache_key": key, "request_type": "onecall", "code": error.code},
            )
            return []
        return normalize_alerts(payload)

    @staticmethod
    def _primary_failure(errors: list[WeatherRequestError | None]) -> WeatherError:
        failures = [exc for exc in errors if exc is not None]
        # A semantic failure (not found, bad key) outranks a connectivity one.
        chosen = next((exc for exc in failures if exc.code != "NETWORK_ERROR"), failures[0])
        code = chosen.code if chosen.code in RETRYABLE_BY_CODE else "UNKNOWN"
        return WeatherError(message=chosen.message, code=code, retryable=chosen.retryable)

