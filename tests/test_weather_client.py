"""Tests for fetch orchestration, cache fallback and error classification."""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from weathercast.exceptions import StorageError, WeatherRequestError
from weathercast.storage import LocalStorage
from weathercast.weather.base import WeatherGateway
from weathercast.weather.cache import CacheStore
from weathercast.weather.client import WeatherClient
from weathercast.weather.models import FetchIntent, GatewayRequest
from weathercast.weather.state import DashboardState

NOW = datetime(2026, 2, 24, 12, 30, tzinfo=UTC)


def _error(code: str, retryable: bool = True) -> WeatherRequestError:
    return WeatherRequestError(f"{code} from gateway", code=code, retryable=retryable)


class FakeGateway(WeatherGateway):
    """Returns canned payloads (or raises canned errors) per request type."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[GatewayRequest] = []
        self._lock = threading.Lock()

    def request(self, request: GatewayRequest) -> dict[str, Any]:
        with self._lock:
            self.calls.append(request)
        outcome = self.responses[request.type]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        return None


class _FullStorage(LocalStorage):
    def set_item(self, key: str, value: str) -> None:
        raise StorageError("QuotaExceeded")


def _cache(tmp_path: Path, storage: LocalStorage | None = None) -> CacheStore:
    return CacheStore(
        storage or LocalStorage(tmp_path),
        logging.getLogger("test_client_cache"),
        ttl_seconds=600,
        clock=lambda: NOW,
    )


def _client(gateway: FakeGateway, cache: CacheStore) -> WeatherClient:
    return WeatherClient(gateway, cache, logging.getLogger("test_client"))


@pytest.fixture
def ok_responses(
    current_payload: dict[str, Any],
    forecast_payload: dict[str, Any],
    onecall_payload: dict[str, Any],
) -> dict[str, Any]:
    return {"current": current_payload, "forecast": forecast_payload, "onecall": onecall_payload}


def _seed_cache(
    tmp_path: Path, ok_responses: dict[str, Any], key_city: str, cached_at: datetime
) -> CacheStore:
    cache = _cache(tmp_path)
    seeded = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city(key_city))
    assert seeded.snapshot is not None
    cache.put(seeded.snapshot.current.location.name.lower(), seeded.snapshot, now=cached_at)
    return cache


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------


def test_successful_fetch_is_ok_and_cached(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    gateway = FakeGateway(ok_responses)
    cache = _cache(tmp_path)
    result = _client(gateway, cache).fetch(FetchIntent.for_city("London"))

    assert result.outcome == "ok"
    assert result.error is None
    assert result.snapshot is not None
    assert result.snapshot.current.location.name == "London"
    assert len(result.snapshot.daily) == 5
    assert len(result.snapshot.hourly) == 8
    assert len(result.snapshot.alerts) == 1

    cached = cache.get("london")
    assert cached is not None
    assert cached.cached_at == NOW
    assert cache.is_fresh(cached)


def test_all_request_types_are_issued(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    gateway = FakeGateway(ok_responses)
    _client(gateway, _cache(tmp_path)).fetch(FetchIntent.for_city("  London "))

    assert sorted(call.type for call in gateway.calls) == ["current", "forecast", "onecall"]
    assert {call.city for call in gateway.calls} == {"London"}


def test_coordinate_fetch_uses_rounded_key(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    gateway = FakeGateway(ok_responses)
    cache = _cache(tmp_path)
    result = _client(gateway, cache).fetch(FetchIntent.for_coords(51.5074, -0.1278))

    assert result.outcome == "ok"
    assert all(call.lat == 51.5074 and call.city is None for call in gateway.calls)
    assert cache.get("51.51,-0.13") is not None


def test_temperatures_stay_celsius(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_city("London")
    )
    assert result.snapshot is not None
    assert result.snapshot.current.temperature == 14.2


def test_alerts_failure_is_absorbed(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    ok_responses["onecall"] = _error("SERVER_ERROR")
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_city("London")
    )

    assert result.outcome == "ok"
    assert result.snapshot is not None
    assert result.snapshot.alerts == []


def test_cache_write_failure_does_not_fail_fetch(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cache = _cache(tmp_path, storage=_FullStorage(tmp_path))
    result = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))
    assert result.outcome == "ok"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("city", ["", "   ", "\t\n"])
def test_blank_city_is_invalid_without_network(
    tmp_path: Path, ok_responses: dict[str, Any], city: str
) -> None:
    gateway = FakeGateway(ok_responses)
    result = _client(gateway, _cache(tmp_path)).fetch(FetchIntent.for_city(city))

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "INVALID_INPUT"
    assert result.error.retryable is False
    assert gateway.calls == []


@pytest.mark.parametrize(
    ("lat", "lon"),
    [(None, -0.12), (51.5, None), (91.0, 0.0), (0.0, -181.0)],
)
def test_bad_coordinates_are_invalid_without_network(
    tmp_path: Path, ok_responses: dict[str, Any], lat: float | None, lon: float | None
) -> None:
    gateway = FakeGateway(ok_responses)
    result = _client(gateway, _cache(tmp_path)).fetch(FetchIntent(lat=lat, lon=lon))

    assert result.error is not None
    assert result.error.code == "INVALID_INPUT"
    assert gateway.calls == []


def test_zero_coordinates_are_valid(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_coords(0.0, 0.0)
    )
    assert result.outcome == "ok"


# ---------------------------------------------------------------------------
# Failure classification and cache fallback
# ---------------------------------------------------------------------------


def test_network_error_serves_cached_snapshot(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cached_at = NOW - timedelta(minutes=45)
    cache = _seed_cache(tmp_path, ok_responses, "London", cached_at)
    offline = FakeGateway(
        {
            "current": _error("NETWORK_ERROR"),
            "forecast": _error("NETWORK_ERROR"),
            "onecall": _error("NETWORK_ERROR"),
        }
    )

    result = _client(offline, cache).fetch(FetchIntent.for_city("London"))

    assert result.outcome == "cached"
    assert result.served_from_cache is True
    assert result.cached_at == cached_at
    assert result.stale is True
    assert result.snapshot is not None
    assert result.snapshot.current.location.name == "London"
    assert result.error is None


def test_recent_cached_snapshot_is_not_stale(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cache = _seed_cache(tmp_path, ok_responses, "London", NOW - timedelta(minutes=2))
    ok_responses["forecast"] = _error("NETWORK_ERROR")

    result = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("london"))

    assert result.outcome == "cached"
    assert result.stale is False


def test_network_error_without_cache_propagates(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    ok_responses["current"] = _error("NETWORK_ERROR")
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_city("London")
    )

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "NETWORK_ERROR"
    assert result.error.retryable is True


def test_city_not_found_never_uses_cache(tmp_path: Path, ok_responses: dict[str, Any]) -> None:
    cache = _seed_cache(tmp_path, ok_responses, "London", NOW - timedelta(minutes=1))
    not_found = _error("CITY_NOT_FOUND", retryable=False)
    gateway = FakeGateway({"current": not_found, "forecast": not_found, "onecall": not_found})

    result = _client(gateway, cache).fetch(FetchIntent.for_city("Nonexistentville"))

    assert result.outcome == "error"
    assert result.snapshot is None
    assert result.error is not None
    assert result.error.code == "CITY_NOT_FOUND"
    assert result.error.retryable is False


@pytest.mark.parametrize(
    ("code", "retryable"),
    [
        ("TIMEOUT", True),
        ("SERVER_ERROR", True),
        ("RATE_LIMIT", True),
        ("API_KEY_INVALID", False),
        ("UNKNOWN", True),
    ],
)
def test_non_connectivity_failures_skip_cache(
    tmp_path: Path, ok_responses: dict[str, Any], code: str, retryable: bool
) -> None:
    cache = _seed_cache(tmp_path, ok_responses, "London", NOW - timedelta(minutes=1))
    ok_responses["current"] = _error(code, retryable=retryable)

    result = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == code
    assert result.error.retryable is retryable


def test_semantic_failure_outranks_network_failure(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cache = _seed_cache(tmp_path, ok_responses, "London", NOW - timedelta(minutes=1))
    ok_responses["current"] = _error("NETWORK_ERROR")
    ok_responses["forecast"] = _error("CITY_NOT_FOUND", retryable=False)

    result = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "CITY_NOT_FOUND"


def test_malformed_payload_is_unknown_and_skips_cache(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cache = _seed_cache(tmp_path, ok_responses, "London", NOW - timedelta(minutes=1))
    ok_responses["current"] = {"location": {"lat": 1.0, "lon": 2.0}}

    result = _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "UNKNOWN"


def test_failed_fetch_leaves_cache_untouched(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    cached_at = NOW - timedelta(hours=3)
    cache = _seed_cache(tmp_path, ok_responses, "London", cached_at)
    ok_responses["forecast"] = _error("SERVER_ERROR")

    _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))

    cached = cache.get("london")
    assert cached is not None
    assert cached.cached_at == cached_at


# ---------------------------------------------------------------------------
# Generations
# ---------------------------------------------------------------------------


def test_generations_increase_and_tag_results(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    client = _client(FakeGateway(ok_responses), _cache(tmp_path))
    first = client.fetch(FetchIntent.for_city("London"))
    second = client.fetch(FetchIntent.for_city("Paris"))

    assert second.generation > first.generation
    assert client.is_current(second.generation)
    assert not client.is_current(first.generation)


def test_superseded_result_is_not_applied(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    client = _client(FakeGateway(ok_responses), _cache(tmp_path))
    state = DashboardState()

    slow_generation = client.begin()
    state.start(slow_generation)
    fast_generation = client.begin()
    state.start(fast_generation)

    fast = client.fetch(FetchIntent.for_city("Paris"), generation=fast_generation)
    assert state.apply(fast, latest_generation=client.current_generation) is True

    slow = client.fetch(FetchIntent.for_city("London"), generation=slow_generation)
    assert state.apply(slow, latest_generation=client.current_generation) is False
    assert state.generation == fast_generation
    assert state.loading is False


@pytest.mark.parametrize(
    "corrupt",
    [
        lambda r: r["current"]["weather"].__setitem__("dt", 10**20),
        lambda r: r["forecast"]["forecast"]["list"][0].__setitem__("dt", 10**20),
        lambda r: r["forecast"]["forecast"]["list"][0].__setitem__("wind", [None]),
    ],
)
def test_unparseable_payload_values_return_unknown_error(
    tmp_path: Path, ok_responses: dict[str, Any], corrupt: Any
) -> None:
    corrupt(ok_responses)
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_city("London")
    )

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "UNKNOWN"


def test_malformed_weather_summary_still_succeeds(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    ok_responses["forecast"]["forecast"]["list"][0]["weather"] = [None]
    result = _client(FakeGateway(ok_responses), _cache(tmp_path)).fetch(
        FetchIntent.for_city("London")
    )

    assert result.outcome == "ok"
    assert result.snapshot is not None
    assert result.snapshot.daily[0].condition == "clouds"


def test_corrupt_cached_timestamp_is_ignored(
    tmp_path: Path, ok_responses: dict[str, Any]
) -> None:
    storage = LocalStorage(tmp_path)
    cache = _cache(tmp_path, storage=storage)
    _client(FakeGateway(ok_responses), cache).fetch(FetchIntent.for_city("London"))
    entry = json.loads(storage.get_item("weather_cache:london") or "{}")
    entry["cached_at"] = 10**22
    storage.set_item("weather_cache:london", json.dumps(entry))
    ok_responses["current"] = _error("NETWORK_ERROR")

    result = _client(FakeGateway(ok_responses), cache).fetch(
        FetchIntent.for_city("London")
    )

    assert result.outcome == "error"
    assert result.error is not None
    assert result.error.code == "NETWORK_ERROR"
