"""Command-line weather dashboard."""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .dashboard import render_state
from .exceptions import ConfigError, StorageError
from .log_setup import setup_logger
from .preferences import Preferences, PreferencesStore
from .saved_cities import SavedCitiesStore
from .storage import LocalStorage
from .weather.cache import CacheStore
from .weather.client import WeatherClient
from .weather.gateway import HttpWeatherGateway
from .weather.models import FetchIntent
from .weather.state import DashboardState

EXIT_OK = 0
EXIT_CACHED = 1
EXIT_CONFIG = 2
EXIT_WEATHER_ERROR = 4


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse weather dashboard CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Show current conditions, forecast and alerts for a city."
    )
    parser.add_argument(
        "city",
        nargs="?",
        default=None,
        help="City to look up. Defaults to the last searched city.",
    )
    parser.add_argument("--lat", type=float, default=None, help="Latitude instead of a city.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude instead of a city.")
    parser.add_argument(
        "--units",
        choices=["celsius", "fahrenheit"],
        default=None,
        help="Temperature unit; the choice is remembered.",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Add the displayed location to saved cities.",
    )
    parser.add_argument("--saved", action="store_true", help="List saved cities and exit.")
    parser.add_argument(
        "--remove",
        metavar="ID",
        default=None,
        help="Remove a saved city by id and exit.",
    )
    return parser.parse_args(argv)


def resolve_intent(
    args: argparse.Namespace, settings: Settings, preferences: Preferences
) -> FetchIntent:
    """Coordinates win over a city; no city falls back to the last search, then the default."""
    if args.lat is not None or args.lon is not None:
        if args.city is not None:
            raise ValueError("Use either a city or --lat/--lon, not both.")
        return FetchIntent(lat=args.lat, lon=args.lon)
    if args.city is not None:
        return FetchIntent.for_city(args.city)
    return FetchIntent.for_city(preferences.last_city or settings.default_city)


def _print_saved(console: Console, saved: SavedCitiesStore) -> None:
    cities = saved.load()
    if not cities:
        console.print("No saved cities.")
        return
    table = Table(title="Saved Cities")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Country")
    for city in cities:
        table.add_row(city.id, city.name, city.country or "-")
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    """Run one dashboard fetch and render it."""
    args = parse_args(argv)
    logger = setup_logger()
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return EXIT_CONFIG
    logger.debug("Settings loaded: %s", settings.safe_summary())

    storage = LocalStorage(settings.storage_dir)
    preferences_store = PreferencesStore(storage, logger, default_unit=settings.default_unit)
    saved = SavedCitiesStore(storage, logger)

    try:
        if args.remove is not None:
            saved.remove(args.remove)
            _print_saved(console, saved)
            return EXIT_OK
        if args.saved:
            _print_saved(console, saved)
            return EXIT_OK
    except StorageError as exc:
        logger.error("Saved cities update failed: %s", exc)
        return EXIT_CONFIG

    if args.units is not None:
        preferences_store.save_unit(args.units)
    preferences = preferences_store.load()
    unit = args.units or preferences.unit

    try:
        intent = resolve_intent(args, settings, preferences)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_CONFIG
    if intent.is_city and intent.city.strip():
        preferences_store.save_last_city(intent.city)

    cache = CacheStore(storage, logger, ttl_seconds=settings.cache_ttl_seconds)
    state = DashboardState()
    with HttpWeatherGateway(settings=settings, logger=logger) as gateway:
        client = WeatherClient(
            gateway,
            cache,
            logger,
            hourly_limit=settings.hourly_limit,
            forecast_days=settings.forecast_days,
        )
        generation = client.begin()
        state.start(generation)
        result = client.fetch(intent, generation=generation)
        state.apply(result, latest_generation=client.current_generation)

    render_state(console, state, unit)

    if args.save and state.snapshot is not None:
        location = state.snapshot.current.location
        try:
            saved.save(
                location.name,
                country=location.country,
                lat=location.latitude,
                lon=location.longitude,
            )
            console.print(f"Saved {location.name}.")
        except StorageError as exc:
            logger.error("Could not save city: %s", exc)

    if result.outcome == "ok":
        return EXIT_OK
    if result.outcome == "cached":
        return EXIT_CACHED
    return EXIT_WEATHER_ERROR


if __name__ == "__main__":
    sys.exit(main())
