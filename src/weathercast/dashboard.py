"""Rich renderers for the terminal weather dashboard."""

from __future__ import annotations

from datetime import UTC, datetime

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .weather.conditions import format_temperature
from .weather.models import (
    CurrentConditions,
    ForecastDay,
    HourlyForecast,
    TemperatureUnit,
    WeatherAlert,
    WeatherError,
)
from .weather.state import DashboardState


def _format_ts(value: datetime | None, fmt: str = "%Y-%m-%d %H:%M") -> str:
    if value is None:
        return "-"
    return value.astimezone(UTC).strftime(fmt) + " UTC"


def build_current_panel(current: CurrentConditions, unit: TemperatureUnit) -> Panel:
    location = current.location.name
    if current.location.country:
        location = f"{location}, {current.location.country}"

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Temperature", format_temperature(current.temperature, unit))
    table.add_row("Feels like", format_temperature(current.feels_like, unit))
    table.add_row("Conditions", f"{current.description or '-'} ({current.condition})")
    table.add_row("Humidity", f"{current.humidity:g}%")
    wind = f"{current.wind_speed:g} km/h"
    if current.wind_direction is not None:
        wind += f" @ {current.wind_direction:g}°"
    table.add_row("Wind", wind)
    if current.pressure is not None:
        table.add_row("Pressure", f"{current.pressure:g} hPa")
    if current.visibility is not None:
        table.add_row("Visibility", f"{current.visibility / 1000:.1f} km")
    table.add_row(
        "Sunrise / sunset",
        f"{_format_ts(current.sunrise, '%H:%M')} / {_format_ts(current.sunset, '%H:%M')}",
    )
    if current.air_quality is not None:
        table.add_row(
            "Air quality",
            f"AQI {current.air_quality.aqi} ({current.air_quality.category})",
        )
    table.add_row("Observed", _format_ts(current.observed_at))
    return Panel(table, title=location, border_style="cyan")


def build_hourly_table(hourly: list[HourlyForecast], unit: TemperatureUnit) -> Table:
    table = Table(title="Next 24 Hours")
    table.add_column("Time (UTC)")
    table.add_column("Temp")
    table.add_column("Feels")
    table.add_column("Rain %")
    table.add_column("Wind")
    table.add_column("Conditions", overflow="fold")
    for item in hourly:
        table.add_row(
            _format_ts(item.time, "%a %H:%M"),
            format_temperature(item.temperature, unit),
            format_temperature(item.feels_like, unit),
            str(item.pop),
            f"{item.wind_speed:g} km/h",
            item.description or item.condition,
        )
    return table


def build_daily_table(days: list[ForecastDay], unit: TemperatureUnit) -> Table:
    table = Table(title=f"{len(days)}-Day Forecast")
    table.add_column("Date")
    table.add_column("Low")
    table.add_column("High")
    table.add_column("Humidity")
    table.add_column("Conditions", overflow="fold")
    for day in days:
        table.add_row(
            day.date.strftime("%a %d %b"),
            format_temperature(day.temp_min, unit),
            format_temperature(day.temp_max, unit),
            f"{day.humidity:g}%",
            day.description or day.condition,
        )
    return table


def build_alerts_panel(alerts: list[WeatherAlert]) -> Panel:
    lines: list[Text] = []
    for alert in alerts:
        header = Text(alert.event, style="bold red")
        header.append(f"  {alert.sender}" if alert.sender else "", style="dim")
        lines.append(header)
        lines.append(Text(f"{_format_ts(alert.start)} -> {_format_ts(alert.end)}"))
        if alert.description:
            lines.append(Text(alert.description))
    return Panel(Group(*lines), title="Weather Alerts", border_style="red")


def build_error_panel(error: WeatherError) -> Panel:
    body = Text(error.message)
    if error.retryable:
        body.append("\nRun the same command again to retry.", style="dim")
    return Panel(body, title=f"Error: {error.code}", border_style="red")


def render_state(console: Console, state: DashboardState, unit: TemperatureUnit) -> None:
    """Print whatever the dashboard state currently holds."""
    if state.error is not None:
        console.print(build_error_panel(state.error))
        return
    if state.snapshot is None:
        console.print("No weather data to display.")
        return

    if state.offline:
        note = "stale" if state.stale else "recent"
        cached_at = _format_ts(state.offline_since)
        console.print(
            Panel(
                f"You are offline. Showing {note} data cached at {cached_at}.",
                border_style="yellow",
            )
        )
    snapshot = state.snapshot
    console.print(build_current_panel(snapshot.current, unit))
    if snapshot.alerts:
        console.print(build_alerts_panel(snapshot.alerts))
    if snapshot.hourly:
        console.print(build_hourly_table(snapshot.hourly, unit))
    if snapshot.daily:
        console.print(build_daily_table(snapshot.daily, unit))
