"""Displayed dashboard state, guarded against superseded fetch results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .models import CachedSnapshot, WeatherError, WeatherResult


@dataclass(slots=True)
class DashboardState:
    """What the dashboard is currently showing."""

    snapshot: CachedSnapshot | None = None
    error: WeatherError | None = None
    offline_since: datetime | None = None
    stale: bool = False
    loading: bool = False
    generation: int = 0

    @property
    def offline(self) -> bool:
        return self.offline_since is not None

    def start(self, generation: int) -> None:
        """Mark a fetch in flight; the search control stays disabled until it lands."""
        self.loading = True
        self.generation = generation

    def apply(self, result: WeatherResult, *, latest_generation: int) -> bool:
        """Apply ``result`` unless a newer fetch has started since it was issued.

        Returns whether the result was applied.
        """
        if result.generation != latest_generation:
            return False

        self.loading = False
        self.generation = result.generation
        if result.outcome == "ok":
            self.snapshot = result.snapshot
            self.error = None
            self.offline_since = None
            self.stale = False
        elif result.outcome == "cached":
            self.snapshot = result.snapshot
            self.error = None
            self.offline_since = result.cached_at
            self.stale = result.stale
        else:
            self.snapshot = None
            self.error = result.error
            self.offline_since = None
            self.stale = False
        return True
