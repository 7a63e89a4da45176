"""Gateway contract the weather client depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import GatewayRequest


class WeatherGateway(ABC):
    """Upstream endpoint that resolves a location and returns raw provider JSON."""

    @abstractmethod
    def request(self, request: GatewayRequest) -> dict[str, Any]:
        """Return the raw success payload or raise a classified WeatherRequestError."""

    @abstractmethod
    def close(self) -> None:
        """Release gateway resources."""
