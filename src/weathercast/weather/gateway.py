"""HTTP client for the weather edge-function gateway."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..exceptions import WeatherRequestError
from ..redaction import sanitize_for_logging, sanitize_text
from .base import WeatherGateway
from .models import RETRYABLE_BY_CODE, GatewayRequest

_CODE_BY_STATUS: dict[int, str] = {
    400: "INVALID_INPUT",
    401: "API_KEY_INVALID",
    403: "API_KEY_INVALID",
    404: "CITY_NOT_FOUND",
    429: "RATE_LIMIT",
    503: "NETWORK_ERROR",
}


def classify_status(status_code: int) -> str:
    """Classification for an error response that carries no error envelope."""
    if status_code in _CODE_BY_STATUS:
        return _CODE_BY_STATUS[status_code]
    if status_code >= 500:
        return "SERVER_ERROR"
    return "UNKNOWN"


class HttpWeatherGateway(WeatherGateway):
    """Posts typed requests to the gateway and classifies every failure once."""

    def __init__(
        self,
        settings: Any,
        logger: logging.Logger,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._url = str(settings.weather_gateway_url)
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        api_key = getattr(settings, "weather_gateway_api_key", None)
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            timeout=settings.weather_timeout_seconds,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> HttpWeatherGateway:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(self, request: GatewayRequest) -> dict[str, Any]:
        body = request.model_dump(exclude_none=True)
        try:
            response = self._client.post(self._url, json=body)
        except httpx.TimeoutException as exc:
            raise WeatherRequestError(
                "The weather service took too long to respond.",
                code="TIMEOUT",
                retryable=True,
            ) from exc
        except httpx.TransportError as exc:
            self.logger.warning(
                "Gateway %s request failed (%s)",
                request.type,
                type(exc).__name__,
                extra={"request_type": request.type, "code": "NETWORK_ERROR"},
            )
            raise WeatherRequestError(
                "Network error. Please check your connection.",
                code="NETWORK_ERROR",
                retryable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise WeatherRequestError(
                f"Weather request failed: {sanitize_text(str(exc))}",
                code="UNKNOWN",
                retryable=True,
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            if response.is_success:
                raise WeatherRequestError(
                    f"Gateway {request.type} returned non-JSON response.",
                    code="UNKNOWN",
                    retryable=True,
                    status_code=response.status_code,
                ) from exc
            payload = None

        envelope = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(envelope, dict):
            self.logger.debug(
                "Gateway %s error envelope: %s", request.type, sanitize_for_logging(envelope)
            )
            raise self._from_envelope(envelope, response.status_code)
        if not response.is_success:
            code = classify_status(response.status_code)
            raise WeatherRequestError(
                f"Gateway {request.type} failed with status {response.status_code}: "
                f"{sanitize_text(response.text[:300])}",
                code=code,
                retryable=RETRYABLE_BY_CODE[code],
                status_code=response.status_code,
            )
        if not isinstance(payload, dict):
            raise WeatherRequestError(
                f"Gateway {request.type} returned unexpected payload type "
                f"{type(payload).__name__}.",
                code="UNKNOWN",
                retryable=True,
                status_code=response.status_code,
            )
        return payload

    @staticmethod
    def _from_envelope(envelope: dict[str, Any], status_code: int) -> WeatherRequestError:
        code = envelope.get("code")
        if code not in RETRYABLE_BY_CODE:
            code = "UNKNOWN"
        retryable = envelope.get("retryable")
        if not isinstance(retryable, bool):
            retryable = RETRYABLE_BY_CODE[code]
        message = envelope.get("message")
        if not isinstance(message, str) or not message.strip():
            message = "An unexpected error occurred"
        return WeatherRequestError(
            sanitize_text(message),
            code=code,
            retryable=retryable,
            status_code=status_code,
        )
