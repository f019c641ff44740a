"""OpenWeather (api.openweathermap.org) provider implementation."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..config import Settings
from ..exceptions import UpstreamServiceError
from ..redaction import sanitize_text
from .base import WeatherProvider

GEOCODE_ENDPOINT = "/geo/1.0/direct"
CURRENT_ENDPOINT = "/data/2.5/weather"
FORECAST_ENDPOINT = "/data/2.5/forecast"


class OpenWeatherProvider(WeatherProvider):
    """Issues geocoding, current-weather and forecast calls against OpenWeather.

    Every call carries the API key as the `appid` query parameter and is
    retried on transport errors, HTTP 429 and HTTP 5xx with a fixed delay.
    """

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._api_key = settings.openweather_api_key
        self._max_retries = settings.weather_max_retries
        self._retry_delay = settings.weather_retry_delay_seconds
        self._client = httpx.Client(
            base_url=str(settings.openweather_base_url),
            timeout=settings.weather_timeout_seconds,
            headers={
                "Accept": "application/json",
                "User-Agent": "weather-gateway/0.1",
            },
            transport=transport,
        )

    def __enter__(self) -> OpenWeatherProvider:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def geocode(self, query: str, *, limit: int) -> list[dict[str, Any]]:
        payload = self._request_json(
            GEOCODE_ENDPOINT,
            {"q": query, "limit": limit},
            context="geocoding lookup",
        )
        if not isinstance(payload, list):
            raise UpstreamServiceError(
                "OpenWeather geocoding lookup returned unexpected payload type "
                f"{type(payload).__name__}.",
                url=GEOCODE_ENDPOINT,
            )
        return [item for item in payload if isinstance(item, dict)]

    def fetch_current(self, *, lat: float, lon: float, units: str) -> dict[str, Any]:
        return self._request_object(
            CURRENT_ENDPOINT,
            {"lat": lat, "lon": lon, "units": units},
            context="current weather fetch",
        )

    def fetch_forecast(
        self,
        *,
        lat: float,
        lon: float,
        units: str,
        count: int,
    ) -> dict[str, Any]:
        return self._request_object(
            FORECAST_ENDPOINT,
            {"lat": lat, "lon": lon, "units": units, "cnt": count},
            context="forecast fetch",
        )

    def _request_object(
        self, endpoint: str, params: dict[str, Any], context: str
    ) -> dict[str, Any]:
        payload = self._request_json(endpoint, params, context=context)
        if not isinstance(payload, dict):
            raise UpstreamServiceError(
                f"OpenWeather {context} returned unexpected payload type "
                f"{type(payload).__name__}.",
                url=endpoint,
            )
        return payload

    def _request_json(self, endpoint: str, params: dict[str, Any], context: str) -> Any:
        query = {**params, "appid": self._api_key}
        url = sanitize_text(str(self._client.build_request("GET", endpoint, params=query).url))
        self.logger.info("OpenWeather %s request", context, extra={"url": url})

        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.get(endpoint, params=query)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                body = sanitize_text(exc.response.text[:300])
                # 4xx other than 429 will not change on retry.
                retryable = status == 429 or status >= 500
                if retryable and attempt < self._max_retries:
                    self.logger.warning(
                        "OpenWeather %s failed (HTTP %d); retrying",
                        context,
                        status,
                        extra={"url": url, "status_code": status, "attempt": attempt + 1},
                    )
                    time.sleep(self._retry_delay)
                    continue
                self.logger.error(
                    "OpenWeather %s failed with status %d",
                    context,
                    status,
                    extra={"url": url, "status_code": status, "detail": body},
                )
                raise UpstreamServiceError(
                    f"OpenWeather {context} failed with status {status}.",
                    status_code=status,
                    url=url,
                ) from exc
            except httpx.HTTPError as exc:
                if attempt < self._max_retries:
                    self.logger.warning(
                        "OpenWeather %s request failed (%s); retrying",
                        context,
                        type(exc).__name__,
                        extra={"url": url, "attempt": attempt + 1},
                    )
                    time.sleep(self._retry_delay)
                    continue
                detail = sanitize_text(str(exc)) or type(exc).__name__
                self.logger.error(
                    "OpenWeather %s request failed",
                    context,
                    extra={"url": url, "detail": detail},
                )
                raise UpstreamServiceError(
                    f"OpenWeather {context} request failed: {detail}",
                    url=url,
                ) from exc

            try:
                return response.json()
            except ValueError as exc:
                self.logger.error(
                    "OpenWeather %s returned non-JSON response",
                    context,
                    extra={"url": url, "detail": sanitize_text(response.text[:300])},
                )
                raise UpstreamServiceError(
                    f"OpenWeather {context} returned non-JSON response.",
                    status_code=response.status_code,
                    url=url,
                ) from exc
