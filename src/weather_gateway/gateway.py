"""Request orchestration between callers and the weather provider."""

from __future__ import annotations

import logging
from typing import Any, get_args

from pydantic import ValidationError

from .config import Settings, Units
from .exceptions import CityNotFoundError, InvalidRequestError, UpstreamServiceError
from .weather.aggregator import aggregate_forecast
from .weather.base import WeatherProvider
from .weather.models import (
    CityForecastResponse,
    CityWeatherResponse,
    ForecastResponse,
    Location,
)

MIN_QUERY_LENGTH = 2
MAX_SEARCH_LIMIT = 5
VALID_UNITS: tuple[str, ...] = get_args(Units)


class WeatherGateway:
    """Validates requests, calls the provider and reshapes its responses.

    City flows are a two-step pipeline: `resolve_location` first, then the
    weather fetches. A failed resolution short-circuits the second step.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        settings: Settings,
        logger: logging.Logger,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.logger = logger

    def search_city(self, query: str, limit: int = MAX_SEARCH_LIMIT) -> list[Location]:
        """Return up to `limit` geocoding matches for free text."""
        query = self._validate_query(query, field="query")
        if not (1 <= limit <= MAX_SEARCH_LIMIT):
            raise InvalidRequestError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}.")
        records = self.provider.geocode(query, limit=limit)
        return [self._to_location(record) for record in records]

    def current_weather(self, lat: float, lon: float, units: str | None = None) -> dict[str, Any]:
        """Return the provider's current-conditions payload unchanged."""
        self._validate_coords(lat, lon)
        return self.provider.fetch_current(lat=lat, lon=lon, units=self._resolve_units(units))

    def forecast(self, lat: float, lon: float, units: str | None = None) -> ForecastResponse:
        """Fetch the 3-hourly forecast and collapse it into daily summaries."""
        self._validate_coords(lat, lon)
        return self._fetch_forecast(lat, lon, self._resolve_units(units))

    def resolve_location(self, city: str) -> Location:
        """Geocode `city` and return its first match."""
        city = self._validate_query(city, field="city")
        records = self.provider.geocode(city, limit=1)
        if not records:
            self.logger.info("City not found: %s", city)
            raise CityNotFoundError(city)
        return self._to_location(records[0])

    def city_weather(self, city: str, units: str | None = None) -> CityWeatherResponse:
        """Current conditions plus forecast for a city name.

        A forecast failure is reported as `forecast=None`; a current-weather
        failure fails the whole request.
        """
        resolved_units = self._resolve_units(units)
        location = self.resolve_location(city)
        current = self.provider.fetch_current(
            lat=location.latitude,
            lon=location.longitude,
            units=resolved_units,
        )
        forecast: ForecastResponse | None
        try:
            forecast = self._fetch_forecast(location.latitude, location.longitude, resolved_units)
        except UpstreamServiceError as exc:
            self.logger.warning(
                "Forecast unavailable for %s; returning current conditions only",
                location.name,
                extra={"detail": str(exc)},
            )
            forecast = None
        return CityWeatherResponse(city=location, current=current, forecast=forecast)

    def forecast_by_city(self, city: str, units: str | None = None) -> CityForecastResponse:
        """Daily forecast for a city name, with the geocoding match attached."""
        resolved_units = self._resolve_units(units)
        location = self.resolve_location(city)
        forecast = self._fetch_forecast(location.latitude, location.longitude, resolved_units)
        return CityForecastResponse(
            city=forecast.city,
            daily_forecasts=forecast.daily_forecasts,
            city_info=location,
        )

    def _fetch_forecast(self, lat: float, lon: float, units: str) -> ForecastResponse:
        payload = self.provider.fetch_forecast(
            lat=lat,
            lon=lon,
            units=units,
            count=self.settings.forecast_entry_count,
        )
        return aggregate_forecast(
            payload,
            max_days=self.settings.forecast_max_days,
            tz=self.settings.forecast_tzinfo(),
        )

    def _resolve_units(self, units: str | None) -> str:
        if units is None:
            return self.settings.default_units
        if units not in VALID_UNITS:
            raise InvalidRequestError(
                f"units must be one of {', '.join(VALID_UNITS)}; got {units!r}."
            )
        return units

    @staticmethod
    def _validate_query(value: str, *, field: str) -> str:
        cleaned = value.strip() if isinstance(value, str) else ""
        if len(cleaned) < MIN_QUERY_LENGTH:
            raise InvalidRequestError(
                f"{field} must be at least {MIN_QUERY_LENGTH} characters."
            )
        return cleaned

    @staticmethod
    def _validate_coords(lat: float, lon: float) -> None:
        if not (-90 <= lat <= 90):
            raise InvalidRequestError(f"Invalid latitude {lat}; expected between -90 and 90.")
        if not (-180 <= lon <= 180):
            raise InvalidRequestError(f"Invalid longitude {lon}; expected between -180 and 180.")

    @staticmethod
    def _to_location(record: dict[str, Any]) -> Location:
        try:
            return Location.model_validate(record)
        except ValidationError as exc:
            raise UpstreamServiceError(
                f"Geocoding record could not be parsed: {exc.error_count()} error(s)."
            ) from exc
