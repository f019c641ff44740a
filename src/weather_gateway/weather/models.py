"""Typed models for geocoded locations and aggregated forecasts."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """Geocoding match; coordinates use the provider's `lat`/`lon` wire names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    country: str | None = None
    state: str | None = None
    latitude: float = Field(alias="lat")
    longitude: float = Field(alias="lon")


class DailyForecastSummary(BaseModel):
    """One calendar day collapsed from the provider's 3-hourly entries."""

    date: str = Field(description="Local calendar date, YYYY-MM-DD")
    day_of_week: str
    avg_temp: float
    min_temp: float
    max_temp: float
    weather_condition: str | None = None
    weather_description: str | None = None
    weather_icon: str | None = None
    hourly_forecasts: list[dict[str, Any]] = Field(default_factory=list)


class ForecastResponse(BaseModel):
    """Provider city block plus up to `FORECAST_MAX_DAYS` daily summaries."""

    city: dict[str, Any] | None = None
    daily_forecasts: list[DailyForecastSummary] = Field(default_factory=list)


class CityForecastResponse(ForecastResponse):
    """Forecast resolved from a city name, with the geocoding match attached."""

    city_info: Location


class CityWeatherResponse(BaseModel):
    """Current conditions and forecast for a geocoded city."""

    city: Location
    current: dict[str, Any]
    forecast: ForecastResponse | None = None
