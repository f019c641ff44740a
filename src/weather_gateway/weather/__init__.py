"""OpenWeather provider integration and forecast aggregation."""

from .aggregator import aggregate_forecast
from .base import WeatherProvider
from .models import (
    CityForecastResponse,
    CityWeatherResponse,
    DailyForecastSummary,
    ForecastResponse,
    Location,
)
from .openweather import OpenWeatherProvider

__all__ = [
    "CityForecastResponse",
    "CityWeatherResponse",
    "DailyForecastSummary",
    "ForecastResponse",
    "Location",
    "OpenWeatherProvider",
    "WeatherProvider",
    "aggregate_forecast",
]
