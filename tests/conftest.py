"""Shared fakes for gateway, API and CLI tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

import pytest

from weather_gateway.exceptions import UpstreamServiceError
from weather_gateway.weather.base import WeatherProvider

LONDON = {
    "name": "London",
    "local_names": {"en": "London", "fr": "Londres"},
    "lat": 51.5073,
    "lon": -0.1276,
    "country": "GB",
    "state": "England",
}


def forecast_payload(days: int = 3, start: datetime | None = None) -> dict[str, Any]:
    """3-hourly OpenWeather-shaped forecast payload covering `days` UTC days."""
    start = start or datetime(2026, 2, 24, tzinfo=UTC)
    entries = []
    for i in range(days * 8):
        at = start + timedelta(hours=3 * i)
        entries.append(
            {
                "dt": int(at.timestamp()),
                "main": {"temp": 10.0 + i, "temp_min": 9.0 + i, "temp_max": 11.0 + i},
                "weather": [{"main": "Clouds", "description": "broken clouds", "icon": "04d"}],
            }
        )
    return {"cod": "200", "list": entries, "city": {"name": "London", "country": "GB"}}


class FakeProvider(WeatherProvider):
    """In-memory provider that records calls and can be told to fail."""

    def __init__(
        self,
        *,
        geocode_results: list[dict[str, Any]] | None = None,
        current: dict[str, Any] | None = None,
        forecast: dict[str, Any] | None = None,
        fail: set[str] | None = None,
    ) -> None:
        self.geocode_results = [LONDON] if geocode_results is None else geocode_results
        self.current = current or {"name": "London", "main": {"temp": 12.3}}
        self.forecast = forecast or forecast_payload()
        self.fail = fail or set()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise UpstreamServiceError(
                f"OpenWeather {name} failed with status 502.",
                status_code=502,
            )

    def geocode(self, query: str, *, limit: int) -> list[dict[str, Any]]:
        self.calls.append(("geocode", {"query": query, "limit": limit}))
        self._maybe_fail("geocode")
        return self.geocode_results[:limit]

    def fetch_current(self, *, lat: float, lon: float, units: str) -> dict[str, Any]:
        self.calls.append(("current", {"lat": lat, "lon": lon, "units": units}))
        self._maybe_fail("current")
        return self.current

    def fetch_forecast(
        self,
        *,
        lat: float,
        lon: float,
        units: str,
        count: int,
    ) -> dict[str, Any]:
        self.calls.append(("forecast", {"lat": lat, "lon": lon, "units": units, "count": count}))
        self._maybe_fail("forecast")
        return self.forecast

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeProvider:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


def make_settings(**overrides: Any) -> Any:
    defaults: dict[str, Any] = {
        "default_units": "metric",
        "forecast_entry_count": 24,
        "forecast_max_days": 4,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    settings = SimpleNamespace(**defaults)
    settings.forecast_tzinfo = lambda: UTC
    settings.safe_summary = lambda: {"app_env": "test"}
    return settings


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def settings_factory() -> Any:
    return make_settings
