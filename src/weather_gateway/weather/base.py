"""Provider-agnostic weather interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class WeatherProvider(ABC):
    """Base contract for the upstream geocoding + weather service."""

    @abstractmethod
    def geocode(self, query: str, *, limit: int) -> list[dict[str, Any]]:
        """Resolve free text to raw geocoding records (possibly empty)."""

    @abstractmethod
    def fetch_current(self, *, lat: float, lon: float, units: str) -> dict[str, Any]:
        """Fetch the raw current-conditions payload."""

    @abstractmethod
    def fetch_forecast(
        self,
        *,
        lat: float,
        lon: float,
        units: str,
        count: int,
    ) -> dict[str, Any]:
        """Fetch the raw 3-hourly forecast payload, capped at `count` entries."""

    @abstractmethod
    def close(self) -> None:
        """Release provider resources."""
