"""FastAPI application exposing the gateway under /api/weather."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .config import Settings, Units, load_settings
from .exceptions import CityNotFoundError, InvalidRequestError, UpstreamServiceError
from .gateway import MAX_SEARCH_LIMIT, MIN_QUERY_LENGTH, WeatherGateway
from .log_setup import setup_logger
from .weather.base import WeatherProvider
from .weather.models import (
    CityForecastResponse,
    CityWeatherResponse,
    ForecastResponse,
    Location,
)
from .weather.openweather import OpenWeatherProvider

T = TypeVar("T")

router = APIRouter(prefix="/api/weather", tags=["Weather"])


def get_gateway(request: Request) -> WeatherGateway:
    return request.app.state.gateway


def _run(message: str, call: Callable[[], T]) -> T | JSONResponse:
    """Run a gateway call, mapping gateway errors to JSON error bodies."""
    try:
        return call()
    except CityNotFoundError:
        return JSONResponse(status_code=404, content={"error": "City not found"})
    except InvalidRequestError as exc:
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "details": str(exc)},
        )
    except UpstreamServiceError as exc:
        return JSONResponse(status_code=500, content={"error": message, "details": str(exc)})


@router.get("/search", response_model=list[Location])
def search_city(
    query: str = Query(..., min_length=MIN_QUERY_LENGTH),
    limit: int = Query(MAX_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT),
    gateway: WeatherGateway = Depends(get_gateway),
) -> Any:
    return _run("Failed to fetch city data", lambda: gateway.search_city(query, limit=limit))


@router.get("/current")
def current_weather(
    lat: float = Query(...),
    lon: float = Query(...),
    units: Units | None = Query(None),
    gateway: WeatherGateway = Depends(get_gateway),
) -> Any:
    return _run("Failed to fetch weather data", lambda: gateway.current_weather(lat, lon, units))


@router.get("/forecast", response_model=ForecastResponse)
def forecast(
    lat: float = Query(...),
    lon: float = Query(...),
    units: Units | None = Query(None),
    gateway: WeatherGateway = Depends(get_gateway),
) -> Any:
    return _run("Failed to fetch forecast data", lambda: gateway.forecast(lat, lon, units))


@router.get("/city", response_model=CityWeatherResponse)
def city_weather(
    city: str = Query(..., min_length=MIN_QUERY_LENGTH),
    units: Units | None = Query(None),
    gateway: WeatherGateway = Depends(get_gateway),
) -> Any:
    return _run("Failed to fetch weather data", lambda: gateway.city_weather(city, units))


@router.get("/forecast/city", response_model=CityForecastResponse)
def forecast_by_city(
    city: str = Query(..., min_length=MIN_QUERY_LENGTH),
    units: Units | None = Query(None),
    gateway: WeatherGateway = Depends(get_gateway),
) -> Any:
    return _run("Failed to fetch forecast data", lambda: gateway.forecast_by_city(city, units))


def create_app(
    settings: Settings | None = None,
    provider: WeatherProvider | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the application; a provider is created from settings if not given."""
    settings = settings or load_settings()
    logger = logger or setup_logger(level=settings.log_level)
    provider = provider or OpenWeatherProvider(settings=settings, logger=logger)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Weather gateway starting", extra={"detail": settings.safe_summary()})
        try:
            yield
        finally:
            provider.close()
            logger.info("Weather gateway stopped")

    app = FastAPI(title="Weather Gateway", lifespan=lifespan)
    app.state.gateway = WeatherGateway(provider=provider, settings=settings, logger=logger)
    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
