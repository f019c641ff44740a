"""CLI: serve the HTTP API or run one-off gateway lookups."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import uvicorn
from rich.console import Console
from rich.table import Table

from .api import create_app
from .config import Settings, load_settings
from .exceptions import CityNotFoundError, ConfigError, WeatherGatewayError
from .gateway import MAX_SEARCH_LIMIT, VALID_UNITS, WeatherGateway
from .log_setup import setup_logger
from .weather.models import ForecastResponse, Location
from .weather.openweather import OpenWeatherProvider


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="OpenWeather gateway service and lookups.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", type=str, default=None, help="Override API_HOST.")
    serve.add_argument("--port", type=int, default=None, help="Override API_PORT.")

    search = subparsers.add_parser("search", help="Geocode a free-text place name.")
    search.add_argument("query", type=str)
    search.add_argument("--limit", type=int, default=MAX_SEARCH_LIMIT)

    current = subparsers.add_parser("current", help="Print current conditions as JSON.")
    _add_location_args(current)

    forecast = subparsers.add_parser("forecast", help="Print the daily forecast table.")
    _add_location_args(forecast)
    return parser.parse_args(argv)


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--city", type=str, default=None, help="City name to geocode.")
    parser.add_argument("--lat", type=float, default=None, help="Latitude.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude.")
    parser.add_argument("--units", choices=VALID_UNITS, default=None)


def _validate_location_args(args: argparse.Namespace) -> None:
    has_coords = args.lat is not None or args.lon is not None
    if args.city and has_coords:
        raise ValueError("Use either --city or --lat/--lon, not both.")
    if not args.city and (args.lat is None or args.lon is None):
        raise ValueError("Missing location input: pass --city, or both --lat and --lon.")


def _print_locations(console: Console, locations: list[Location]) -> None:
    if not locations:
        console.print("No matching locations found.")
        return
    table = Table(title="Geocoding Matches")
    table.add_column("Name", overflow="fold")
    table.add_column("State")
    table.add_column("Country")
    table.add_column("Lat")
    table.add_column("Lon")
    for location in locations:
        table.add_row(
            location.name,
            location.state or "-",
            location.country or "-",
            f"{location.latitude:.4f}",
            f"{location.longitude:.4f}",
        )
    console.print(table)


def _print_forecast(console: Console, forecast: ForecastResponse, title: str) -> None:
    if not forecast.daily_forecasts:
        console.print("No forecast entries returned.")
        return
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Day")
    table.add_column("Avg")
    table.add_column("Min")
    table.add_column("Max")
    table.add_column("Condition", overflow="fold")
    table.add_column("Entries")
    for day in forecast.daily_forecasts:
        table.add_row(
            day.date,
            day.day_of_week,
            f"{day.avg_temp:.1f}",
            f"{day.min_temp:.1f}",
            f"{day.max_temp:.1f}",
            day.weather_description or day.weather_condition or "-",
            str(len(day.hourly_forecasts)),
        )
    console.print(table)


def _serve(args: argparse.Namespace, settings: Settings, logger: logging.Logger) -> int:
    app = create_app(settings=settings, logger=logger)
    uvicorn.run(
        app,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _lookup(
    args: argparse.Namespace,
    gateway: WeatherGateway,
    console: Console,
) -> None:
    if args.command == "search":
        _print_locations(console, gateway.search_city(args.query, limit=args.limit))
        return

    _validate_location_args(args)
    if args.command == "current":
        payload: dict[str, Any]
        if args.city:
            weather = gateway.city_weather(args.city, args.units)
            payload = weather.model_dump(mode="json", by_alias=True)
        else:
            payload = gateway.current_weather(args.lat, args.lon, args.units)
        console.print_json(json.dumps(payload))
        return

    if args.city:
        result = gateway.forecast_by_city(args.city, args.units)
        title = f"Forecast: {result.city_info.name}"
        if result.city_info.country:
            title += f", {result.city_info.country}"
        _print_forecast(console, result, title=title)
    else:
        forecast = gateway.forecast(args.lat, args.lon, args.units)
        _print_forecast(console, forecast, title=f"Forecast: ({args.lat:.4f}, {args.lon:.4f})")


def main(argv: list[str] | None = None) -> int:
    """Run the selected command."""
    args = parse_args(argv)
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logger().error("Configuration failure: %s", exc)
        return 2

    logger = setup_logger(level=settings.log_level)
    if args.command == "serve":
        return _serve(args, settings, logger)

    with OpenWeatherProvider(settings=settings, logger=logger) as provider:
        gateway = WeatherGateway(provider=provider, settings=settings, logger=logger)
        try:
            _lookup(args, gateway, console)
        except CityNotFoundError as exc:
            logger.error("%s", exc)
            return 5
        except (WeatherGatewayError, ValueError) as exc:
            logger.error("Lookup failed: %s", exc)
            return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())
