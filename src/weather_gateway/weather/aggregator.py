"""Collapse 3-hourly provider forecast entries into daily summaries."""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any

from ..exceptions import UpstreamServiceError
from .models import DailyForecastSummary, ForecastResponse

DEFAULT_MAX_DAYS = 4


def aggregate_forecast(
    payload: dict[str, Any],
    *,
    max_days: int = DEFAULT_MAX_DAYS,
    tz: tzinfo | None = None,
) -> ForecastResponse:
    """Group `payload["list"]` by calendar day and summarize each day.

    Days keep the order in which they first appear in the feed and only the
    first `max_days` are kept. Entries are bucketed by the date of their `dt`
    in `tz` (server local time when None). The day's weather fields come from
    its first entry in input order; the feed is assumed to be time-ordered
    and is not re-sorted.
    """
    raw_entries = payload.get("list")
    if not isinstance(raw_entries, list):
        raise UpstreamServiceError("Forecast payload missing 'list' array.")

    city = payload.get("city")
    entries_by_day: dict[str, list[dict[str, Any]]] = {}
    for entry in raw_entries:
        if not isinstance(entry, dict):
            continue
        day_key = _entry_date(entry, tz).isoformat()
        if day_key not in entries_by_day and len(entries_by_day) >= max_days:
            continue
        entries_by_day.setdefault(day_key, []).append(entry)

    return ForecastResponse(
        city=city if isinstance(city, dict) else None,
        daily_forecasts=[
            _summarize_day(day_key, day_entries) for day_key, day_entries in entries_by_day.items()
        ],
    )


def _summarize_day(day_key: str, entries: list[dict[str, Any]]) -> DailyForecastSummary:
    temps = [_main_value(entry, "temp") for entry in entries]
    min_temps = [_main_value(entry, "temp_min") for entry in entries]
    max_temps = [_main_value(entry, "temp_max") for entry in entries]
    condition = _first_condition(entries[0])

    return DailyForecastSummary(
        date=day_key,
        day_of_week=date.fromisoformat(day_key).strftime("%A"),
        avg_temp=sum(temps) / len(temps),
        min_temp=min(min_temps),
        max_temp=max(max_temps),
        weather_condition=_as_str(condition.get("main")),
        weather_description=_as_str(condition.get("description")),
        weather_icon=_as_str(condition.get("icon")),
        hourly_forecasts=entries,
    )


def _entry_date(entry: dict[str, Any], tz: tzinfo | None) -> date:
    timestamp = entry.get("dt")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise UpstreamServiceError("Forecast entry missing numeric 'dt' timestamp.")
    try:
        return datetime.fromtimestamp(timestamp, tz=tz).date()
    except (OverflowError, OSError, ValueError) as exc:
        raise UpstreamServiceError(
            "Forecast entry has out-of-range 'dt' timestamp."
        ) from exc


def _main_value(entry: dict[str, Any], key: str) -> float:
    main = entry.get("main")
    value = main.get(key) if isinstance(main, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UpstreamServiceError(f"Forecast entry missing numeric 'main.{key}'.")
    return float(value)


def _first_condition(entry: dict[str, Any]) -> dict[str, Any]:
    weather = entry.get("weather")
    if isinstance(weather, list) and weather and isinstance(weather[0], dict):
        return weather[0]
    return {}


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
