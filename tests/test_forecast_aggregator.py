"""Forecast aggregation: day bucketing, statistics and representative weather."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import pytest

from weather_gateway.exceptions import UpstreamServiceError
from weather_gateway.weather.aggregator import aggregate_forecast

_DAY0 = datetime(2026, 2, 24, tzinfo=UTC)


def _entry(
    at: datetime,
    temp: float,
    *,
    temp_min: float | None = None,
    temp_max: float | None = None,
    condition: str = "Clear",
    description: str = "clear sky",
    icon: str = "01d",
) -> dict[str, Any]:
    return {
        "dt": int(at.timestamp()),
        "main": {
            "temp": temp,
            "temp_min": temp if temp_min is None else temp_min,
            "temp_max": temp if temp_max is None else temp_max,
            "humidity": 60,
        },
        "weather": [{"id": 800, "main": condition, "description": description, "icon": icon}],
        "dt_txt": at.strftime("%Y-%m-%d %H:%M:%S"),
    }


def _payload(entries: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "cod": "200",
        "cnt": len(entries),
        "list": entries,
        "city": {"id": 2643743, "name": "London", "country": "GB"},
    }


def _three_hourly(start: datetime, count: int, temp: float = 10.0) -> list[dict[str, Any]]:
    return [_entry(start + timedelta(hours=3 * i), temp + i) for i in range(count)]


def test_average_temp_is_mean_of_entry_temps() -> None:
    entries = [
        _entry(_DAY0 + timedelta(hours=0), 10),
        _entry(_DAY0 + timedelta(hours=3), 20),
        _entry(_DAY0 + timedelta(hours=6), 30),
    ]
    result = aggregate_forecast(_payload(entries), tz=UTC)
    assert len(result.daily_forecasts) == 1
    assert result.daily_forecasts[0].avg_temp == 20


def test_min_max_come_from_temp_min_and_temp_max() -> None:
    entries = [
        _entry(_DAY0 + timedelta(hours=3), 10, temp_min=5, temp_max=12),
        _entry(_DAY0 + timedelta(hours=6), 20, temp_min=15, temp_max=25),
    ]
    day = aggregate_forecast(_payload(entries), tz=UTC).daily_forecasts[0]
    assert day.min_temp == 5
    assert day.max_temp == 25
    assert day.avg_temp == 15


def test_weather_fields_come_from_first_entry_of_day() -> None:
    entries = [
        _entry(_DAY0 + timedelta(hours=9), 8, condition="Rain", description="light rain", icon="10d"),
        _entry(_DAY0 + timedelta(hours=12), 9, condition="Clear", description="clear sky"),
        _entry(_DAY0 + timedelta(hours=15), 9, condition="Clouds", description="few clouds"),
    ]
    day = aggregate_forecast(_payload(entries), tz=UTC).daily_forecasts[0]
    assert day.weather_condition == "Rain"
    assert day.weather_description == "light rain"
    assert day.weather_icon == "10d"


def test_empty_list_yields_no_daily_forecasts() -> None:
    result = aggregate_forecast(_payload([]), tz=UTC)
    assert result.daily_forecasts == []
    assert result.city == {"id": 2643743, "name": "London", "country": "GB"}


def test_caps_output_at_four_days_in_feed_order() -> None:
    # 6 distinct UTC days of 3-hourly entries starting at 21:00.
    entries = _three_hourly(_DAY0 + timedelta(hours=21), 40)
    result = aggregate_forecast(_payload(entries), tz=UTC)
    dates = [day.date for day in result.daily_forecasts]
    assert dates == ["2026-02-24", "2026-02-25", "2026-02-26", "2026-02-27"]
    assert [day.day_of_week for day in result.daily_forecasts] == [
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
    ]
    assert len(result.daily_forecasts[0].hourly_forecasts) == 1
    assert len(result.daily_forecasts[1].hourly_forecasts) == 8


def test_fewer_days_than_cap_are_not_padded() -> None:
    entries = _three_hourly(_DAY0, 10)
    result = aggregate_forecast(_payload(entries), tz=UTC)
    assert len(result.daily_forecasts) == 2


def test_max_days_override() -> None:
    entries = _three_hourly(_DAY0, 24)
    result = aggregate_forecast(_payload(entries), max_days=1, tz=UTC)
    assert [day.date for day in result.daily_forecasts] == ["2026-02-24"]
    assert len(result.daily_forecasts[0].hourly_forecasts) == 8


def test_hourly_entries_rederive_their_summary_date() -> None:
    entries = _three_hourly(_DAY0 + timedelta(hours=12), 24)
    result = aggregate_forecast(_payload(entries), tz=UTC)
    seen = 0
    for day in result.daily_forecasts:
        for entry in day.hourly_forecasts:
            assert datetime.fromtimestamp(entry["dt"], tz=UTC).date().isoformat() == day.date
            seen += 1
    assert seen == len(entries)


def test_day_boundaries_follow_given_timezone() -> None:
    # 23:00 UTC on the 24th is already the 25th at UTC+2.
    entries = [
        _entry(_DAY0 + timedelta(hours=20), 5),
        _entry(_DAY0 + timedelta(hours=23), 6),
    ]
    utc_days = aggregate_forecast(_payload(entries), tz=UTC).daily_forecasts
    plus_two = aggregate_forecast(
        _payload(entries), tz=timezone(timedelta(hours=2))
    ).daily_forecasts
    assert [day.date for day in utc_days] == ["2026-02-24"]
    assert [day.date for day in plus_two] == ["2026-02-24", "2026-02-25"]


def test_dates_keep_first_seen_order_for_unordered_feed() -> None:
    entries = [
        _entry(_DAY0 + timedelta(days=1, hours=3), 12, condition="Snow"),
        _entry(_DAY0 + timedelta(hours=3), 10),
        _entry(_DAY0 + timedelta(days=1), 11, condition="Clear"),
    ]
    days = aggregate_forecast(_payload(entries), tz=UTC).daily_forecasts
    assert [day.date for day in days] == ["2026-02-25", "2026-02-24"]
    # Representative entry is the first in input order, not the earliest timestamp.
    assert days[0].weather_condition == "Snow"


def test_non_dict_entries_are_skipped() -> None:
    entries: list[Any] = [None, "garbage", _entry(_DAY0, 4)]
    days = aggregate_forecast(_payload(entries), tz=UTC).daily_forecasts
    assert len(days) == 1
    assert len(days[0].hourly_forecasts) == 1


def test_entry_without_weather_array_gives_null_condition() -> None:
    entry = _entry(_DAY0, 4)
    entry["weather"] = []
    day = aggregate_forecast(_payload([entry]), tz=UTC).daily_forecasts[0]
    assert day.weather_condition is None
    assert day.weather_icon is None


def test_missing_list_raises() -> None:
    with pytest.raises(UpstreamServiceError, match="missing 'list' array"):
        aggregate_forecast({"city": {}}, tz=UTC)


def test_entry_missing_temperature_raises() -> None:
    entry = _entry(_DAY0, 4)
    del entry["main"]["temp_max"]
    with pytest.raises(UpstreamServiceError, match="main.temp_max"):
        aggregate_forecast(_payload([entry]), tz=UTC)


def test_entry_missing_timestamp_raises() -> None:
    entry = _entry(_DAY0, 4)
    entry["dt"] = "soon"
    with pytest.raises(UpstreamServiceError, match="'dt'"):
        aggregate_forecast(_payload([entry]), tz=UTC)


def test_missing_city_block_is_none() -> None:
    payload = _payload(_three_hourly(_DAY0, 2))
    del payload["city"]
    assert aggregate_forecast(payload, tz=UTC).city is None


@pytest.mark.parametrize("timestamp", [10**20, -(10**20), 1e20])
def test_out_of_range_timestamp_raises_upstream_error(timestamp: float) -> None:
    entry = _entry(_DAY0, 4)
    entry["dt"] = timestamp
    with pytest.raises(UpstreamServiceError, match="out-of-range 'dt'"):
        aggregate_forecast(_payload([entry]), tz=UTC)


def test_default_buckets_by_server_local_time() -> None:
    # Around local midnight so a UTC-based bucketing would disagree in most zones.
    local_midnight = datetime(2026, 2, 25).astimezone()
    entries = [
        _entry(local_midnight - timedelta(hours=2), 5),
        _entry(local_midnight + timedelta(hours=1), 6),
        _entry(local_midnight + timedelta(hours=4), 7),
    ]
    days = aggregate_forecast(_payload(entries)).daily_forecasts

    assert [day.date for day in days] == ["2026-02-24", "2026-02-25"]
    for day in days:
        for entry in day.hourly_forecasts:
            assert datetime.fromtimestamp(entry["dt"]).date().isoformat() == day.date
    assert len(days[1].hourly_forecasts) == 2
