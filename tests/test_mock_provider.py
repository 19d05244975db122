"""Tests for the in-memory mock weather provider."""

from __future__ import annotations

import asyncio
import copy
import datetime as dt
import logging
import random
from zoneinfo import ZoneInfo

import pytest
from conftest import fixed_clock

from weather_display.exceptions import InvalidQueryError, ProviderErrorKind
from weather_display.weather.mock import (
    CONDITION_VOCABULARY,
    MOCK_TABLE,
    MockWeatherProvider,
    local_hours,
)
from weather_display.weather.models import WeatherData
from weather_display.weather.schema import ForecastAnchor, ForecastContract, validate


def _make_provider(
    contract: ForecastContract | None = None, seed: int = 3
) -> MockWeatherProvider:
    return MockWeatherProvider(
        logging.getLogger("test_mock_provider"),
        contract=contract or ForecastContract(),
        latency_seconds=0,
        rng=random.Random(seed),
        clock=fixed_clock,
    )


def _fetch(provider: MockWeatherProvider, query: str) -> WeatherData:
    return asyncio.run(provider.fetch_weather(query))


@pytest.mark.parametrize("query", sorted(MOCK_TABLE))
def test_known_locations_have_ordered_forecast(query: str) -> None:
    data = _fetch(_make_provider(), query)

    assert len(data.forecast) == 7
    dates = [day.date for day in data.forecast]
    assert dates == [dates[0] + dt.timedelta(days=offset) for offset in range(7)]
    for day in data.forecast:
        assert day.high >= day.low
        assert len(day.hour) == 24
        epochs = [hour.time_epoch for hour in day.hour]
        assert epochs == sorted(epochs)
        assert max(hour.temp_c for hour in day.hour) <= day.high
        assert min(hour.temp_c for hour in day.hour) >= day.low


def test_london_end_to_end() -> None:
    provider = _make_provider()

    data = _fetch(provider, "london")

    assert data.location.name == "London"
    assert data.current.description in CONDITION_VOCABULARY
    assert 0 <= data.details.humidity <= 100
    assert len(data.forecast) == provider.contract.days
    assert data.forecast[0].label == "Today"
    assert data.forecast[0].date == dt.date(2026, 3, 4)
    assert data.forecast[1].label == "Thu"
    assert all(day.description in CONDITION_VOCABULARY for day in data.forecast)


def test_lookup_is_case_and_whitespace_insensitive() -> None:
    data = _fetch(_make_provider(), "  New   YORK ")

    assert data.location.name == "New York"
    assert data.location.tz_id == "America/New_York"


def test_unknown_location_falls_back_to_default_reading() -> None:
    provider = _make_provider()

    data = _fetch(provider, "Atlantis")

    default = MOCK_TABLE["minsk"]
    assert not provider.is_known("Atlantis")
    assert data.location.name == "Atlantis"
    assert data.location.country == default["location"]["country"]
    assert data.current.description == default["current"]["description"]
    assert data.current.humidity == default["current"]["humidity"]
    assert len(data.forecast) == 7


def test_coordinate_query_uses_default_reading_at_those_coordinates() -> None:
    data = _fetch(_make_provider(), "48.8566,2.3522")

    assert data.location.lat == pytest.approx(48.8566)
    assert data.location.lon == pytest.approx(2.3522)
    assert data.current.description == MOCK_TABLE["minsk"]["current"]["description"]


def test_repeated_calls_return_fresh_objects() -> None:
    provider = _make_provider()
    table_before = copy.deepcopy(MOCK_TABLE)

    first = _fetch(provider, "tokyo")
    second = _fetch(provider, "tokyo")

    assert first is not second
    assert first.forecast is not second.forecast
    assert first.location.name == second.location.name
    assert first.forecast != second.forecast
    assert MOCK_TABLE == table_before


def test_default_reading_is_not_shared_between_unknown_queries() -> None:
    provider = _make_provider()

    atlantis = _fetch(provider, "Atlantis")
    _fetch(provider, "El Dorado")

    assert atlantis.location.name == "Atlantis"
    assert MOCK_TABLE["minsk"]["location"]["name"] == "Minsk"


def test_today_entry_uses_canned_values() -> None:
    data = _fetch(_make_provider(), "minsk")
    today = data.forecast[0]

    assert today.description == "Thunderstorm"
    assert today.high == 23
    assert today.low == 18
    assert data.details.chance_of_rain == 87


def test_tomorrow_anchored_contract() -> None:
    contract = ForecastContract(days=8, anchor=ForecastAnchor.TOMORROW)

    data = _fetch(_make_provider(contract), "sydney")

    assert len(data.forecast) == 8
    assert data.forecast[0].label == "Tomorrow"
    assert data.forecast[0].date == dt.date(2026, 3, 5)
    validate(data, contract)


def test_output_passes_schema_validation() -> None:
    data = _fetch(_make_provider(), "current location")

    assert validate(data.model_dump(mode="json")) == data


@pytest.mark.parametrize("query", ["", "   ", "95.0,10.0", "10.0,-190.5"])
def test_invalid_queries_are_rejected(query: str) -> None:
    with pytest.raises(InvalidQueryError) as excinfo:
        _fetch(_make_provider(), query)

    assert excinfo.value.kind is ProviderErrorKind.INVALID_QUERY


def test_latency_is_simulated(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("weather_display.weather.mock.asyncio.sleep", _fake_sleep)
    provider = _make_provider()
    provider.latency_seconds = 0.5

    _fetch(provider, "london")

    assert delays == [0.5]


@pytest.mark.parametrize("day", [dt.date(2026, 3, 29), dt.date(2026, 10, 25)])
def test_hours_on_clock_change_days_stay_on_their_date(day: dt.date) -> None:
    provider = _make_provider()
    provider._clock = lambda: dt.datetime.combine(day, dt.time(12), tzinfo=dt.UTC)

    data = _fetch(provider, "london")

    today = data.forecast[0]
    assert today.date == day
    assert [hour.time for hour in today.hour] == [f"{day} {hour:02d}:00" for hour in range(24)]
    epochs = [hour.time_epoch for hour in today.hour]
    assert all(earlier < later for earlier, later in zip(epochs, epochs[1:]))
    assert validate(data.model_dump(mode="json")) == data


def test_local_hours_pin_the_skipped_hour_between_its_neighbours() -> None:
    slots = local_hours(dt.date(2026, 3, 29), ZoneInfo("Europe/London"))

    assert [wall.hour for wall, _ in slots] == list(range(24))
    midnight, skipped, two_am = (epoch for _, epoch in slots[:3])
    assert midnight == int(dt.datetime(2026, 3, 29, 0, tzinfo=dt.UTC).timestamp())
    assert two_am == int(dt.datetime(2026, 3, 29, 1, tzinfo=dt.UTC).timestamp())
    assert skipped == midnight + 1800


def test_local_hours_use_first_occurrence_of_repeated_hour() -> None:
    slots = local_hours(dt.date(2026, 10, 25), ZoneInfo("Europe/London"))

    epochs = {wall.hour: epoch for wall, epoch in slots}
    assert epochs[1] == int(dt.datetime(2026, 10, 25, 0, tzinfo=dt.UTC).timestamp())
    assert epochs[2] == int(dt.datetime(2026, 10, 25, 2, tzinfo=dt.UTC).timestamp())
