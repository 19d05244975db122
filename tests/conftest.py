"""Shared fixtures: a fixed clock and contract-conformant sample payloads."""

from __future__ import annotations

import asyncio
import copy
import datetime as dt
import logging
import random
from typing import Any

import pytest

from weather_display.weather.mock import MockWeatherProvider
from weather_display.weather.schema import ForecastContract

# Wednesday; every canned location is still on 2026-03-04 local time.
FIXED_NOW = dt.datetime(2026, 3, 4, 12, 0, tzinfo=dt.UTC)


def fixed_clock() -> dt.datetime:
    return FIXED_NOW


def make_payload(
    query: str = "london",
    contract: ForecastContract | None = None,
    seed: int = 11,
) -> dict[str, Any]:
    """Contract-shaped JSON dict produced by a seeded mock provider."""
    provider = MockWeatherProvider(
        logging.getLogger("test_payload"),
        contract=contract or ForecastContract(),
        latency_seconds=0,
        rng=random.Random(seed),
        clock=fixed_clock,
    )
    data = asyncio.run(provider.fetch_weather(query))
    return data.model_dump(mode="json")


def to_weatherapi_body(payload: dict[str, Any]) -> dict[str, Any]:
    """Reshape a contract payload into weatherapi.com's response layout."""
    body = copy.deepcopy(payload)
    days = body.pop("forecast")
    for day in days:
        day.pop("label", None)
    body["current"]["last_updated"] = "2026-03-04 12:00"
    body["forecast"] = {"forecastday": days}
    return body


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("weather_display.tests")


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return make_payload()
