"""In-memory weather generator used when no real backend is configured."""

from __future__ import annotations

import asyncio
import copy
import datetime as dt
import logging
import math
import random
from collections.abc import Callable
from typing import Any
from zoneinfo import ZoneInfo

from .base import WeatherProvider
from .models import HOURS_PER_DAY, WeatherData
from .query import parse_query
from .schema import (
    DEFAULT_CONTRACT,
    HOUR_TIME_FORMAT,
    ForecastAnchor,
    ForecastContract,
    day_label,
    validate,
)

# text -> (weatherapi condition code, icon id)
CONDITIONS: dict[str, tuple[int, int]] = {
    "Sunny": (1000, 113),
    "Clear": (1000, 113),
    "Partly Cloudy": (1003, 116),
    "Cloudy": (1006, 119),
    "Rainy": (1183, 296),
    "Storm": (1276, 389),
    "Snow": (1213, 332),
    "Thunder": (1087, 200),
    "Thunderstorm": (1276, 389),
}
CONDITION_VOCABULARY: tuple[str, ...] = tuple(CONDITIONS)

_WET = {"Rainy", "Storm", "Thunder", "Thunderstorm"}
_MOON_PHASES = (
    "New Moon",
    "Waxing Crescent",
    "First Quarter",
    "Waxing Gibbous",
    "Full Moon",
    "Waning Gibbous",
    "Last Quarter",
    "Waning Crescent",
)
_WIND_DIRS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

DEFAULT_KEY = "minsk"

# Canned readings keyed by lower-cased location name. `temp_range` bounds the
# randomly drawn daily highs.
MOCK_TABLE: dict[str, dict[str, Any]] = {
    "minsk": {
        "location": {
            "name": "Minsk",
            "region": "Minsk",
            "country": "Belarus",
            "lat": 53.9,
            "lon": 27.57,
            "tz_id": "Europe/Minsk",
        },
        "current": {"temp_c": 21, "description": "Thunderstorm", "humidity": 24, "wind_kph": 13},
        "today": {"high": 23, "low": 18, "chance_of_rain": 87},
        "temp_range": (17, 23),
    },
    "new york": {
        "location": {
            "name": "New York",
            "region": "New York",
            "country": "United States of America",
            "lat": 40.71,
            "lon": -74.01,
            "tz_id": "America/New_York",
        },
        "current": {"temp_c": 22, "description": "Partly Cloudy", "humidity": 60, "wind_kph": 10},
        "today": {"high": 24, "low": 18, "chance_of_rain": 20},
        "temp_range": (18, 24),
    },
    "london": {
        "location": {
            "name": "London",
            "region": "City of London, Greater London",
            "country": "United Kingdom",
            "lat": 51.52,
            "lon": -0.11,
            "tz_id": "Europe/London",
        },
        "current": {"temp_c": 16, "description": "Rainy", "humidity": 85, "wind_kph": 15},
        "today": {"high": 17, "low": 13, "chance_of_rain": 80},
        "temp_range": (13, 17),
    },
    "tokyo": {
        "location": {
            "name": "Tokyo",
            "region": "Tokyo",
            "country": "Japan",
            "lat": 35.69,
            "lon": 139.69,
            "tz_id": "Asia/Tokyo",
        },
        "current": {"temp_c": 27, "description": "Sunny", "humidity": 70, "wind_kph": 5},
        "today": {"high": 29, "low": 24, "chance_of_rain": 10},
        "temp_range": (24, 29),
    },
    "sydney": {
        "location": {
            "name": "Sydney",
            "region": "New South Wales",
            "country": "Australia",
            "lat": -33.88,
            "lon": 151.22,
            "tz_id": "Australia/Sydney",
        },
        "current": {"temp_c": 20, "description": "Clear", "humidity": 50, "wind_kph": 12},
        "today": {"high": 21, "low": 16, "chance_of_rain": 5},
        "temp_range": (16, 21),
    },
    "current location": {
        "location": {
            "name": "Current Location",
            "region": "",
            "country": "",
            "lat": 0.0,
            "lon": 0.0,
            "tz_id": "UTC",
        },
        "current": {"temp_c": 26, "description": "Sunny", "humidity": 55, "wind_kph": 8},
        "today": {"high": 28, "low": 20, "chance_of_rain": 15},
        "temp_range": (20, 28),
    },
}


def _to_f(celsius: float) -> float:
    return round(celsius * 9 / 5 + 32, 1)


def _condition(text: str, is_day: bool = True) -> dict[str, Any]:
    code, icon_id = CONDITIONS[text]
    period = "day" if is_day else "night"
    return {
        "text": text,
        "icon": f"//cdn.weatherapi.com/weather/64x64/{period}/{icon_id}.png",
        "code": code,
    }


def _exists(wall: dt.datetime) -> bool:
    round_trip = wall.astimezone(dt.UTC).astimezone(wall.tzinfo)
    return round_trip.replace(tzinfo=None) == wall.replace(tzinfo=None)


def local_hours(day: dt.date, zone: ZoneInfo) -> list[tuple[dt.datetime, int]]:
    """The wall-clock hours 00:00..23:00 of ``day`` paired with ascending epochs.

    A repeated hour resolves to its first occurrence. An hour skipped by a DST
    jump has no instant of its own and is pinned halfway between its neighbours.
    """
    walls = [
        dt.datetime.combine(day, dt.time(hour), tzinfo=zone) for hour in range(HOURS_PER_DAY)
    ]
    epochs: list[int | None] = [
        int(wall.timestamp()) if _exists(wall) else None for wall in walls
    ]
    for index, epoch in enumerate(epochs):
        if epoch is not None:
            continue
        before = epochs[index - 1] if index > 0 else None
        after = next((later for later in epochs[index + 1 :] if later is not None), None)
        if before is not None and after is not None:
            epochs[index] = (before + after) // 2
        elif before is not None:
            epochs[index] = before + 1800
        elif after is not None:
            epochs[index] = after - 1800
    return [(wall, epoch) for wall, epoch in zip(walls, epochs) if epoch is not None]


class MockWeatherProvider(WeatherProvider):
    """Serves canned readings with a freshly randomized forecast on every call.

    Unknown locations map to the default reading instead of failing, so a
    caller cannot tell an unknown city from a known one under this strategy.
    """

    provider_name = "mock"

    def __init__(
        self,
        logger: logging.Logger,
        *,
        contract: ForecastContract = DEFAULT_CONTRACT,
        latency_seconds: float = 0.5,
        rng: random.Random | None = None,
        clock: Callable[[], dt.datetime] | None = None,
    ) -> None:
        super().__init__(contract)
        self.logger = logger
        self.latency_seconds = latency_seconds
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: dt.datetime.now(dt.UTC))

    def is_known(self, query: str) -> bool:
        """Whether ``query`` has its own canned reading."""
        return parse_query(query).key in MOCK_TABLE

    async def fetch_weather(self, query: str) -> WeatherData:
        parsed = parse_query(query)
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        canned = MOCK_TABLE.get(parsed.key)
        if canned is None:
            self.logger.info(
                "Mock table has no entry for %r; serving default reading",
                parsed.text,
                extra={"provider": self.provider_name},
            )
            record = copy.deepcopy(MOCK_TABLE[DEFAULT_KEY])
            record["location"]["name"] = parsed.text
            if parsed.is_coordinates:
                record["location"]["lat"] = parsed.lat
                record["location"]["lon"] = parsed.lon
        else:
            record = copy.deepcopy(canned)

        return validate(self._build_payload(record), self.contract)

    def _build_payload(self, record: dict[str, Any]) -> dict[str, Any]:
        location = record["location"]
        zone = ZoneInfo(location["tz_id"])
        local_now = self._clock().astimezone(zone)
        location["localtime"] = local_now.strftime("%Y-%m-%d %H:%M")

        current = record["current"]
        is_day = 6 <= local_now.hour < 20
        wind_kph = float(current["wind_kph"])
        temp_c = float(current["temp_c"])
        current_payload = {
            "temp_c": temp_c,
            "temp_f": _to_f(temp_c),
            "feelslike_c": temp_c,
            "feelslike_f": _to_f(temp_c),
            "is_day": int(is_day),
            "condition": _condition(current["description"], is_day),
            "wind_kph": wind_kph,
            "wind_mph": round(wind_kph / 1.609, 1),
            "wind_degree": float(self._rng.randint(0, 359)),
            "wind_dir": self._rng.choice(_WIND_DIRS),
            "pressure_mb": float(self._rng.randint(995, 1030)),
            "pressure_in": 0.0,
            "precip_mm": 0.0,
            "precip_in": 0.0,
            "humidity": float(current["humidity"]),
            "cloud": float(self._rng.randint(0, 100)),
            "uv": float(self._rng.randint(0, 8)),
        }
        current_payload["pressure_in"] = round(current_payload["pressure_mb"] * 0.02953, 2)

        forecast = []
        for index, day in enumerate(self.contract.dates(local_now.date())):
            is_today = index == 0 and self.contract.anchor is ForecastAnchor.TODAY
            forecast.append(
                self._forecast_day(
                    index,
                    day,
                    zone,
                    temp_range=record["temp_range"],
                    today=(record["today"], current["description"]) if is_today else None,
                )
            )
        return {"location": location, "current": current_payload, "forecast": forecast}

    def _forecast_day(
        self,
        index: int,
        day: dt.date,
        zone: ZoneInfo,
        *,
        temp_range: tuple[int, int],
        today: tuple[dict[str, Any], str] | None,
    ) -> dict[str, Any]:
        rng = self._rng
        if today is not None:
            canned, text = today
            high, low = float(canned["high"]), float(canned["low"])
            chance_of_rain = float(canned["chance_of_rain"])
        else:
            text = rng.choice(CONDITION_VOCABULARY)
            high = float(rng.randint(temp_range[0], temp_range[1] + 4))
            low = high - rng.randint(5, 9)
            chance_of_rain = float(rng.randint(50, 95) if text in _WET else rng.randint(0, 30))
        chance_of_snow = float(rng.randint(60, 90)) if text == "Snow" else 0.0
        wet = text in _WET
        total_precip = round(rng.uniform(1, 15), 1) if wet else 0.0
        avg = round((high + low) / 2, 1)
        slots = local_hours(day, zone)

        return {
            "date": day.isoformat(),
            "date_epoch": slots[0][1],
            "label": day_label(index, day, self.contract.anchor),
            "day": {
                "maxtemp_c": high,
                "maxtemp_f": _to_f(high),
                "mintemp_c": low,
                "mintemp_f": _to_f(low),
                "avgtemp_c": avg,
                "avgtemp_f": _to_f(avg),
                "maxwind_kph": float(rng.randint(5, 30)),
                "totalprecip_mm": total_precip,
                "totalsnow_cm": round(rng.uniform(1, 10), 1) if text == "Snow" else 0.0,
                "avghumidity": float(rng.randint(35, 95)),
                "daily_will_it_rain": int(chance_of_rain >= 50),
                "daily_chance_of_rain": chance_of_rain,
                "daily_will_it_snow": int(chance_of_snow >= 50),
                "daily_chance_of_snow": chance_of_snow,
                "condition": _condition(text),
                "uv": float(rng.randint(0, 8)),
            },
            "astro": {
                "sunrise": "06:12 AM",
                "sunset": "08:41 PM",
                "moonrise": "10:05 PM",
                "moonset": "08:17 AM",
                "moon_phase": _MOON_PHASES[day.toordinal() % len(_MOON_PHASES)],
                "moon_illumination": float(rng.randint(0, 100)),
            },
            "hour": [
                self._hour(wall, epoch, high, low, text, chance_of_rain, chance_of_snow)
                for wall, epoch in slots
            ],
        }

    def _hour(
        self,
        wall: dt.datetime,
        epoch: int,
        high: float,
        low: float,
        text: str,
        chance_of_rain: float,
        chance_of_snow: float,
    ) -> dict[str, Any]:
        # Warmest at 15:00, coldest at 03:00.
        hour = wall.hour
        fraction = (1 + math.cos(2 * math.pi * (hour - 15) / HOURS_PER_DAY)) / 2
        temp_c = round(low + (high - low) * fraction, 1)
        is_day = 6 <= hour < 20
        return {
            "time_epoch": epoch,
            "time": wall.strftime(HOUR_TIME_FORMAT),
            "temp_c": temp_c,
            "temp_f": _to_f(temp_c),
            "feelslike_c": temp_c,
            "is_day": int(is_day),
            "condition": _condition(text, is_day),
            "wind_kph": float(self._rng.randint(0, 30)),
            "wind_dir": self._rng.choice(_WIND_DIRS),
            "pressure_mb": float(self._rng.randint(995, 1030)),
            "precip_mm": round(self._rng.uniform(0, 2), 1) if text in _WET else 0.0,
            "humidity": float(self._rng.randint(30, 100)),
            "cloud": float(self._rng.randint(0, 100)),
            "chance_of_rain": chance_of_rain,
            "chance_of_snow": chance_of_snow,
            "uv": float(self._rng.randint(0, 8)) if is_day else 0.0,
        }
