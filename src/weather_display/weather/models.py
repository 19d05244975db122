"""Typed models for the weather data contract.

Field names follow the weatherapi.com forecast payload so upstream bodies parse
directly. Temperatures are Celsius unless the field name ends in ``_f``.

The models check single fields only. Rules spanning several fields (day
order, high versus low, hourly slots) live in ``schema.validate`` so they are
reported even when a field elsewhere in the same day is also broken.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

Percent = Annotated[float, Field(ge=0, le=100)]
NonNegative = Annotated[float, Field(ge=0)]
Flag = Annotated[int, Field(ge=0, le=1)]

HOURS_PER_DAY = 24


class ContractModel(BaseModel):
    """Base for contract models: immutable, finite numbers, unknown keys dropped."""

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)


class Condition(ContractModel):
    """Condition descriptor shared by current, daily and hourly entries."""

    text: str = Field(min_length=1)
    icon: str
    code: int


class LocationInfo(ContractModel):
    """Where the reading applies."""

    name: str = Field(min_length=1)
    region: str
    country: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    tz_id: str
    localtime: str = Field(min_length=1)


class CurrentConditions(ContractModel):
    """Snapshot of conditions at the time of the reading."""

    temp_c: float
    temp_f: float
    feelslike_c: float
    feelslike_f: float
    is_day: Flag
    condition: Condition
    wind_kph: NonNegative
    wind_mph: NonNegative
    wind_degree: float = Field(ge=0, le=360)
    wind_dir: str
    pressure_mb: NonNegative
    pressure_in: NonNegative
    precip_mm: NonNegative
    precip_in: NonNegative
    humidity: Percent
    cloud: Percent
    uv: NonNegative

    @property
    def description(self) -> str:
        return self.condition.text


class DayAggregates(ContractModel):
    """Day-level aggregates for one forecast day."""

    maxtemp_c: float
    maxtemp_f: float
    mintemp_c: float
    mintemp_f: float
    avgtemp_c: float
    avgtemp_f: float
    maxwind_kph: NonNegative
    totalprecip_mm: NonNegative
    totalsnow_cm: NonNegative
    avghumidity: Percent
    daily_will_it_rain: Flag
    daily_chance_of_rain: Percent
    daily_will_it_snow: Flag
    daily_chance_of_snow: Percent
    condition: Condition
    uv: NonNegative


class Astro(ContractModel):
    """Astronomical data for one forecast day."""

    sunrise: str
    sunset: str
    moonrise: str
    moonset: str
    moon_phase: str
    moon_illumination: Percent


class HourEntry(ContractModel):
    """One hourly forecast slot."""

    time_epoch: int
    time: str = Field(min_length=1)
    temp_c: float
    temp_f: float
    feelslike_c: float
    is_day: Flag
    condition: Condition
    wind_kph: NonNegative
    wind_dir: str
    pressure_mb: NonNegative
    precip_mm: NonNegative
    humidity: Percent
    cloud: Percent
    chance_of_rain: Percent
    chance_of_snow: Percent
    uv: NonNegative


class ForecastDay(ContractModel):
    """One day of the forecast sequence."""

    date: dt.date
    date_epoch: int
    label: str = Field(min_length=1)
    day: DayAggregates
    astro: Astro
    hour: list[HourEntry] = Field(default_factory=list)

    @property
    def high(self) -> float:
        return self.day.maxtemp_c

    @property
    def low(self) -> float:
        return self.day.mintemp_c

    @property
    def description(self) -> str:
        return self.day.condition.text


class DetailedStats(ContractModel):
    """Headline numbers shown next to the current temperature."""

    humidity: Percent
    wind_kph: NonNegative
    chance_of_rain: Percent


class WeatherData(ContractModel):
    """Full reading returned for one location query."""

    location: LocationInfo
    current: CurrentConditions
    forecast: list[ForecastDay]

    @property
    def details(self) -> DetailedStats:
        chance = self.forecast[0].day.daily_chance_of_rain if self.forecast else 0.0
        return DetailedStats(
            humidity=self.current.humidity,
            wind_kph=self.current.wind_kph,
            chance_of_rain=chance,
        )
