"""Weather data contract and interchangeable acquisition strategies."""

from .base import WeatherProvider
from .factory import ProviderKind, build_provider, contract_from_settings
from .generative import GeminiModelClient, GenerativeWeatherProvider, TextModelClient
from .mock import CONDITION_VOCABULARY, MockWeatherProvider
from .models import (
    Astro,
    Condition,
    CurrentConditions,
    DayAggregates,
    DetailedStats,
    ForecastDay,
    HourEntry,
    LocationInfo,
    WeatherData,
)
from .query import LocationQuery, parse_query
from .schema import ForecastAnchor, ForecastContract, day_label, validate
from .weatherapi import WeatherApiProvider

__all__ = [
    "CONDITION_VOCABULARY",
    "Astro",
    "Condition",
    "CurrentConditions",
    "DayAggregates",
    "DetailedStats",
    "ForecastAnchor",
    "ForecastContract",
    "ForecastDay",
    "GeminiModelClient",
    "GenerativeWeatherProvider",
    "HourEntry",
    "LocationInfo",
    "LocationQuery",
    "MockWeatherProvider",
    "ProviderKind",
    "TextModelClient",
    "WeatherApiProvider",
    "WeatherData",
    "WeatherProvider",
    "build_provider",
    "contract_from_settings",
    "day_label",
    "parse_query",
    "validate",
]
