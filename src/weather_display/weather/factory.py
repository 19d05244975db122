"""Resolve the configured weather provider strategy once at startup."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from ..exceptions import ConfigMissingError
from .base import WeatherProvider
from .generative import GeminiModelClient, GenerativeWeatherProvider
from .mock import MockWeatherProvider
from .schema import ForecastAnchor, ForecastContract
from .weatherapi import WeatherApiProvider


class ProviderKind(StrEnum):
    """Available acquisition strategies."""

    MOCK = "mock"
    WEATHERAPI = "weatherapi"
    GENERATIVE = "generative"


def contract_from_settings(settings: Any) -> ForecastContract:
    return ForecastContract(
        days=settings.weather_forecast_days,
        anchor=ForecastAnchor(settings.weather_forecast_anchor),
    )


def build_provider(
    settings: Any,
    logger: logging.Logger,
    kind: ProviderKind | None = None,
) -> WeatherProvider:
    """Build the provider named by ``kind`` or ``settings.weather_provider``.

    Raises ``ConfigMissingError`` up front when the chosen strategy's
    credential is absent, so the app never attempts to use it.
    """
    kind = kind or ProviderKind(settings.weather_provider)
    contract = contract_from_settings(settings)

    if kind is ProviderKind.MOCK:
        provider: WeatherProvider = MockWeatherProvider(
            logger,
            contract=contract,
            latency_seconds=settings.mock_latency_seconds,
        )
    elif kind is ProviderKind.WEATHERAPI:
        if not settings.weatherapi_key:
            raise ConfigMissingError("WEATHER_PROVIDER='weatherapi' requires WEATHERAPI_KEY.")
        provider = WeatherApiProvider(settings, logger, contract=contract)
    else:
        if not settings.gemini_api_key:
            raise ConfigMissingError("WEATHER_PROVIDER='generative' requires GEMINI_API_KEY.")
        provider = GenerativeWeatherProvider(
            GeminiModelClient(settings, logger),
            logger,
            contract=contract,
            use_tool=settings.generative_use_tool,
        )

    logger.info(
        "Weather provider resolved: %s (days=%d anchor=%s)",
        kind.value,
        contract.days,
        contract.anchor.value,
        extra={"provider": kind.value},
    )
    return provider
