"""Tests for settings loading and provider resolution."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from weather_display.config import Settings, load_settings
from weather_display.exceptions import ConfigError, ConfigMissingError
from weather_display.weather.base import WeatherProvider
from weather_display.weather.factory import ProviderKind, build_provider, contract_from_settings
from weather_display.weather.generative import GenerativeWeatherProvider
from weather_display.weather.mock import MockWeatherProvider
from weather_display.weather.schema import ForecastAnchor
from weather_display.weather.weatherapi import WeatherApiProvider

ENV_NAMES = (
    "APP_ENV",
    "LOG_LEVEL",
    "WEATHER_PROVIDER",
    "WEATHER_TIMEOUT_SECONDS",
    "WEATHER_FORECAST_DAYS",
    "WEATHER_FORECAST_ANCHOR",
    "WEATHERAPI_KEY",
    "WEATHERAPI_BASE_URL",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "GENERATIVE_USE_TOOL",
    "GENERATIVE_TEMPERATURE",
    "MOCK_LATENCY_SECONDS",
    "AUTO_REFRESH_SECONDS",
    "FAVORITES_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    settings = Settings()

    assert settings.weather_provider == "mock"
    assert settings.weather_forecast_days == 7
    assert settings.weather_forecast_anchor == "today"
    assert settings.weather_timeout_seconds == 15.0
    assert settings.gemini_model == "gemini-2.0-flash"
    assert settings.generative_use_tool is True
    assert settings.auto_refresh_seconds == 600.0
    assert settings.weatherapi_key is None


def test_env_file_is_read(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "WEATHER_PROVIDER=weatherapi\nWEATHERAPI_KEY=from-dotenv\n", encoding="utf-8"
    )

    settings = Settings()

    assert settings.weather_provider == "weatherapi"
    assert settings.weatherapi_key == "from-dotenv"


def test_empty_keys_count_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHERAPI_KEY", "   ")
    monkeypatch.setenv("GEMINI_API_KEY", "")

    settings = Settings()

    assert settings.weatherapi_key is None
    assert settings.gemini_api_key is None


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("WEATHER_FORECAST_DAYS", "0"),
        ("WEATHER_FORECAST_DAYS", "15"),
        ("WEATHER_FORECAST_ANCHOR", "yesterday"),
        ("WEATHER_PROVIDER", "radar"),
        ("WEATHER_TIMEOUT_SECONDS", "0"),
        ("WEATHERAPI_BASE_URL", "ftp://weather"),
        ("GENERATIVE_TEMPERATURE", "3"),
        ("MOCK_LATENCY_SECONDS", "-1"),
    ],
)
def test_invalid_values_raise_config_error(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        load_settings()


def test_load_settings_creates_favorites_directory(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    target = tmp_path / "state" / "favorites.json"
    monkeypatch.setenv("FAVORITES_PATH", str(target))

    settings = load_settings()

    assert settings.favorites_path == target
    assert target.parent.is_dir()


def test_safe_summary_hides_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHERAPI_KEY", "wa-hidden")
    monkeypatch.setenv("GEMINI_API_KEY", "gm-hidden")

    settings = Settings()
    summary = settings.safe_summary()

    assert summary["weatherapi_key_configured"] is True
    assert summary["gemini_key_configured"] is True
    assert "wa-hidden" not in str(summary)
    assert "gm-hidden" not in repr(settings)


def test_contract_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHER_FORECAST_DAYS", "5")
    monkeypatch.setenv("WEATHER_FORECAST_ANCHOR", "tomorrow")

    contract = contract_from_settings(Settings())

    assert contract.days == 5
    assert contract.anchor is ForecastAnchor.TOMORROW


def _build(settings: Settings, kind: ProviderKind | None = None) -> WeatherProvider:
    provider = build_provider(settings, logging.getLogger("test_factory"), kind)
    asyncio.run(provider.aclose())
    return provider


def test_build_provider_for_each_strategy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEATHERAPI_KEY", "wa-key")
    monkeypatch.setenv("GEMINI_API_KEY", "gm-key")
    monkeypatch.setenv("GENERATIVE_USE_TOOL", "false")
    settings = Settings()

    assert isinstance(_build(settings), MockWeatherProvider)
    assert isinstance(_build(settings, ProviderKind.WEATHERAPI), WeatherApiProvider)
    generative = _build(settings, ProviderKind.GENERATIVE)
    assert isinstance(generative, GenerativeWeatherProvider)
    assert generative.use_tool is False


def test_mock_provider_uses_configured_latency_and_contract(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("MOCK_LATENCY_SECONDS", "0")
    monkeypatch.setenv("WEATHER_FORECAST_DAYS", "3")

    provider = _build(Settings())

    assert provider.latency_seconds == 0
    assert provider.contract.days == 3


@pytest.mark.parametrize(
    ("provider_name", "env_name"),
    [("weatherapi", "WEATHERAPI_KEY"), ("generative", "GEMINI_API_KEY")],
)
def test_missing_credentials_fail_at_startup(
    monkeypatch: pytest.MonkeyPatch, provider_name: str, env_name: str
) -> None:
    monkeypatch.setenv("WEATHER_PROVIDER", provider_name)

    with pytest.raises(ConfigMissingError, match=env_name):
        build_provider(Settings(), logging.getLogger("test_factory"))
