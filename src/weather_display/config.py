"""Typed settings loader for the weather display application."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

MAX_FORECAST_DAYS = 14


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    weather_provider: Literal["mock", "weatherapi", "generative"] = Field(
        default="mock",
        alias="WEATHER_PROVIDER",
    )
    weather_timeout_seconds: float = Field(default=15.0, alias="WEATHER_TIMEOUT_SECONDS")
    weather_forecast_days: int = Field(default=7, alias="WEATHER_FORECAST_DAYS")
    weather_forecast_anchor: Literal["today", "tomorrow"] = Field(
        default="today",
        alias="WEATHER_FORECAST_ANCHOR",
    )

    weatherapi_key: str | None = Field(default=None, alias="WEATHERAPI_KEY", repr=False)
    weatherapi_base_url: str = Field(
        default="https://api.weatherapi.com/v1",
        alias="WEATHERAPI_BASE_URL",
    )

    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY", repr=False)
    gemini_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    generative_use_tool: bool = Field(default=True, alias="GENERATIVE_USE_TOOL")
    generative_temperature: float = Field(default=0.8, alias="GENERATIVE_TEMPERATURE")

    mock_latency_seconds: float = Field(default=0.5, alias="MOCK_LATENCY_SECONDS")
    auto_refresh_seconds: float = Field(default=600.0, alias="AUTO_REFRESH_SECONDS")
    favorites_path: Path = Field(default=Path("./data/favorites.json"), alias="FAVORITES_PATH")

    @field_validator("weatherapi_key", "gemini_api_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string credentials as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric bounds and endpoint shapes."""
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if not (1 <= self.weather_forecast_days <= MAX_FORECAST_DAYS):
            raise ValueError(
                f"WEATHER_FORECAST_DAYS must be between 1 and {MAX_FORECAST_DAYS}."
            )
        if not self.weatherapi_base_url.startswith(("http://", "https://")):
            raise ValueError("WEATHERAPI_BASE_URL must be an http(s) URL.")
        if not self.gemini_base_url.startswith(("http://", "https://")):
            raise ValueError("GEMINI_BASE_URL must be an http(s) URL.")
        if not self.gemini_model.strip():
            raise ValueError("GEMINI_MODEL must not be empty.")
        if not (0 <= self.generative_temperature <= 2):
            raise ValueError("GENERATIVE_TEMPERATURE must be between 0 and 2.")
        if self.mock_latency_seconds < 0:
            raise ValueError("MOCK_LATENCY_SECONDS must be >= 0.")
        if self.auto_refresh_seconds <= 0:
            raise ValueError("AUTO_REFRESH_SECONDS must be > 0.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "app_env": self.app_env,
            "weather_provider": self.weather_provider,
            "weather_forecast_days": self.weather_forecast_days,
            "weather_forecast_anchor": self.weather_forecast_anchor,
            "weather_timeout_seconds": self.weather_timeout_seconds,
            "weatherapi_key_configured": self.weatherapi_key is not None,
            "gemini_key_configured": self.gemini_api_key is not None,
            "gemini_model": self.gemini_model,
            "generative_use_tool": self.generative_use_tool,
            "favorites_path": str(self.favorites_path),
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc

    settings.favorites_path.parent.mkdir(parents=True, exist_ok=True)
    return settings
