"""Provider-agnostic weather interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import WeatherData
from .schema import DEFAULT_CONTRACT, ForecastContract


class WeatherProvider(ABC):
    """Base contract for every weather acquisition strategy.

    Callers depend only on ``fetch_weather``; which strategy sits behind it is
    decided once at startup.
    """

    provider_name: str = "base"

    def __init__(self, contract: ForecastContract = DEFAULT_CONTRACT) -> None:
        self.contract = contract

    async def __aenter__(self) -> WeatherProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    @abstractmethod
    async def fetch_weather(self, query: str) -> WeatherData:
        """Return a validated reading for a place name or ``"<lat>,<lon>"`` pair."""

    async def aclose(self) -> None:
        """Release provider resources."""
