"""Caller-facing weather access with per-location request coalescing."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from .exceptions import WeatherProviderError, WeatherValidationError
from .weather.base import WeatherProvider
from .weather.models import WeatherData
from .weather.query import parse_query

UpdateCallback = Callable[[WeatherData], Awaitable[None] | None]


class WeatherService:
    """Wraps a provider so at most one fetch per location is in flight.

    Concurrent ``get_weather`` calls for the same location share one task and
    all see its result or its exception. Nothing is cached once the task ends.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        logger: logging.Logger,
        *,
        refresh_interval_seconds: float = 600.0,
    ) -> None:
        self.provider = provider
        self.logger = logger
        self.refresh_interval_seconds = refresh_interval_seconds
        self._in_flight: dict[str, asyncio.Task[WeatherData]] = {}

    def in_flight(self) -> list[str]:
        return list(self._in_flight)

    async def get_weather(self, query: str) -> WeatherData:
        key = parse_query(query).key
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch(key, query))
            self._in_flight[key] = task
        else:
            self.logger.debug("Joining in-flight fetch", extra={"location": key})
        # Shielded: one waiter being cancelled must not cancel the shared fetch.
        return await asyncio.shield(task)

    async def _fetch(self, key: str, query: str) -> WeatherData:
        started = time.monotonic()
        try:
            data = await self.provider.fetch_weather(query)
        finally:
            self._in_flight.pop(key, None)
        self.logger.info(
            "Weather fetched",
            extra={
                "provider": self.provider.provider_name,
                "location": data.location.name,
                "elapsed_ms": round((time.monotonic() - started) * 1000),
            },
        )
        return data

    async def auto_refresh(
        self,
        query: str,
        on_update: UpdateCallback,
        *,
        stop: asyncio.Event,
        interval_seconds: float | None = None,
        max_rounds: int | None = None,
    ) -> int:
        """Re-fetch ``query`` every interval until ``stop`` is set or ``max_rounds`` pass.

        Failures are logged and the loop keeps going; the previous reading
        stays with the caller. Returns the number of successful updates.
        """
        interval = (
            interval_seconds if interval_seconds is not None else self.refresh_interval_seconds
        )
        updates = 0
        rounds = 0
        while not stop.is_set():
            rounds += 1
            try:
                data = await self.get_weather(query)
            except (WeatherProviderError, WeatherValidationError) as exc:
                self.logger.warning(
                    "Auto-refresh failed: %s",
                    exc,
                    extra={"provider": self.provider.provider_name, "location": query},
                )
            else:
                result = on_update(data)
                if asyncio.iscoroutine(result):
                    await result
                updates += 1
            if max_rounds is not None and rounds >= max_rounds:
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                continue
        return updates
