"""weatherapi.com forecast provider implementation."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

import httpx

from ..exceptions import ConfigMissingError, UpstreamFailureError
from ..redaction import redact_secret
from .base import WeatherProvider
from .models import WeatherData
from .query import parse_query
from .schema import DEFAULT_CONTRACT, ForecastContract, day_label, validate


class WeatherApiProvider(WeatherProvider):
    """Fetches one forecast per query from weatherapi.com's ``forecast.json``.

    Single best-effort request: no retries, caching or rate limiting.
    """

    provider_name = "weatherapi"

    def __init__(
        self,
        settings: Any,
        logger: logging.Logger,
        *,
        contract: ForecastContract = DEFAULT_CONTRACT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(contract)
        self.settings = settings
        self.logger = logger
        self._api_key: str | None = settings.weatherapi_key
        self._require_key()
        self._base_url = settings.weatherapi_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=settings.weather_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigMissingError(
                "WEATHERAPI_KEY is not configured; the weatherapi provider cannot be used."
            )

    async def fetch_weather(self, query: str) -> WeatherData:
        self._require_key()
        parsed = parse_query(query)
        # Anchoring on tomorrow means requesting one extra day and dropping today.
        requested_days = self.contract.days + self.contract.anchor.offset_days
        params = {
            "key": self._api_key,
            "q": parsed.text,
            "days": requested_days,
            "aqi": "no",
            "alerts": "no",
        }
        self.logger.info(
            "Requesting weatherapi forecast days=%d",
            requested_days,
            extra={"provider": self.provider_name, "location": parsed.text},
        )
        payload = await self._request_json(f"{self._base_url}/forecast.json", params)
        return validate(self._to_contract(payload), self.contract)

    async def _request_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFailureError(
                f"weatherapi request failed: {self._redact(str(exc))}"
            ) from exc

        if not response.is_success:
            status = response.status_code
            self.logger.warning(
                "weatherapi responded with HTTP %d",
                status,
                extra={"provider": self.provider_name, "status_code": status},
            )
            raise UpstreamFailureError(
                f"weatherapi forecast failed with status {status}: "
                f"{self._redact(self._error_message(response))}",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFailureError(
                "weatherapi returned a non-JSON response.",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamFailureError(
                f"weatherapi returned unexpected payload type {type(payload).__name__}.",
                status_code=response.status_code,
            )
        return payload

    def _to_contract(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Flatten ``forecast.forecastday`` and attach display labels."""
        forecast = payload.get("forecast")
        raw_days = forecast.get("forecastday") if isinstance(forecast, dict) else None
        days: list[Any] = list(raw_days) if isinstance(raw_days, list) else []
        days = days[self.contract.anchor.offset_days :]

        labelled = []
        for index, entry in enumerate(days):
            if not isinstance(entry, dict):
                labelled.append(entry)
                continue
            entry = dict(entry)
            day = self._parse_date(entry.get("date"))
            if day is not None:
                entry["label"] = day_label(index, day, self.contract.anchor)
            labelled.append(entry)

        return {
            "location": payload.get("location"),
            "current": payload.get("current"),
            "forecast": labelled,
        }

    def _redact(self, text: str) -> str:
        return redact_secret(text, self._api_key)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:300]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return response.text[:300]

    @staticmethod
    def _parse_date(value: Any) -> dt.date | None:
        if not isinstance(value, str):
            return None
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            return None
