"""Weather provider backed by a generative text model instead of a weather API.

The model is asked for JSON constrained to the weather contract schema. In tool
mode it first sees a ``get_weather`` function declaration and the structured
generation only runs once the model calls it. Model output is untrusted and
always goes through ``validate`` before it reaches a caller.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..exceptions import ConfigMissingError, GenerationFailedError, UpstreamFailureError
from ..redaction import redact_secret
from .base import WeatherProvider
from .models import HOURS_PER_DAY, WeatherData
from .query import parse_query
from .schema import DEFAULT_CONTRACT, ForecastAnchor, ForecastContract, validate


@dataclass(frozen=True)
class ToolDeclaration:
    """A function the model may ask the caller to invoke."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelReply:
    """Text and tool calls extracted from one model turn."""

    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


WEATHER_TOOL = ToolDeclaration(
    name="get_weather",
    description="Returns current conditions and a daily forecast for a location.",
    parameters={
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "Place name or 'lat,lon' pair to get weather for.",
            }
        },
        "required": ["location"],
    },
)


class TextModelClient(ABC):
    """Minimal interface over a generative text model."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        tools: Sequence[ToolDeclaration] = (),
    ) -> ModelReply:
        """Run one model turn, optionally constrained to a JSON schema."""

    async def aclose(self) -> None:
        """Release client resources."""


class GeminiModelClient(TextModelClient):
    """Calls the Gemini ``generateContent`` REST endpoint over httpx."""

    def __init__(
        self,
        settings: Any,
        logger: logging.Logger,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.logger = logger
        self._api_key: str | None = settings.gemini_api_key
        self._temperature = settings.generative_temperature
        base_url = settings.gemini_base_url.rstrip("/")
        self._url = f"{base_url}/models/{settings.gemini_model}:generateContent"
        self._client = httpx.AsyncClient(
            timeout=settings.weather_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(
        self,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        tools: Sequence[ToolDeclaration] = (),
    ) -> ModelReply:
        if not self._api_key:
            raise ConfigMissingError(
                "GEMINI_API_KEY is not configured; the generative provider cannot be used."
            )

        generation_config: dict[str, Any] = {"temperature": self._temperature}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseJsonSchema"] = response_schema
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if tools:
            body["tools"] = [
                {
                    "functionDeclarations": [
                        {
                            "name": tool.name,
                            "description": tool.description,
                            "parameters": tool.parameters,
                        }
                        for tool in tools
                    ]
                }
            ]

        try:
            response = await self._client.post(
                self._url, json=body, headers={"x-goog-api-key": self._api_key}
            )
        except httpx.HTTPError as exc:
            raise UpstreamFailureError(
                f"Model request failed: {redact_secret(str(exc), self._api_key)}"
            ) from exc

        if not response.is_success:
            status = response.status_code
            self.logger.warning(
                "Model endpoint responded with HTTP %d",
                status,
                extra={"provider": "generative", "status_code": status},
            )
            raise UpstreamFailureError(
                f"Model request failed with status {status}: "
                f"{redact_secret(response.text[:300], self._api_key)}",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFailureError(
                "Model endpoint returned a non-JSON response.",
                status_code=response.status_code,
            ) from exc
        return self._parse_reply(payload)

    @staticmethod
    def _parse_reply(payload: Any) -> ModelReply:
        candidates = payload.get("candidates") if isinstance(payload, dict) else None
        if not isinstance(candidates, list) or not candidates:
            return ModelReply()
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ModelReply()

        texts: list[str] = []
        calls: list[ToolCall] = []
        for part in parts:
            if not isinstance(part, dict):
                continue
            if isinstance(part.get("text"), str):
                texts.append(part["text"])
            call = part.get("functionCall")
            if isinstance(call, dict) and isinstance(call.get("name"), str):
                args = call.get("args")
                calls.append(ToolCall(call["name"], args if isinstance(args, dict) else {}))
        return ModelReply(text="".join(texts) or None, tool_calls=calls)


def weather_response_schema() -> dict[str, Any]:
    """JSON schema the model output is constrained to."""
    return WeatherData.model_json_schema()


def build_weather_prompt(location: str, contract: ForecastContract, now: dt.datetime) -> str:
    """Instruction asking the model to act as a weather API for ``location``.

    Only the model knows where ``location`` is, so the prompt gives the current
    UTC time and leaves the local date of the place to the model.
    """
    now_utc = now.astimezone(dt.UTC)
    start = "today" if contract.anchor is ForecastAnchor.TODAY else "tomorrow"
    return (
        "Act as a weather API and answer only with JSON matching the supplied schema.\n"
        f"Produce realistic current conditions and a {contract.days}-day forecast for: "
        f"{location}\n"
        f"The current time is {now_utc:%A %Y-%m-%d %H:%M} UTC. Work out today's date in "
        f"the local time zone of {location}; the forecast starts {start} by that local "
        "date and lists consecutive dates in ascending order.\n"
        f"Set the first entry's label to '{contract.anchor.label}' and every later "
        "label to the 3-letter weekday abbreviation (Mon, Tue, Wed, ...).\n"
        f"Each day needs {HOURS_PER_DAY} hourly entries from 00:00 to 23:00 in ascending "
        "order, each time written as 'YYYY-MM-DD HH:MM' on that day's date. "
        "Temperatures are Celsius except fields ending in _f, which are "
        "Fahrenheit. Percentages are between 0 and 100, and maxtemp_c must not be below "
        "mintemp_c."
    )


class GenerativeWeatherProvider(WeatherProvider):
    """Produces readings by prompting a text model for contract-shaped JSON."""

    provider_name = "generative"

    def __init__(
        self,
        client: TextModelClient,
        logger: logging.Logger,
        *,
        contract: ForecastContract = DEFAULT_CONTRACT,
        use_tool: bool = True,
        clock: Callable[[], dt.datetime] | None = None,
    ) -> None:
        super().__init__(contract)
        self.client = client
        self.logger = logger
        self.use_tool = use_tool
        self._clock = clock or (lambda: dt.datetime.now(dt.UTC))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch_weather(self, query: str) -> WeatherData:
        parsed = parse_query(query)
        if not self.use_tool:
            return await self.generate_weather(parsed.text)

        reply = await self.client.generate(
            f"What is the weather in {parsed.text}?", tools=[WEATHER_TOOL]
        )
        call = next((c for c in reply.tool_calls if c.name == WEATHER_TOOL.name), None)
        if call is None:
            raise GenerationFailedError("The model did not request weather data.")
        location = call.args.get("location")
        if not isinstance(location, str) or not location.strip():
            location = parsed.text
        self.logger.info(
            "Model invoked %s",
            WEATHER_TOOL.name,
            extra={"provider": self.provider_name, "location": location},
        )
        return await self.generate_weather(location)

    async def generate_weather(self, location: str) -> WeatherData:
        """Body of the ``get_weather`` tool: one schema-constrained generation."""
        reply = await self.client.generate(
            build_weather_prompt(location, self.contract, self._clock()),
            response_schema=weather_response_schema(),
        )
        if reply.text is None or not reply.text.strip():
            raise GenerationFailedError("The model returned no weather data.")
        try:
            candidate = json.loads(reply.text)
        except json.JSONDecodeError as exc:
            raise GenerationFailedError(f"The model returned invalid JSON: {exc}") from exc
        return validate(candidate, self.contract)
