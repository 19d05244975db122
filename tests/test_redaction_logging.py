from __future__ import annotations

import json
import logging

from weather_display.log_setup import JsonConsoleFormatter, setup_logger
from weather_display.redaction import (
    REDACTED,
    redact_secret,
    sanitize_for_logging,
    sanitize_text,
)


def test_query_string_keys_are_redacted() -> None:
    url = "https://api.weatherapi.com/v1/forecast.json?key=abc123&q=London&days=7"

    sanitized = sanitize_text(url)

    assert "abc123" not in sanitized
    assert f"?key={REDACTED}&q=London" in sanitized


def test_bearer_and_header_values_are_redacted() -> None:
    text = "Authorization: Bearer tok.en-value x-goog-api-key=gm-999"

    sanitized = sanitize_text(text)

    assert "tok.en-value" not in sanitized
    assert "gm-999" not in sanitized


def test_known_secret_is_replaced_everywhere() -> None:
    assert redact_secret("API key s3cr3t has been disabled", "s3cr3t") == (
        f"API key {REDACTED} has been disabled"
    )
    assert redact_secret("nothing to hide", None) == "nothing to hide"


def test_nested_structures_are_sanitized() -> None:
    value = {
        "key": "abc",
        "x-goog-api-key": "gm",
        "q": "London",
        "headers": [{"Authorization": "Bearer zzz"}],
        "coords": (51.5, -0.12),
    }

    sanitized = sanitize_for_logging(value)

    assert sanitized["key"] == REDACTED
    assert sanitized["x-goog-api-key"] == REDACTED
    assert sanitized["q"] == "London"
    assert sanitized["headers"] == [{"Authorization": REDACTED}]
    assert sanitized["coords"] == (51.5, -0.12)


def test_json_formatter_includes_context_fields() -> None:
    record = logging.LogRecord(
        name="weather_display",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Request to %s failed",
        args=("https://x.test/forecast.json?key=leaky",),
        exc_info=None,
    )
    record.provider = "weatherapi"
    record.status_code = 503
    record.attempt = 2

    event = json.loads(JsonConsoleFormatter().format(record))

    assert event["level"] == "WARNING"
    assert event["logger"] == "weather_display"
    assert event["provider"] == "weatherapi"
    assert event["status_code"] == 503
    assert "location" not in event
    assert "attempt" not in event
    assert set(event) == {"ts", "level", "logger", "message", "provider", "status_code"}
    assert "leaky" not in event["message"]


def test_setup_logger_accepts_level_names_and_is_idempotent() -> None:
    logger = setup_logger("weather_display.test_setup", "debug")
    again = setup_logger("weather_display.test_setup", logging.WARNING)

    assert again is logger
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert isinstance(logger.handlers[0].formatter, JsonConsoleFormatter)
