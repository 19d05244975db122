"""Application exception classes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class ProviderErrorKind(StrEnum):
    """Failure categories shared by every weather provider strategy."""

    CONFIG_MISSING = "config_missing"
    UPSTREAM_FAILURE = "upstream_failure"
    GENERATION_FAILED = "generation_failed"
    INVALID_QUERY = "invalid_query"


class WeatherProviderError(Exception):
    """Raised when a weather provider cannot produce a reading."""

    kind: ProviderErrorKind = ProviderErrorKind.UPSTREAM_FAILURE

    def __init__(
        self,
        message: str,
        *,
        kind: ProviderErrorKind | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.status_code = status_code


class ConfigMissingError(WeatherProviderError):
    """Raised when a strategy's required credential is not configured."""

    kind = ProviderErrorKind.CONFIG_MISSING


class UpstreamFailureError(WeatherProviderError):
    """Raised for non-success or unreadable responses from a remote source."""

    kind = ProviderErrorKind.UPSTREAM_FAILURE


class GenerationFailedError(WeatherProviderError):
    """Raised when a text model returns no usable structured output."""

    kind = ProviderErrorKind.GENERATION_FAILED


class InvalidQueryError(WeatherProviderError):
    """Raised when a location query is empty or has impossible coordinates."""

    kind = ProviderErrorKind.INVALID_QUERY


@dataclass(frozen=True)
class FieldViolation:
    """One failed schema check, addressed by dotted field path."""

    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class WeatherValidationError(Exception):
    """Raised when a candidate reading fails the weather data contract."""

    def __init__(self, violations: list[FieldViolation]) -> None:
        self.violations = list(violations)
        preview = "; ".join(str(item) for item in self.violations[:5])
        extra = len(self.violations) - 5
        if extra > 0:
            preview += f"; ... {extra} more"
        super().__init__(
            f"Weather data failed validation ({len(self.violations)} violation(s)): {preview}"
        )

    @property
    def fields(self) -> list[str]:
        return [item.field for item in self.violations]


class FavoritesError(Exception):
    """Raised when the favorites store cannot be read or written."""
