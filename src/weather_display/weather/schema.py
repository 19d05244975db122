"""Forecast contract and structural validation of weather readings."""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from ..exceptions import FieldViolation, WeatherValidationError
from .models import HOURS_PER_DAY, WeatherData

ROOT_FIELD = "weather_data"
HOUR_TIME_FORMAT = "%Y-%m-%d %H:%M"


class ForecastAnchor(StrEnum):
    """Which day the first forecast entry describes."""

    TODAY = "today"
    TOMORROW = "tomorrow"

    @property
    def label(self) -> str:
        return "Today" if self is ForecastAnchor.TODAY else "Tomorrow"

    @property
    def offset_days(self) -> int:
        return 0 if self is ForecastAnchor.TODAY else 1


@dataclass(frozen=True)
class ForecastContract:
    """Versioned forecast shape: how many days, starting from which anchor."""

    days: int = 7
    anchor: ForecastAnchor = ForecastAnchor.TODAY

    def __post_init__(self) -> None:
        if self.days <= 0:
            raise ValueError("ForecastContract.days must be > 0.")

    def first_date(self, local_today: dt.date) -> dt.date:
        return local_today + dt.timedelta(days=self.anchor.offset_days)

    def dates(self, local_today: dt.date) -> list[dt.date]:
        start = self.first_date(local_today)
        return [start + dt.timedelta(days=offset) for offset in range(self.days)]


DEFAULT_CONTRACT = ForecastContract()


def day_label(index: int, day: dt.date, anchor: ForecastAnchor) -> str:
    """Display label for the forecast entry at ``index``."""
    if index == 0:
        return anchor.label
    return day.strftime("%a")


def validate(
    candidate: Any,
    contract: ForecastContract = DEFAULT_CONTRACT,
) -> WeatherData:
    """Check ``candidate`` against the weather contract.

    Returns a conformant ``WeatherData`` instance unchanged, or parses a
    conformant mapping. Otherwise raises ``WeatherValidationError`` listing
    every violation found, not just the first.
    """
    if isinstance(candidate, WeatherData):
        violations = _forecast_violations(
            [day.model_dump() for day in candidate.forecast], contract
        )
        if violations:
            raise WeatherValidationError(violations)
        return candidate

    if not isinstance(candidate, Mapping):
        raise WeatherValidationError(
            [FieldViolation(ROOT_FIELD, f"expected an object, got {type(candidate).__name__}")]
        )

    violations: list[FieldViolation] = []
    parsed: WeatherData | None = None
    try:
        parsed = WeatherData.model_validate(candidate)
    except ValidationError as exc:
        violations.extend(_from_pydantic(exc))

    forecast = candidate.get("forecast")
    if isinstance(forecast, Sequence) and not isinstance(forecast, (str, bytes)):
        violations.extend(_forecast_violations(forecast, contract))

    if violations or parsed is None:
        raise WeatherValidationError(violations)
    return parsed


def _from_pydantic(exc: ValidationError) -> list[FieldViolation]:
    violations = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or ROOT_FIELD
        violations.append(FieldViolation(path, error["msg"]))
    return violations


def _forecast_violations(
    forecast: Sequence[Any],
    contract: ForecastContract,
) -> list[FieldViolation]:
    """Contract shape plus the rules that span several fields of the raw forecast."""
    violations = []
    if len(forecast) != contract.days:
        violations.append(
            FieldViolation(
                "forecast",
                f"expected exactly {contract.days} days, got {len(forecast)}",
            )
        )
    if forecast:
        label = _raw_label(forecast[0])
        if label is not None and label != contract.anchor.label:
            violations.append(
                FieldViolation(
                    "forecast.0.label",
                    f"first entry must be labelled {contract.anchor.label!r}, got {label!r}",
                )
            )

    previous: dt.date | None = None
    for index, entry in enumerate(forecast):
        if not isinstance(entry, Mapping):
            continue
        day = _as_date(entry.get("date"))
        if day is not None:
            if previous is not None and day <= previous:
                violations.append(
                    FieldViolation(
                        "forecast",
                        f"forecast days are not in ascending date order "
                        f"(entry {index} is {day}, after {previous})",
                    )
                )
            previous = day

        aggregates = entry.get("day")
        if isinstance(aggregates, Mapping):
            high = _as_number(aggregates.get("maxtemp_c"))
            low = _as_number(aggregates.get("mintemp_c"))
            if high is not None and low is not None and high < low:
                violations.append(
                    FieldViolation(
                        f"forecast.{index}.day.maxtemp_c",
                        f"maxtemp_c ({high:g}) is below mintemp_c ({low:g})",
                    )
                )

        hours = entry.get("hour")
        if isinstance(hours, Sequence) and not isinstance(hours, (str, bytes)):
            violations.extend(_hour_violations(f"forecast.{index}.hour", hours, day))
    return violations


def _hour_violations(
    path: str,
    hours: Sequence[Any],
    day: dt.date | None,
) -> list[FieldViolation]:
    if not hours:
        return []
    violations = []
    if len(hours) != HOURS_PER_DAY:
        violations.append(
            FieldViolation(path, f"expected {HOURS_PER_DAY} hourly entries, got {len(hours)}")
        )

    epochs: list[float | None] = []
    stamps: list[dt.datetime | None] = []
    for position, entry in enumerate(hours):
        raw = entry if isinstance(entry, Mapping) else {}
        epochs.append(_as_number(raw.get("time_epoch")))
        stamp = None
        time_text = raw.get("time")
        if isinstance(time_text, str) and time_text:
            try:
                stamp = dt.datetime.strptime(time_text.strip(), HOUR_TIME_FORMAT)
            except ValueError:
                violations.append(
                    FieldViolation(
                        f"{path}.{position}.time",
                        f"expected 'YYYY-MM-DD HH:MM', got {time_text!r}",
                    )
                )
        if stamp is not None and day is not None and stamp.date() != day:
            violations.append(
                FieldViolation(f"{path}.{position}.time", f"{time_text!r} is outside {day}")
            )
        stamps.append(stamp)

    if _out_of_order(epochs) or _out_of_order(stamps):
        violations.append(FieldViolation(path, "hourly entries are not in ascending time order"))
    return violations


def _out_of_order(values: Sequence[Any]) -> bool:
    return any(
        earlier is not None and later is not None and later <= earlier
        for earlier, later in zip(values, values[1:])
    )


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _as_date(value: Any) -> dt.date | None:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _raw_label(entry: Any) -> str | None:
    if isinstance(entry, Mapping):
        label = entry.get("label")
        if isinstance(label, str):
            return label
    return None
