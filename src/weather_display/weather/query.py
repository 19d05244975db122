"""Parsing of free-text and coordinate-pair location queries."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..exceptions import InvalidQueryError

_COORDS_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True)
class LocationQuery:
    """A provider query: free text, or a latitude/longitude pair."""

    text: str
    lat: float | None = None
    lon: float | None = None

    @property
    def is_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def key(self) -> str:
        """Normalized key for lookups and in-flight deduplication."""
        if self.is_coordinates:
            return f"{self.lat:.4f},{self.lon:.4f}"
        return " ".join(self.text.lower().split())


def parse_query(raw: str) -> LocationQuery:
    """Parse ``raw`` into a ``LocationQuery``, rejecting empty or out-of-range input."""
    text = raw.strip() if isinstance(raw, str) else ""
    if not text:
        raise InvalidQueryError("Location query must not be empty.")

    match = _COORDS_RE.match(text)
    if match is None:
        return LocationQuery(text=text)

    lat = float(match.group(1))
    lon = float(match.group(2))
    if not (-90 <= lat <= 90):
        raise InvalidQueryError(f"Invalid latitude {lat}; expected between -90 and 90.")
    if not (-180 <= lon <= 180):
        raise InvalidQueryError(f"Invalid longitude {lon}; expected between -180 and 180.")
    return LocationQuery(text=f"{lat},{lon}", lat=lat, lon=lon)
