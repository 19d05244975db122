"""Saved locations: repository interface, file/in-memory stores and list service."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import FavoritesError

FAVORITES_KEY = "weather-locations"


class Location(BaseModel):
    """A place the user searched for or the device's geolocation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    is_current: bool = Field(default=False, alias="isCurrent")


def new_location_id() -> str:
    return uuid.uuid4().hex[:12]


class FavoritesRepository(ABC):
    """Load/save the ordered favorites sequence."""

    @abstractmethod
    def load(self) -> list[Location]:
        """Return stored locations in display order."""

    @abstractmethod
    def save(self, locations: list[Location]) -> None:
        """Replace the stored sequence."""


class InMemoryFavoritesRepository(FavoritesRepository):
    def __init__(self, locations: list[Location] | None = None) -> None:
        self._locations = list(locations or [])

    def load(self) -> list[Location]:
        return list(self._locations)

    def save(self, locations: list[Location]) -> None:
        self._locations = list(locations)


class JsonFileFavoritesRepository(FavoritesRepository):
    """Key-value JSON file; favorites live under ``key``, other keys are preserved."""

    def __init__(self, path: Path, key: str = FAVORITES_KEY) -> None:
        self.path = path
        self.key = key

    def load(self) -> list[Location]:
        raw = self._read_store().get(self.key, [])
        if not isinstance(raw, list):
            raise FavoritesError(f"Favorites entry {self.key!r} in {self.path} is not a list.")
        try:
            return [Location.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise FavoritesError(f"Malformed favorites in {self.path}: {exc}") from exc

    def save(self, locations: list[Location]) -> None:
        store = self._read_store()
        store[self.key] = [item.model_dump(mode="json", by_alias=True) for item in locations]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(store, fh, ensure_ascii=False, indent=2)
                    fh.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise FavoritesError(f"Failed writing favorites to {self.path}: {exc}") from exc

    def _read_store(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                store = json.load(fh)
        except (OSError, ValueError) as exc:
            raise FavoritesError(f"Failed reading favorites from {self.path}: {exc}") from exc
        if not isinstance(store, dict):
            raise FavoritesError(f"Favorites store {self.path} is not a JSON object.")
        return store


class FavoritesList:
    """Ordered, case-insensitively unique list of saved locations.

    Read once at construction; every mutation writes the whole sequence back
    (last writer wins).
    """

    def __init__(
        self,
        repository: FavoritesRepository,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self._locations = repository.load()

    def locations(self) -> list[Location]:
        return list(self._locations)

    def find_by_name(self, name: str) -> Location | None:
        wanted = name.strip().casefold()
        return next((loc for loc in self._locations if loc.name.casefold() == wanted), None)

    def add(self, name: str) -> Location:
        """Append ``name`` unless an entry with the same name already exists."""
        clean = name.strip()
        if not clean:
            raise FavoritesError("Location name must not be empty.")
        existing = self.find_by_name(clean)
        if existing is not None:
            return existing
        location = Location(id=new_location_id(), name=clean)
        self._commit([*self._locations, location])
        self.logger.info("Saved location %r", clean, extra={"location": clean})
        return location

    def set_current(self, name: str) -> Location:
        """Put the device location first, replacing any previous current entry."""
        clean = name.strip()
        if not clean:
            raise FavoritesError("Location name must not be empty.")
        location = Location(id=new_location_id(), name=clean, is_current=True)
        wanted = clean.casefold()
        rest = [
            loc
            for loc in self._locations
            if not loc.is_current and loc.name.casefold() != wanted
        ]
        self._commit([location, *rest])
        return location

    def remove(self, location_id: str) -> bool:
        remaining = [loc for loc in self._locations if loc.id != location_id]
        if len(remaining) == len(self._locations):
            return False
        self._commit(remaining)
        return True

    def _commit(self, locations: list[Location]) -> None:
        self.repository.save(locations)
        self._locations = locations
