# ABOUTME: Ordered, deduplicated collection of tracked locations.
# ABOUTME: Enforces case-insensitive id uniqueness and the at-least-one-location rule.

import logging
import re
from collections.abc import Iterable, Iterator

from weather_tracker.errors import AlreadyExists, LastLocation
from weather_tracker.models import Location

logger = logging.getLogger(__name__)

_COMMA = re.compile(r"\s*,\s*")


def _normalize(identifier: str) -> str:
    """Comparison key: case-insensitive, whitespace collapsed, none around commas."""
    collapsed = " ".join(identifier.split())
    return _COMMA.sub(",", collapsed).casefold()


class LocationCollection:
    """Insertion order is display and pagination order."""

    def __init__(self, identifiers: Iterable[str]):
        self._locations: list[Location] = []
        for identifier in identifiers:
            if self.select_existing(identifier) is None and identifier.strip():
                self._locations.append(Location.from_identifier(identifier))
        if not self._locations:
            raise ValueError("LocationCollection needs at least one location")

    def __len__(self) -> int:
        return len(self._locations)

    def __iter__(self) -> Iterator[Location]:
        return iter(list(self._locations))

    def __getitem__(self, index: int) -> Location:
        return self._locations[index]

    @property
    def ids(self) -> list[str]:
        return [loc.id for loc in self._locations]

    def select_existing(self, identifier: str) -> int | None:
        """Return the position of the location matching `identifier`, if tracked."""
        key = _normalize(identifier)
        for i, loc in enumerate(self._locations):
            if _normalize(loc.id) == key:
                return i
        return None

    def index_of(self, location_id: str) -> int:
        index = self.select_existing(location_id)
        if index is None:
            raise KeyError(location_id)
        return index

    def add(self, identifier: str) -> Location:
        """Append a new location; raises AlreadyExists for a case-insensitive duplicate."""
        name = identifier.strip()
        if not name:
            raise ValueError("Location identifier must not be blank")
        if self.select_existing(name) is not None:
            raise AlreadyExists(name)

        location = Location.from_identifier(name)
        self._locations.append(location)
        logger.info("Added location %r at index %d", location.id, len(self._locations) - 1)
        return location

    def delete(self, location_id: str) -> int:
        """Remove a location and return the index it occupied."""
        index = self.index_of(location_id)
        self.delete_at(index)
        return index

    def delete_at(self, index: int) -> Location:
        if len(self._locations) <= 1:
            raise LastLocation()
        location = self._locations.pop(index)
        logger.info("Deleted location %r from index %d", location.id, index)
        return location
