# ABOUTME: Top-level application state tying locations, pagination, weather cache, search and preferences.
# ABOUTME: Exposes the user operations (add, delete, select, swipe, change units/language) to the UI layer.

import logging

import httpx
from pydantic import BaseModel

from weather_tracker import config
from weather_tracker.cache import WeatherCache
from weather_tracker.deps import TrackerDeps
from weather_tracker.errors import AlreadyExists, FetchError, LastLocation
from weather_tracker.i18n import Translator
from weather_tracker.locations import LocationCollection
from weather_tracker.models import (
    Failed,
    FetchState,
    Location,
    Preferences,
    Suggestion,
    UnitSystem,
    WeatherSnapshot,
)
from weather_tracker.pagination import PaginationController
from weather_tracker.preferences import PreferencesStore
from weather_tracker.search import SuggestionSearch
from weather_tracker.weather_service import GeocodeClient, WeatherClient

logger = logging.getLogger(__name__)


class Notice(BaseModel):
    """A user-facing message for an operation that was rejected."""

    key: str
    message: str


class WeatherApp:
    """Owns all mutable state. Operations are expected to run on the event loop thread."""

    def __init__(
        self,
        geocoder: GeocodeClient,
        weather: WeatherClient,
        cities: list[str] | None = None,
        unit_system: UnitSystem | str | None = None,
        language: str | None = None,
        search_quiet_period: float = config.SEARCH_DEBOUNCE_SECONDS,
        scroll_delay: float = config.SCROLL_TO_END_DELAY_SECONDS,
    ):
        self.preferences = PreferencesStore(unit_system or config.DEFAULT_UNITS, language or config.DEFAULT_LANGUAGE)
        self.translator = Translator(self.preferences.language)
        self.locations = LocationCollection(cities if cities is not None else config.DEFAULT_CITIES)
        self.pagination = PaginationController(len(self.locations), scroll_delay=scroll_delay)
        # Subscribed before our own listener so entries are gone before visible pages reload
        self.cache = WeatherCache(geocoder, weather, self.preferences)
        self.search = SuggestionSearch(geocoder, quiet_period=search_quiet_period)
        self._geocoder = geocoder
        self._weather = weather

        self.preferences.subscribe(self._on_preferences_changed)
        self.pagination.subscribe(lambda _index: self.load_visible())

    @classmethod
    def from_deps(cls, deps: TrackerDeps, **kwargs) -> "WeatherApp":
        return cls(GeocodeClient(deps), WeatherClient(deps), **kwargs)

    @property
    def active_location(self) -> Location:
        return self.locations[self.pagination.active_index]

    def load_visible(self) -> None:
        """Start fetches for the active page and its neighbours that have no entry yet."""
        for index in self.pagination.near_visible():
            self.cache.ensure(self.locations[index])

    def load_all(self) -> None:
        """Start fetches for every tracked location with no entry yet (the manage-cities list)."""
        for location in self.locations:
            self.cache.ensure(location)

    def visible_states(self) -> list[tuple[Location, FetchState]]:
        return [(self.locations[i], self.cache.state(self.locations[i])) for i in self.pagination.near_visible()]

    def add_location(self, identifier: str) -> Notice | None:
        try:
            location = self.locations.add(identifier)
        except AlreadyExists as e:
            logger.info("Rejected duplicate location %r", e.identifier)
            return self._notice("cityExists", city=e.identifier)
        except ValueError:
            return None

        self.pagination.on_append(len(self.locations))
        self.cache.ensure(location)
        return None

    def accept_suggestion(self, suggestion: Suggestion) -> Notice | None:
        """Track the chosen suggestion, or jump to it when it is already tracked."""
        self.search.clear()
        index = self.locations.select_existing(suggestion.identifier)
        if index is not None:
            self.select_index(index)
            return None
        return self.add_location(suggestion.identifier)

    async def preview(self, suggestion: Suggestion) -> WeatherSnapshot | None:
        """Current conditions for a suggestion before it is added, under the current preferences.

        Nothing is cached. Returns None when the lookup or fetch fails, the same way search degrades.
        """
        prefs = self.preferences.current
        try:
            candidates = await self._geocoder.lookup(suggestion.identifier, limit=1)
            place = candidates[0]
            report = await self._weather.fetch(place.lat, place.lon, prefs.unit_system, prefs.language)
        except (FetchError, httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.info("No preview for %r: %s", suggestion.identifier, e)
            return None

        return WeatherSnapshot(
            location_id=suggestion.identifier,
            display_name=place.display_name(prefs.language),
            country=place.country,
            timezone_offset=report.timezone_offset,
            current=report.current,
            daily=report.daily[:1],
        )

    def delete_location(self, location_id: str) -> Notice | None:
        try:
            index = self.locations.delete(location_id)
        except LastLocation:
            logger.info("Refused to delete the last location %r", location_id)
            return self._notice("cannotDelete")

        self.cache.forget(location_id)
        self.pagination.on_delete(index, len(self.locations))
        self.load_visible()
        return None

    def select_location(self, location_id: str) -> None:
        self.select_index(self.locations.index_of(location_id))

    def select_index(self, index: int) -> None:
        self.pagination.jump_to(index)
        self.load_visible()

    def on_view_changed(self, index: int) -> None:
        self.pagination.on_view_changed(index)
        self.load_visible()

    def set_unit_system(self, unit_system: UnitSystem | str) -> None:
        self.preferences.set_unit_system(unit_system)

    def set_language(self, language: str) -> None:
        self.preferences.set_language(language)

    def error_message(self, location: Location, state: FetchState) -> str | None:
        if not isinstance(state, Failed):
            return None
        return self.translator.error_message(state.kind, city=location.id)

    async def aclose(self) -> None:
        self.search.clear()
        await self.cache.aclose()

    def _on_preferences_changed(self, old: Preferences, new: Preferences) -> None:
        self.translator.language = new.language
        self.load_visible()

    def _notice(self, key: str, **params) -> Notice:
        return Notice(key=key, message=self.translator.t(key, **params))
