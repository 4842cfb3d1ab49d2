# ABOUTME: Per-location weather fetch state machine keyed by (location, units, language).
# ABOUTME: Runs geocode-then-weather fetches and only lets the most recently started fetch land.

import asyncio
import logging
from collections.abc import Callable

import httpx

from weather_tracker.errors import CityNotFound, FetchError
from weather_tracker.models import (
    CacheKey,
    ErrorKind,
    Failed,
    FetchState,
    Idle,
    Loading,
    Location,
    Success,
    WeatherSnapshot,
)
from weather_tracker.preferences import PreferencesStore
from weather_tracker.weather_service import GeocodeClient, WeatherClient

logger = logging.getLogger(__name__)

CacheListener = Callable[[CacheKey, FetchState], None]


class WeatherCache:
    """Holds one FetchState per CacheKey.

    Transitions are Idle -> Loading -> Success | Failed. A new fetch for a key
    restarts it at Loading; results of fetches started earlier are dropped.
    Preference changes discard every entry.
    """

    def __init__(self, geocoder: GeocodeClient, weather: WeatherClient, preferences: PreferencesStore):
        self._geocoder = geocoder
        self._weather = weather
        self._preferences = preferences
        self._entries: dict[CacheKey, FetchState] = {}
        self._generations: dict[CacheKey, int] = {}
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[CacheListener] = []
        preferences.subscribe(self._on_preferences_changed)

    def key_for(self, location: Location) -> CacheKey:
        prefs = self._preferences.current
        return CacheKey(location_id=location.id, unit_system=prefs.unit_system, language=prefs.language)

    def state(self, location: Location) -> FetchState:
        return self._entries.get(self.key_for(location), Idle())

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def fetch(self, location: Location) -> FetchState:
        """Fetch weather for `location` under the current preferences.

        Returns the state this fetch produced. It is only stored if no other
        fetch for the same key was started in the meantime.
        """
        key = self.key_for(location)
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        self._set(key, Loading())

        result = await self._load(location, key)

        if self._generations.get(key) != generation:
            logger.debug("Dropping superseded result for %s (generation %d)", key.location_id, generation)
            return result
        self._set(key, result)
        return result

    def ensure(self, location: Location) -> asyncio.Task | None:
        """Start a fetch if the location has no entry under the current preferences."""
        if self.key_for(location) in self._entries:
            return None
        return self.refresh(location)

    def refresh(self, location: Location) -> asyncio.Task:
        # Mark Loading synchronously so a second ensure() in the same tick is a no-op
        self._set(self.key_for(location), Loading())
        task = asyncio.get_running_loop().create_task(self.fetch(location))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def forget(self, location_id: str) -> None:
        """Drop every entry of a deleted location."""
        for key in [k for k in self._entries if k.location_id == location_id]:
            del self._entries[key]
            self._bump(key)

    def invalidate_all(self) -> None:
        logger.info("Invalidating %d cached weather entries", len(self._entries))
        self._entries.clear()
        for key in list(self._generations):
            self._bump(key)

    async def aclose(self) -> None:
        """Wait for every in-flight fetch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _bump(self, key: CacheKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    def _set(self, key: CacheKey, state: FetchState) -> None:
        self._entries[key] = state
        for listener in list(self._listeners):
            listener(key, state)

    def _on_preferences_changed(self, old, new) -> None:
        self.invalidate_all()

    async def _load(self, location: Location, key: CacheKey) -> FetchState:
        try:
            try:
                candidates = await self._geocoder.lookup(location.query_name, limit=1)
            except (FetchError, httpx.HTTPError, ValueError) as e:
                raise CityNotFound(location.query_name) from e
            place = candidates[0]
            report = await self._weather.fetch(place.lat, place.lon, key.unit_system, key.language)
        except FetchError as e:
            logger.warning("Weather fetch for %r failed: %s", location.id, e)
            return Failed(kind=e.kind, detail=str(e))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.exception("Unexpected response while fetching weather for %r", location.id)
            return Failed(kind=ErrorKind.UPSTREAM_ERROR, detail=str(e))

        snapshot = WeatherSnapshot(
            location_id=location.id,
            display_name=place.display_name(key.language),
            country=place.country,
            timezone_offset=report.timezone_offset,
            current=report.current,
            hourly=report.hourly,
            daily=report.daily,
        )
        return Success(snapshot=snapshot)
