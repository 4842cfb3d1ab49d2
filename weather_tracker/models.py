# ABOUTME: Pydantic BaseModels for tracked locations, suggestions, weather snapshots and fetch state.
# ABOUTME: Defines the structured types shared by the collection, cache, search and API layers.

from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UnitSystem(StrEnum):
    IMPERIAL = "imperial"
    METRIC = "metric"


class ErrorKind(StrEnum):
    CITY_NOT_FOUND = "city_not_found"
    NETWORK_ERROR = "network_error"
    UPSTREAM_ERROR = "upstream_error"


class Location(BaseModel):
    """A tracked place. `id` is the user-visible key, `query_name` is sent upstream."""

    model_config = ConfigDict(frozen=True)

    id: str
    query_name: str

    @classmethod
    def from_identifier(cls, identifier: str) -> "Location":
        name = identifier.strip()
        return cls(id=name, query_name=name)


class GeoCandidate(BaseModel):
    """One result from the geocoding endpoint."""

    name: str
    lat: float
    lon: float
    country: str = ""
    state: str | None = None
    local_names: dict[str, str] = {}

    def display_name(self, language: str) -> str:
        """Localized name for the base language of `language`, falling back to `name`."""
        base = language.replace("_", "-").split("-")[0].lower()
        return self.local_names.get(base) or self.name


class Suggestion(BaseModel):
    """Ephemeral search result offered while adding a location."""

    name: str
    country: str = ""
    state: str | None = None
    local_names: dict[str, str] = {}

    @property
    def identifier(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.name, self.country)

    @classmethod
    def from_candidate(cls, candidate: GeoCandidate) -> "Suggestion":
        return cls(
            name=candidate.name,
            country=candidate.country,
            state=candidate.state,
            local_names=candidate.local_names,
        )


class Condition(BaseModel):
    main: str = ""
    description: str = ""


class CurrentConditions(BaseModel):
    """Current observation from the One Call endpoint. Timestamps are unix seconds."""

    dt: int
    sunrise: int | None = None
    sunset: int | None = None
    temp: float
    feels_like: float | None = None
    humidity: float | None = None
    uvi: float | None = None
    visibility: float | None = None
    wind_speed: float | None = None
    condition: Condition = Condition()

    @property
    def is_day(self) -> bool:
        if self.sunrise is None or self.sunset is None:
            return True
        return self.sunrise < self.dt < self.sunset


class TempRange(BaseModel):
    min: float
    max: float


class ForecastPoint(BaseModel):
    """Hourly points carry a single temperature, daily points a min/max range."""

    dt: int
    temp: float | TempRange
    condition: Condition = Condition()


class WeatherReport(BaseModel):
    """Parsed response from the One Call endpoint, before it is tied to a location."""

    lat: float
    lon: float
    timezone_offset: int = 0
    current: CurrentConditions
    hourly: list[ForecastPoint] = []
    daily: list[ForecastPoint] = []


class WeatherSnapshot(BaseModel):
    """One fetched weather result for a location under specific preferences."""

    location_id: str
    display_name: str
    country: str = ""
    timezone_offset: int = 0
    current: CurrentConditions
    hourly: list[ForecastPoint] = []
    daily: list[ForecastPoint] = []

    @property
    def today_range(self) -> TempRange | None:
        if self.daily and isinstance(self.daily[0].temp, TempRange):
            return self.daily[0].temp
        return None

    def local_time(self, now: datetime | None = None) -> datetime:
        """Wall-clock time at the location, derived from its UTC offset."""
        now = now or datetime.now(timezone.utc)
        return now.astimezone(timezone(timedelta(seconds=self.timezone_offset)))


class CacheKey(BaseModel):
    """Scope of one cache entry: (location id, unit system, language)."""

    model_config = ConfigDict(frozen=True)

    location_id: str
    unit_system: UnitSystem
    language: str


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["idle"] = "idle"


class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loading"] = "loading"


class Success(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    snapshot: WeatherSnapshot


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    kind: ErrorKind
    detail: str = ""


FetchState = Idle | Loading | Success | Failed


class Preferences(BaseModel):
    """Process-wide display preferences."""

    model_config = ConfigDict(frozen=True)

    unit_system: UnitSystem = UnitSystem.IMPERIAL
    language: str = Field(default="en", min_length=1)
