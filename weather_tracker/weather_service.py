# ABOUTME: Service layer for OpenWeather API calls and response parsing.
# ABOUTME: Provides the geocoding and One Call weather clients plus pure parsing helpers.

import logging

import httpx

from weather_tracker.deps import TrackerDeps
from weather_tracker.errors import CityNotFound, NetworkError, UpstreamError
from weather_tracker.models import (
    Condition,
    CurrentConditions,
    ForecastPoint,
    GeoCandidate,
    UnitSystem,
    WeatherReport,
)

logger = logging.getLogger(__name__)

GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"

ONECALL_EXCLUDE = "minutely,alerts"

# OpenWeather only knows one simplified Chinese code
CHINESE_API_LANGUAGE = "zh_cn"


def api_language(language: str) -> str:
    """Normalize a locale tag to the language code OpenWeather accepts.

    Regional variants collapse to their base code; every Chinese tag maps to zh_cn.
    """
    base = language.replace("_", "-").split("-")[0].lower()
    if base == "zh":
        return CHINESE_API_LANGUAGE
    return base or "en"


class GeocodeClient:
    """Resolves free-text place names to coordinates."""

    def __init__(self, deps: TrackerDeps):
        self._deps = deps

    async def lookup(self, query: str, limit: int = 1) -> list[GeoCandidate]:
        """Return up to `limit` candidates for `query`.

        Raises CityNotFound when the endpoint answers with an error or no results,
        NetworkError when the request never completes.
        """
        try:
            resp = await self._deps.http_client.get(
                GEOCODING_URL,
                params={"q": query, "limit": limit, "appid": self._deps.api_key},
            )
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        if resp.is_error:
            logger.warning("Geocoding %r failed with status %s", query, resp.status_code)
            raise CityNotFound(query)

        results = parse_geocoding(resp.json())
        if not results:
            raise CityNotFound(query)
        return results


class WeatherClient:
    """Fetches current conditions and hourly/daily forecasts for coordinates."""

    def __init__(self, deps: TrackerDeps):
        self._deps = deps

    async def fetch(self, lat: float, lon: float, unit_system: UnitSystem, language: str) -> WeatherReport:
        try:
            resp = await self._deps.http_client.get(
                ONECALL_URL,
                params={
                    "lat": lat,
                    "lon": lon,
                    "units": UnitSystem(unit_system).value,
                    "exclude": ONECALL_EXCLUDE,
                    "lang": api_language(language),
                    "appid": self._deps.api_key,
                },
            )
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        if resp.is_error:
            raise UpstreamError(resp.status_code)

        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("One Call response is not an object")
        return WeatherReport(
            lat=data.get("lat", lat),
            lon=data.get("lon", lon),
            timezone_offset=data.get("timezone_offset", 0),
            current=parse_current(data.get("current") or {}),
            hourly=parse_forecast_points(data.get("hourly") or []),
            daily=parse_forecast_points(data.get("daily") or []),
        )


def parse_geocoding(raw) -> list[GeoCandidate]:
    """Parse the geocoding array, skipping entries without coordinates."""
    if not isinstance(raw, list):
        return []

    result = []
    for item in raw:
        if not isinstance(item, dict) or "lat" not in item or "lon" not in item:
            continue
        result.append(
            GeoCandidate(
                name=item.get("name", ""),
                lat=item["lat"],
                lon=item["lon"],
                country=item.get("country", ""),
                state=item.get("state"),
                local_names=item.get("local_names") or {},
            )
        )
    return result


def parse_current(raw: dict) -> CurrentConditions:
    """Validate the current block; raises pydantic.ValidationError on a malformed one."""
    if not isinstance(raw, dict):
        raise ValueError(f"Malformed current conditions: {raw!r}")
    return CurrentConditions.model_validate({**raw, "condition": _parse_condition(raw)})


def parse_forecast_points(raw: list[dict]) -> list[ForecastPoint]:
    """Parse hourly or daily entries, sorted chronologically.

    Daily entries carry a temperature object; only its min/max are kept.
    Malformed entries raise pydantic.ValidationError (a ValueError).
    """
    if not isinstance(raw, list):
        raise ValueError(f"Malformed forecast series: {raw!r}")

    result = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError(f"Malformed forecast entry: {item!r}")
        if item.get("temp") is None:
            continue
        result.append(
            ForecastPoint.model_validate({"dt": item.get("dt"), "temp": item["temp"], "condition": _parse_condition(item)})
        )
    result.sort(key=lambda p: p.dt)
    return result


def _parse_condition(raw: dict) -> Condition:
    """Take the primary weather condition, or an empty one if absent."""
    weather = raw.get("weather") or []
    if not isinstance(weather, list) or not weather or not isinstance(weather[0], dict):
        return Condition()
    return Condition(main=weather[0].get("main", ""), description=weather[0].get("description", ""))
