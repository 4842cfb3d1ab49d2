# ABOUTME: Shared test fixtures for the weather tracker test suite.
# ABOUTME: Provides fake geocoding/weather clients and a mock HTTP client factory.

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from weather_tracker.deps import TrackerDeps
from weather_tracker.errors import CityNotFound
from weather_tracker.models import Condition, CurrentConditions, ForecastPoint, GeoCandidate, TempRange, WeatherReport


def build_report(temp: float = 20.0, main: str = "Clear") -> WeatherReport:
    return WeatherReport(
        lat=48.85,
        lon=2.35,
        timezone_offset=3600,
        current=CurrentConditions(
            dt=1_700_000_000,
            sunrise=1_699_990_000,
            sunset=1_700_030_000,
            temp=temp,
            feels_like=temp - 1,
            humidity=60,
            uvi=2.5,
            visibility=10000,
            wind_speed=3.0,
            condition=Condition(main=main, description=main.lower()),
        ),
        hourly=[ForecastPoint(dt=1_700_000_000 + 3600 * i, temp=temp + i) for i in range(3)],
        daily=[ForecastPoint(dt=1_700_000_000 + 86400 * i, temp=TempRange(min=temp - 5, max=temp + 5)) for i in range(2)],
    )


class FakeGeocoder:
    """Stands in for GeocodeClient; unknown queries resolve to a single candidate."""

    def __init__(self):
        self.calls: list[tuple[str, int]] = []
        self.results: dict[str, list[GeoCandidate]] = {}
        self.error: Exception | None = None

    async def lookup(self, query: str, limit: int = 1) -> list[GeoCandidate]:
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        results = self.results.get(query, [GeoCandidate(name=query, lat=1.0, lon=2.0, country="XX")])
        if not results:
            raise CityNotFound(query)
        return results[:limit]


class FakeWeather:
    """Stands in for WeatherClient.

    Each call consumes the next queued response: a WeatherReport, an exception to
    raise, or a future resolving to either. With nothing queued it returns a default report.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.responses: list = []

    async def fetch(self, lat, lon, unit_system, language) -> WeatherReport:
        self.calls.append((lat, lon, unit_system, language))
        response = self.responses.pop(0) if self.responses else build_report()
        if isinstance(response, asyncio.Future):
            response = await response
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_report():
    return build_report


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def weather() -> FakeWeather:
    return FakeWeather()


@pytest.fixture
def mock_deps():
    """Factory for TrackerDeps whose http client returns the given JSON response(s)."""

    def _build(*responses: tuple[int, object]) -> TrackerDeps:
        mock = AsyncMock(spec=httpx.AsyncClient)
        mock.get.side_effect = [
            httpx.Response(status_code=status, json=body, request=httpx.Request("GET", "https://test"))
            for status, body in responses
        ]
        return TrackerDeps(http_client=mock, api_key="test-key")

    return _build
