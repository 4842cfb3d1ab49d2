# ABOUTME: Contract tests for the OpenWeather service layer.
# ABOUTME: Validates geocoding, One Call fetches, error mapping and data parsing with mocked HTTP.

from unittest.mock import AsyncMock

import httpx
import pytest

from weather_tracker.deps import TrackerDeps
from weather_tracker.errors import CityNotFound, NetworkError, UpstreamError
from weather_tracker.models import TempRange, UnitSystem
from weather_tracker.weather_service import (
    GeocodeClient,
    WeatherClient,
    api_language,
    parse_current,
    parse_forecast_points,
    parse_geocoding,
)

PARIS = {
    "name": "Paris",
    "lat": 48.8589,
    "lon": 2.32,
    "country": "FR",
    "state": "Ile-de-France",
    "local_names": {"es": "París", "en": "Paris"},
}

ONECALL = {
    "lat": 48.86,
    "lon": 2.32,
    "timezone": "Europe/Paris",
    "timezone_offset": 3600,
    "current": {
        "dt": 1705320000,
        "sunrise": 1705303000,
        "sunset": 1705334000,
        "temp": 5.2,
        "feels_like": 2.1,
        "humidity": 81,
        "uvi": 0.6,
        "visibility": 10000,
        "wind_speed": 4.1,
        "weather": [{"main": "Clouds", "description": "overcast clouds"}],
    },
    "hourly": [
        {"dt": 1705323600, "temp": 5.0, "weather": [{"main": "Clouds", "description": "broken clouds"}]},
        {"dt": 1705320000, "temp": 5.2, "weather": [{"main": "Clouds", "description": "overcast clouds"}]},
    ],
    "daily": [
        {"dt": 1705316400, "temp": {"day": 5.0, "min": 1.3, "max": 6.4}, "weather": [{"main": "Rain"}]},
    ],
}


class TestApiLanguage:
    def test_regional_variants_collapse_to_base(self):
        """Regional locale tags are sent as their base language.

        Implementation: Normalizes several region-qualified tags.
        Passing implies: The weather API receives codes it understands.
        """
        assert api_language("es-MX") == "es"
        assert api_language("en_US") == "en"
        assert api_language("fr") == "fr"

    def test_any_chinese_tag_maps_to_zh_cn(self):
        """Every Chinese variant maps to the API's single Chinese code.

        Implementation: Normalizes traditional, simplified and bare Chinese tags.
        Passing implies: Chinese users get localized descriptions instead of an API error.
        """
        assert api_language("zh") == "zh_cn"
        assert api_language("zh-TW") == "zh_cn"
        assert api_language("zh-Hans-CN") == "zh_cn"


class TestGeocodeClient:
    @pytest.mark.asyncio
    async def test_resolves_known_city(self, mock_deps):
        """lookup returns GeoCandidates for a known city.

        Implementation: Mocks the geocoding API to return Paris.
        Passing implies: The client parses coordinates, country and localized names.
        """
        deps = mock_deps((200, [PARIS]))
        result = await GeocodeClient(deps).lookup("Paris", limit=1)

        assert len(result) == 1
        assert result[0].name == "Paris"
        assert result[0].lat == 48.8589
        assert result[0].country == "FR"
        assert result[0].display_name("es-ES") == "París"

    @pytest.mark.asyncio
    async def test_sends_query_limit_and_key(self, mock_deps):
        """lookup sends the query, result limit and API key.

        Implementation: Inspects the mock client's call args.
        Passing implies: The client constructs correct geocoding requests.
        """
        deps = mock_deps((200, [PARIS]))
        await GeocodeClient(deps).lookup("Paris", limit=5)

        params = deps.http_client.get.call_args.kwargs["params"]
        assert params == {"q": "Paris", "limit": 5, "appid": "test-key"}

    @pytest.mark.asyncio
    async def test_empty_result_raises_city_not_found(self, mock_deps):
        """lookup raises CityNotFound when the API returns no candidates.

        Implementation: Mocks an empty result array.
        Passing implies: Callers can distinguish "no such place" from transport failures.
        """
        deps = mock_deps((200, []))
        with pytest.raises(CityNotFound):
            await GeocodeClient(deps).lookup("Xyzzyville")

    @pytest.mark.asyncio
    async def test_error_status_raises_city_not_found(self, mock_deps):
        """lookup raises CityNotFound when the geocoding API answers with an error.

        Implementation: Mocks a 401 response.
        Passing implies: A failed geocoding call is treated as an unresolved city.
        """
        deps = mock_deps((401, {"cod": 401, "message": "Invalid API key"}))
        with pytest.raises(CityNotFound):
            await GeocodeClient(deps).lookup("Paris")

    @pytest.mark.asyncio
    async def test_transport_failure_raises_network_error(self):
        """lookup raises NetworkError when the request never completes.

        Implementation: Makes the mock client raise httpx.ConnectError.
        Passing implies: Connectivity problems are reported as network errors.
        """
        mock = AsyncMock(spec=httpx.AsyncClient)
        mock.get.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(NetworkError):
            await GeocodeClient(TrackerDeps(http_client=mock)).lookup("Paris")


class TestWeatherClient:
    @pytest.mark.asyncio
    async def test_returns_weather_report(self, mock_deps):
        """fetch returns a WeatherReport with current, hourly and daily data.

        Implementation: Mocks the One Call API with a representative response.
        Passing implies: The client parses every section of the response.
        """
        deps = mock_deps((200, ONECALL))
        report = await WeatherClient(deps).fetch(48.86, 2.32, UnitSystem.METRIC, "en")

        assert report.timezone_offset == 3600
        assert report.current.temp == 5.2
        assert report.current.condition.main == "Clouds"
        assert [p.dt for p in report.hourly] == [1705320000, 1705323600]
        assert report.daily[0].temp == TempRange(min=1.3, max=6.4)

    @pytest.mark.asyncio
    async def test_sends_units_and_normalized_language(self, mock_deps):
        """fetch sends coordinates, units, excluded sections and API language.

        Implementation: Inspects the mock client's call args.
        Passing implies: Unit system and language reach the API in its own vocabulary.
        """
        deps = mock_deps((200, ONECALL))
        await WeatherClient(deps).fetch(48.86, 2.32, UnitSystem.IMPERIAL, "zh-TW")

        params = deps.http_client.get.call_args.kwargs["params"]
        assert params["lat"] == 48.86
        assert params["lon"] == 2.32
        assert params["units"] == "imperial"
        assert params["lang"] == "zh_cn"
        assert params["exclude"] == "minutely,alerts"

    @pytest.mark.asyncio
    async def test_error_status_raises_upstream_error(self, mock_deps):
        """fetch raises UpstreamError on a non-success status.

        Implementation: Mocks a 401 response from the One Call API.
        Passing implies: Rejected requests surface as upstream failures with their status.
        """
        deps = mock_deps((401, {"cod": 401}))
        with pytest.raises(UpstreamError) as exc_info:
            await WeatherClient(deps).fetch(0.0, 0.0, UnitSystem.METRIC, "en")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self):
        """fetch raises NetworkError when the transport times out.

        Implementation: Makes the mock client raise httpx.ReadTimeout.
        Passing implies: Timeouts are reported as network errors, not upstream errors.
        """
        mock = AsyncMock(spec=httpx.AsyncClient)
        mock.get.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(NetworkError):
            await WeatherClient(TrackerDeps(http_client=mock)).fetch(0.0, 0.0, UnitSystem.METRIC, "en")


class TestParsing:
    def test_geocoding_skips_entries_without_coordinates(self):
        """parse_geocoding ignores malformed entries.

        Implementation: Mixes a valid entry with one missing lat/lon.
        Passing implies: A partially bad response still yields usable candidates.
        """
        result = parse_geocoding([{"name": "Broken"}, PARIS])
        assert [c.name for c in result] == ["Paris"]
        assert parse_geocoding({"cod": 400}) == []

    def test_current_without_weather_has_empty_condition(self):
        """parse_current tolerates a missing weather array.

        Implementation: Parses a minimal current block.
        Passing implies: Optional fields default instead of failing the whole fetch.
        """
        current = parse_current({"dt": 1, "temp": 3.0})
        assert current.condition.main == ""
        assert current.humidity is None

    def test_forecast_points_distinguish_hourly_and_daily(self):
        """parse_forecast_points keeps a scalar for hourly and a range for daily temps.

        Implementation: Parses one hourly-style and one daily-style entry.
        Passing implies: The temperature union is preserved per series.
        """
        hourly = parse_forecast_points([{"dt": 10, "temp": 4.5}])
        daily = parse_forecast_points([{"dt": 20, "temp": {"min": 1.0, "max": 7.0, "day": 5.0}}])

        assert hourly[0].temp == 4.5
        assert isinstance(daily[0].temp, TempRange)
        assert daily[0].temp.max == 7.0

    def test_malformed_forecast_entries_raise_value_error(self):
        """Entries with a partial range, no timestamp or a non-object shape raise ValueError.

        Implementation: Parses three kinds of broken entries one at a time.
        Passing implies: Callers can contain every parse failure with one except clause.
        """
        for series in ([{"dt": 1, "temp": {"min": 1}}], [{"temp": 4.0}], [42], {"dt": 1}):
            with pytest.raises(ValueError):
                parse_forecast_points(series)

    def test_non_object_current_raises_value_error(self):
        """parse_current rejects a block that is not an object.

        Implementation: Parses a list where the current block is expected.
        Passing implies: A reshaped response cannot surface as a TypeError.
        """
        with pytest.raises(ValueError):
            parse_current([1, 2])

    @pytest.mark.asyncio
    async def test_non_object_onecall_body_raises_value_error(self, mock_deps):
        """A One Call body that is a JSON array raises ValueError.

        Implementation: Returns a 200 response whose body is a list.
        Passing implies: The cache maps it to UpstreamError like any malformed response.
        """
        deps = mock_deps((200, []))
        with pytest.raises(ValueError):
            await WeatherClient(deps).fetch(0.0, 0.0, UnitSystem.METRIC, "en")
