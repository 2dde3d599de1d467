"""Tests for the geopy provider adapters."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from geopy.exc import GeocoderServiceError, GeocoderTimedOut

from marker_import.core.config import Settings
from marker_import.core.geocoding.providers import (
    GeocodingProvider,
    GeopyProvider,
    build_provider,
    build_providers,
)
from marker_import.errors import ProviderError, ProviderTimeoutError
from marker_import.models.records import Coordinates


def location(lat, lng):
    return SimpleNamespace(latitude=lat, longitude=lng, address="somewhere")


class TestGeopyProvider:
    """Unit tests for GeopyProvider."""

    @pytest.fixture
    def geocoder(self):
        return MagicMock()

    @pytest.mark.asyncio
    async def test_returns_all_locations(self, geocoder):
        geocoder.geocode.return_value = [location(45.5, -73.6), location(46.8, -71.2)]
        provider = GeopyProvider("nominatim", geocoder, query_options={"limit": 1})

        results = await provider.geocode("123 Main St")

        assert results == [Coordinates(lat=45.5, lng=-73.6), Coordinates(lat=46.8, lng=-71.2)]
        geocoder.geocode.assert_called_once_with("123 Main St", exactly_one=False, limit=1)

    @pytest.mark.asyncio
    async def test_no_match_is_empty_list(self, geocoder):
        geocoder.geocode.return_value = None
        provider = GeopyProvider("nominatim", geocoder)

        assert await provider.geocode("nowhere") == []

    @pytest.mark.asyncio
    async def test_skips_out_of_range_locations(self, geocoder):
        geocoder.geocode.return_value = [location(123.0, 10.0), location(45.5, -73.6)]
        provider = GeopyProvider("nominatim", geocoder)

        assert await provider.geocode("123 Main St") == [Coordinates(lat=45.5, lng=-73.6)]

    @pytest.mark.asyncio
    async def test_timeout_is_translated(self, geocoder):
        """Test geopy timeouts surface as ProviderTimeoutError."""
        geocoder.geocode.side_effect = GeocoderTimedOut("slow")
        provider = GeopyProvider("nominatim", geocoder)

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await provider.geocode("123 Main St")

        assert exc_info.value.provider == "nominatim"

    @pytest.mark.asyncio
    async def test_service_error_is_translated(self, geocoder):
        geocoder.geocode.side_effect = GeocoderServiceError("500")
        provider = GeopyProvider("mapbox", geocoder)

        with pytest.raises(ProviderError) as exc_info:
            await provider.geocode("123 Main St")

        assert not isinstance(exc_info.value, ProviderTimeoutError)
        assert "mapbox" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_cache_hit_skips_geocoder(self, geocoder):
        cache = MagicMock()
        cache.get.return_value = Coordinates(lat=1.0, lng=2.0)
        provider = GeopyProvider("nominatim", geocoder, cache=cache)

        assert await provider.geocode("123 Main St") == [Coordinates(lat=1.0, lng=2.0)]
        geocoder.geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_result_is_cached(self, geocoder):
        cache = MagicMock()
        cache.get.return_value = None
        geocoder.geocode.return_value = [location(45.5, -73.6)]
        provider = GeopyProvider("nominatim", geocoder, cache=cache)

        await provider.geocode("123 Main St")

        cache.set.assert_called_once_with(
            "123 Main St", "nominatim", Coordinates(lat=45.5, lng=-73.6)
        )

    def test_satisfies_protocol(self, geocoder):
        assert isinstance(GeopyProvider("nominatim", geocoder), GeocodingProvider)


class TestBuildProviders:
    """Tests for building providers from settings."""

    def test_nominatim_uses_user_agent_and_country(self):
        settings = Settings(NOMINATIM_USER_AGENT="tests/1.0", GEOCODING_TIMEOUT=3)
        with patch("marker_import.core.geocoding.providers.Nominatim") as nominatim:
            provider = build_provider("nominatim", settings)

        nominatim.assert_called_once_with(user_agent="tests/1.0", timeout=3)
        assert provider.name == "nominatim"
        assert provider.query_options == {"limit": 1, "country_codes": ["ca"]}

    def test_mapbox_without_key_is_disabled(self):
        settings = Settings(MAPBOX_API_KEY=None)

        assert build_provider("mapbox", settings) is None

    def test_mapbox_with_key(self):
        settings = Settings(MAPBOX_API_KEY="pk.test")
        with patch("marker_import.core.geocoding.providers.MapBox") as mapbox:
            provider = build_provider("mapbox", settings)

        mapbox.assert_called_once_with(api_key="pk.test", timeout=settings.GEOCODING_TIMEOUT)
        assert provider.query_options == {"country": ["ca"]}

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_provider("bing", Settings())

    def test_build_primary_and_fallback(self):
        settings = Settings(
            GEOCODING_PRIMARY_PROVIDER="arcgis",
            GEOCODING_FALLBACK_PROVIDER="mapbox",
            MAPBOX_API_KEY="pk.test",
        )
        with patch("marker_import.core.geocoding.providers.ArcGIS"), patch(
            "marker_import.core.geocoding.providers.MapBox"
        ):
            primary, fallback = build_providers(settings)

        assert primary.name == "arcgis"
        assert fallback.name == "mapbox"

    def test_build_without_fallback(self):
        settings = Settings(GEOCODING_FALLBACK_PROVIDER="")
        with patch("marker_import.core.geocoding.providers.Nominatim"):
            primary, fallback = build_providers(settings)

        assert primary.name == "nominatim"
        assert fallback is None
