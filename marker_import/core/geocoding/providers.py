"""Geocoding providers.

Each provider answers one query with a (possibly empty) list of
coordinates. An empty list means "no match"; failures are raised as
ProviderError / ProviderTimeoutError so the resolver can tell them apart.
"""

import asyncio
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from geopy.exc import GeocoderTimedOut, GeopyError
from geopy.geocoders import ArcGIS, MapBox, Nominatim
from geopy.geocoders.base import Geocoder

from marker_import.core.geocoding.cache import GeocodeCache
from marker_import.core.logging import get_logger
from marker_import.errors import ProviderError, ProviderTimeoutError
from marker_import.models.records import Coordinates

if TYPE_CHECKING:
    from marker_import.core.config import Settings

logger = get_logger(__name__)


@runtime_checkable
class GeocodingProvider(Protocol):
    """Forward geocoding lookup: query string to candidate coordinates."""

    name: str

    async def geocode(self, query: str) -> list[Coordinates]: ...


class GeopyProvider:
    """Adapts a blocking geopy geocoder to the async provider protocol."""

    def __init__(
        self,
        name: str,
        geocoder: Geocoder,
        cache: Optional[GeocodeCache] = None,
        query_options: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize the provider.

        Args:
            name: Provider name used in logs, metrics and cache keys
            geocoder: Configured geopy geocoder instance
            cache: Optional result cache
            query_options: Extra keyword arguments for ``geocoder.geocode``
        """
        self.name = name
        self.geocoder = geocoder
        self.cache = cache
        self.query_options = query_options or {}

    async def geocode(self, query: str) -> list[Coordinates]:
        if self.cache:
            cached = self.cache.get(query, self.name)
            if cached:
                return [cached]

        try:
            locations = await asyncio.to_thread(
                self.geocoder.geocode, query, exactly_one=False, **self.query_options
            )
        except GeocoderTimedOut as e:
            raise ProviderTimeoutError(self.name, str(e) or "request timed out") from e
        except GeopyError as e:
            raise ProviderError(self.name, str(e) or e.__class__.__name__) from e

        results = []
        for location in locations or []:
            try:
                results.append(
                    Coordinates(lat=location.latitude, lng=location.longitude)
                )
            except ValueError:
                logger.warning(
                    "provider_returned_invalid_coordinates",
                    provider=self.name,
                    lat=location.latitude,
                    lng=location.longitude,
                )

        if results and self.cache:
            self.cache.set(query, self.name, results[0])
        return results


def build_provider(
    name: str, settings: "Settings", cache: Optional[GeocodeCache] = None
) -> Optional[GeopyProvider]:
    """Create a provider from settings.

    Returns:
        The provider, or None when it cannot be configured (e.g. missing key)
    """
    country_codes = [c.lower() for c in settings.GEOCODING_COUNTRY_CODES]
    timeout = settings.GEOCODING_TIMEOUT

    if name == "nominatim":
        geocoder: Geocoder = Nominatim(
            user_agent=settings.NOMINATIM_USER_AGENT, timeout=timeout
        )
        options: dict[str, Any] = {"limit": 1}
        if country_codes:
            options["country_codes"] = country_codes
        return GeopyProvider(name, geocoder, cache, options)

    if name == "mapbox":
        if not settings.MAPBOX_API_KEY:
            logger.warning("provider_disabled", provider=name, reason="MAPBOX_API_KEY not set")
            return None
        geocoder = MapBox(api_key=settings.MAPBOX_API_KEY, timeout=timeout)
        options = {"country": country_codes} if country_codes else {}
        return GeopyProvider(name, geocoder, cache, options)

    if name == "arcgis":
        return GeopyProvider(name, ArcGIS(timeout=timeout), cache)

    raise ValueError(f"Unknown geocoding provider: {name}")


def build_providers(
    settings: "Settings", cache: Optional[GeocodeCache] = None
) -> tuple[Optional[GeopyProvider], Optional[GeopyProvider]]:
    """Create the primary and fallback providers configured in settings."""
    primary = build_provider(settings.GEOCODING_PRIMARY_PROVIDER, settings, cache)
    fallback = None
    if settings.GEOCODING_FALLBACK_PROVIDER:
        fallback = build_provider(
            settings.GEOCODING_FALLBACK_PROVIDER, settings, cache
        )
    logger.info(
        "geocoding_providers_configured",
        primary=primary.name if primary else None,
        fallback=fallback.name if fallback else None,
    )
    return primary, fallback
