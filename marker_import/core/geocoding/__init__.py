"""Geocoding building blocks for the import pipeline.

This package provides:
- Provider adapters over geopy geocoders (Nominatim, MapBox, ArcGIS)
- A Redis result cache
- A rate limiter for outbound requests, built on geopy
- The address variant ladder
"""

from marker_import.core.geocoding.cache import GeocodeCache
from marker_import.core.geocoding.providers import (
    GeocodingProvider,
    GeopyProvider,
    build_provider,
    build_providers,
)
from marker_import.core.geocoding.rate_limiter import build_rate_limiter
from marker_import.core.geocoding.variants import build_address_variants

__all__ = [
    "GeocodeCache",
    "GeocodingProvider",
    "GeopyProvider",
    "build_address_variants",
    "build_provider",
    "build_providers",
    "build_rate_limiter",
]
