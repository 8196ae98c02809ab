# src/core/geo/__init__.py
"""
Geo-модуль.
Группировка точек стоянки и обратное геокодирование через Nominatim.
"""

from src.core.geo.clustering import GeoPoint, group_points_by_distance, haversine_distance
from src.core.geo.enrichment import LocationEnricher, LocationRecord
from src.core.geo.nominatim import (
    GeocodeResult,
    NominatimClient,
    NominatimConfig,
    ReverseGeocodeOptions,
    reverse_geocode,
)

__all__ = [
    "GeoPoint",
    "group_points_by_distance",
    "haversine_distance",
    "LocationEnricher",
    "LocationRecord",
    "GeocodeResult",
    "NominatimClient",
    "NominatimConfig",
    "ReverseGeocodeOptions",
    "reverse_geocode",
]
