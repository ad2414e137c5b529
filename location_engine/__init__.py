"""
Location Engine Package.

Resolves place names to coordinates, coordinates to addresses, and pairs
of coordinates to travel distances over Google Maps, Nominatim and OSRM.
"""

from core.spatial import Coordinate, format_distance, validate_coordinates

from .distance import DistanceResolver
from .geocoding import ForwardGeocoder
from .reverse import UNKNOWN_LOCATION, ReverseGeocodeResolver
from .service import LocationService, build_location_service
from .similarity import similarity
from .variations import generate_variations

__all__ = [
    "UNKNOWN_LOCATION",
    "Coordinate",
    "DistanceResolver",
    "ForwardGeocoder",
    "LocationService",
    "ReverseGeocodeResolver",
    "build_location_service",
    "format_distance",
    "generate_variations",
    "similarity",
    "validate_coordinates",
]
