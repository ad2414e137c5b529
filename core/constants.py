"""Global constants for the core package.

This module contains shared constants used across the location engine.
"""

from typing import Final

# HTTP Client Constants
HTTP_CONNECTION_LIMIT: Final[int] = 10
HTTP_TIMEOUT_CONNECT: Final[float] = 10.0
HTTP_TIMEOUT_SOCK_READ: Final[float] = 30.0
HTTP_TIMEOUT_TOTAL: Final[float] = 60.0
PROVIDER_TIMEOUT_SECONDS: Final[float] = 10.0
USER_AGENT: Final[str] = "LocationEngine/1.0"

# Geometry
EARTH_RADIUS_KM: Final[float] = 6371.0
COORDINATE_KEY_PRECISION: Final[int] = 4
LONG_DISTANCE_THRESHOLD_KM: Final[float] = 2000.0

# Cache lifetimes (seconds)
FORWARD_GEOCODE_TTL: Final[float] = 5 * 60
REVERSE_GEOCODE_TTL: Final[float] = 5 * 60
CORRECTION_TTL: Final[float] = 24 * 60 * 60
REVERSE_GEOCODE_MIN_INTERVAL: Final[float] = 10.0

# Rate limiter channels
REVERSE_GEOCODE_CHANNEL: Final[str] = "reverse-geocode"

DEFAULT_COUNTRY_CODE: Final[str] = "IN"
