"""
Spatial and geometry utilities.

Centralizes the coordinate value type, bounds validation, great-circle
distance calculations and display formatting of distances.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.constants import COORDINATE_KEY_PRECISION, EARTH_RADIUS_KM

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

_COORDINATE_LITERAL = re.compile(r"^\s*(-?\d+\.?\d*)\s*,\s*(-?\d+\.?\d*)\s*$")

# Checked in order; the first box containing the point wins.
_CONTINENT_BOXES: tuple[tuple[str, float, float, float, float], ...] = (
    ("ASIA", -10, 80, 25, 180),
    ("EUROPE", 35, 70, -10, 40),
    ("NORTH AMERICA", 5, 85, -170, -50),
    ("SOUTH AMERICA", -60, 15, -85, -30),
    ("AFRICA", -40, 40, -20, 50),
    ("AUSTRALIA", -50, -10, 110, 180),
)


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 position. Construct through ``from_values`` to get validation."""

    latitude: float
    longitude: float

    @classmethod
    def from_values(cls, latitude: Any, longitude: Any) -> Coordinate | None:
        """Build a coordinate from raw values, or None if they are out of bounds."""
        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError):
            return None
        if not GeometryService.validate_coordinates(lat, lon):
            return None
        return cls(latitude=lat, longitude=lon)

    @property
    def is_valid(self) -> bool:
        return GeometryService.validate_coordinates(self.latitude, self.longitude)

    def cache_key(self, decimals: int = COORDINATE_KEY_PRECISION) -> str:
        """Key with fixed precision so GPS jitter maps onto one cache entry."""
        return f"{self.latitude:.{decimals}f},{self.longitude:.{decimals}f}"

    def as_text(self, decimals: int = COORDINATE_KEY_PRECISION) -> str:
        return f"{self.latitude:.{decimals}f}, {self.longitude:.{decimals}f}"


class GeometryService:
    """Authoritative geometry operations for the engine."""

    EARTH_RADIUS_KM = EARTH_RADIUS_KM

    @staticmethod
    def validate_coordinates(latitude: Any, longitude: Any) -> bool:
        """Return True when latitude/longitude are finite and within bounds."""
        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError):
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return -90 <= lat <= 90 and -180 <= lon <= 180

    @staticmethod
    def haversine_distance(
        lat1: float,
        lon1: float,
        lat2: float,
        lon2: float,
    ) -> float:
        """Calculate the great-circle distance in kilometres using the Haversine formula."""
        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        dphi = math.radians(lat2 - lat1)
        dlmb = math.radians(lon2 - lon1)
        a = (
            math.sin(dphi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
        )
        return 2 * GeometryService.EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))

    @staticmethod
    def straight_line_distance_km(a: Coordinate, b: Coordinate) -> float | None:
        """Great-circle distance between two coordinates, None if either is invalid."""
        if not (isinstance(a, Coordinate) and isinstance(b, Coordinate)):
            return None
        if not (a.is_valid and b.is_valid):
            logger.debug("Rejected invalid coordinates for distance: %s -> %s", a, b)
            return None
        return GeometryService.haversine_distance(
            a.latitude,
            a.longitude,
            b.latitude,
            b.longitude,
        )

    @staticmethod
    def total_distance_km(coordinates: Iterable[Coordinate]) -> float:
        """Sum of consecutive straight-line legs; invalid legs are skipped."""
        points = list(coordinates or [])
        if len(points) < 2:
            return 0.0
        total = 0.0
        for prev, curr in zip(points, points[1:]):
            leg = GeometryService.straight_line_distance_km(prev, curr)
            if leg is not None:
                total += leg
        return total

    @staticmethod
    def parse_coordinate_literal(text: str) -> Coordinate | None:
        """Parse ``"lat,lon"`` text into a validated coordinate."""
        if not isinstance(text, str):
            return None
        match = _COORDINATE_LITERAL.match(text)
        if not match:
            return None
        return Coordinate.from_values(match.group(1), match.group(2))

    @staticmethod
    def continent_for(coordinate: Coordinate) -> str:
        """Coarse continent label for a coordinate."""
        if not isinstance(coordinate, Coordinate) or not coordinate.is_valid:
            return "UNKNOWN"
        lat, lon = coordinate.latitude, coordinate.longitude
        for name, min_lat, max_lat, min_lon, max_lon in _CONTINENT_BOXES:
            if min_lat <= lat <= max_lat and min_lon <= lon <= max_lon:
                return name
        if lat <= -60:
            return "ANTARCTICA"
        return "UNKNOWN"


def format_distance(distance_km: float) -> str:
    """
    Format a distance for display.

    Under 1 km is shown in whole metres, under 10 km with one decimal,
    anything longer as whole kilometres.
    """
    if distance_km < 1:
        return f"{round(distance_km * 1000)}m"
    if distance_km < 10:
        return f"{distance_km:.1f}km"
    return f"{round(distance_km)}km"


validate_coordinates = GeometryService.validate_coordinates
straight_line_distance_km = GeometryService.straight_line_distance_km
total_distance_km = GeometryService.total_distance_km
continent_for = GeometryService.continent_for
