"""
Provider interfaces for geocoding, suggestions, reverse lookups and routing.
"""

from typing import Protocol

from core.mapping.results import GeocodeMatch, ProviderResult
from core.spatial import Coordinate


class Geocoder(Protocol):
    """Interface for forward geocoding (place name -> coordinate)."""

    name: str

    async def search(self, query: str) -> ProviderResult[GeocodeMatch]:
        """Resolve a free-text query to its best match."""
        ...


class PlaceSuggester(Protocol):
    """Interface for autocomplete providers returning candidate place names."""

    name: str

    async def suggest(
        self,
        query: str,
        country_code: str | None = None,
    ) -> ProviderResult[list[str]]:
        """Return candidate place names for a (possibly misspelled) query."""
        ...


class ReverseGeocoder(Protocol):
    """Interface for reverse geocoding (coordinate -> display address)."""

    name: str

    async def lookup(self, coordinate: Coordinate) -> ProviderResult[str]:
        """Return a human-readable address for the coordinate."""
        ...


class Router(Protocol):
    """Interface for driving-distance providers."""

    name: str

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> ProviderResult[float]:
        """Return the driving distance in meters between two coordinates."""
        ...
