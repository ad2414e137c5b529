"""LocationService: one object wiring the cache manager and all resolvers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import EngineSettings, get_google_maps_api_key, load_engine_settings
from core.cache import CacheManager
from core.mapping.google_provider import (
    GoogleDistanceMatrix,
    GoogleGeocoder,
    GooglePlaceSuggester,
)
from core.mapping.nominatim_provider import NominatimReverseGeocoder
from core.mapping.osrm_provider import OsrmRouter
from core.spatial import Coordinate, GeometryService, format_distance
from location_engine.distance import DistanceResolver
from location_engine.geocoding import ForwardGeocoder
from location_engine.reverse import ReverseGeocodeResolver

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from core.mapping.interfaces import Geocoder, PlaceSuggester, ReverseGeocoder, Router

logger = logging.getLogger(__name__)


class LocationService:
    """
    Facade exposed to UI collaborators.

    Construct once per process and share it; every resolver works against
    the same :class:`CacheManager`, so in-flight requests are coalesced
    across callers.
    """

    def __init__(
        self,
        *,
        geocoder: Geocoder,
        reverse_primary: ReverseGeocoder,
        cache: CacheManager | None = None,
        suggester: PlaceSuggester | None = None,
        reverse_secondary: ReverseGeocoder | None = None,
        primary_router: Router | None = None,
        secondary_router: Router | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        settings = settings or EngineSettings()
        self.settings = settings
        self.cache = cache or CacheManager(
            forward_ttl=settings.forward_ttl,
            reverse_ttl=settings.reverse_ttl,
            correction_ttl=settings.correction_ttl,
        )
        self.forward = ForwardGeocoder(
            geocoder,
            self.cache,
            suggester=suggester,
            default_country_code=settings.default_country_code,
        )
        self.reverse = ReverseGeocodeResolver(
            reverse_primary,
            self.cache,
            secondary=reverse_secondary,
            min_interval=settings.reverse_min_interval,
        )
        self.distance = DistanceResolver(
            self.cache,
            primary=primary_router,
            secondary=secondary_router,
            long_distance_threshold_km=settings.long_distance_threshold_km,
        )

    async def geocode_address(
        self,
        address: str,
        country_code: str | None = None,
    ) -> Coordinate | None:
        return await self.forward.geocode(address, country_code)

    async def reverse_geocode(self, coordinate: Coordinate) -> str:
        return await self.reverse.reverse_geocode(coordinate)

    def straight_line_distance_km(self, a: Coordinate, b: Coordinate) -> float | None:
        return self.distance.straight_line_distance_km(a, b)

    async def travel_distance_km(self, a: Coordinate, b: Coordinate) -> float | None:
        return await self.distance.travel_distance_km(a, b)

    async def parse_location_string(
        self,
        text: str,
        country_code: str | None = None,
    ) -> Coordinate | None:
        """Accept a ``"lat,lon"`` literal, otherwise geocode the text."""
        coordinate = GeometryService.parse_coordinate_literal(text)
        if coordinate is not None:
            return coordinate
        return await self.geocode_address(text, country_code)

    @staticmethod
    def total_distance_km(coordinates: Iterable[Coordinate]) -> float:
        return GeometryService.total_distance_km(coordinates)

    @staticmethod
    def format_distance(distance_km: float) -> str:
        return format_distance(distance_km)

    @staticmethod
    def continent_for(coordinate: Coordinate) -> str:
        return GeometryService.continent_for(coordinate)

    def sweep_caches(self) -> int:
        """Drop expired cache entries; call from a periodic task if desired."""
        return self.cache.sweep()


def build_location_service(
    settings: EngineSettings | None = None,
    *,
    api_key: str | Callable[[], str | None] | None = None,
) -> LocationService:
    """Wire the production providers from settings."""
    settings = settings or load_engine_settings()
    key_provider = api_key if api_key is not None else get_google_maps_api_key
    timeout = settings.provider_timeout

    forward_geocoder = GoogleGeocoder(key_provider, timeout=timeout)
    # Separate instance so reverse lookups keep their own circuit breaker.
    reverse_geocoder = GoogleGeocoder(key_provider, timeout=timeout)
    reverse_secondary = None
    if settings.nominatim_fallback:
        reverse_secondary = NominatimReverseGeocoder(
            reverse_url=settings.nominatim_reverse_url,
            user_agent=settings.nominatim_user_agent,
            timeout=timeout,
        )
    if not forward_geocoder.is_configured:
        logger.warning("Google Maps API key not configured; primary providers will fail")

    return LocationService(
        geocoder=forward_geocoder,
        suggester=GooglePlaceSuggester(key_provider, timeout=timeout),
        reverse_primary=reverse_geocoder,
        reverse_secondary=reverse_secondary,
        primary_router=GoogleDistanceMatrix(key_provider, timeout=timeout),
        secondary_router=OsrmRouter(base_url=settings.osrm_base_url, timeout=timeout),
        settings=settings,
    )
