"""Straight-line and travel distance between coordinates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.constants import LONG_DISTANCE_THRESHOLD_KM
from core.mapping.results import first_ok
from core.spatial import Coordinate, GeometryService

if TYPE_CHECKING:
    from core.cache import CacheManager
    from core.mapping.interfaces import Router

logger = logging.getLogger(__name__)

STRAIGHT_LINE_TAG = "haversine"


class DistanceResolver:
    """
    Travel distance with a provider fallback chain.

    Pairs further apart than ``long_distance_threshold_km`` skip the
    providers entirely and use the great-circle distance. Otherwise the
    primary and secondary routers are tried in order, and when both fail
    the straight-line distance is cached under the last router's key so
    repeated failures do not trigger more network calls.
    """

    def __init__(
        self,
        cache: CacheManager,
        *,
        primary: Router | None = None,
        secondary: Router | None = None,
        long_distance_threshold_km: float = LONG_DISTANCE_THRESHOLD_KM,
    ) -> None:
        self._cache = cache
        self._routers = [r for r in (primary, secondary) if r is not None]
        self._threshold_km = long_distance_threshold_km

    @property
    def _fallback_tag(self) -> str:
        return self._routers[-1].name if self._routers else STRAIGHT_LINE_TAG

    @staticmethod
    def cache_key(tag: str, origin: Coordinate, destination: Coordinate) -> str:
        return f"{tag}:{origin.cache_key()}:{destination.cache_key()}"

    @staticmethod
    def straight_line_distance_km(a: Coordinate, b: Coordinate) -> float | None:
        return GeometryService.straight_line_distance_km(a, b)

    def cached_distance_km(self, a: Coordinate, b: Coordinate) -> float | None:
        for tag in [r.name for r in self._routers] or [STRAIGHT_LINE_TAG]:
            cached = self._cache.distance.get(self.cache_key(tag, a, b))
            if cached is not None:
                return cached
        return None

    async def travel_distance_km(self, a: Coordinate, b: Coordinate) -> float | None:
        """Driving distance in km, None only when a coordinate is invalid."""
        straight = self.straight_line_distance_km(a, b)
        if straight is None:
            return None
        if straight > self._threshold_km:
            logger.debug(
                "Distance %.1f km exceeds %.0f km, using straight line",
                straight,
                self._threshold_km,
            )
            return straight

        cached = self.cached_distance_km(a, b)
        if cached is not None:
            return cached

        pending_key = f"distance:{a.cache_key()}:{b.cache_key()}"
        try:
            return await self._cache.deduplicator.dedupe(
                pending_key,
                lambda: self._resolve_and_cache(a, b, straight),
            )
        except Exception:
            logger.warning("Travel distance lookup failed unexpectedly", exc_info=True)
            return straight

    async def _resolve_and_cache(
        self,
        a: Coordinate,
        b: Coordinate,
        straight: float,
    ) -> float:
        result = await first_ok(
            (lambda r=router: r.route(a, b)) for router in self._routers
        )
        if result.is_ok and result.value is not None:
            distance_km = result.value / 1000.0
            self._cache.distance.set(self.cache_key(result.provider, a, b), distance_km)
            return distance_km

        logger.warning(
            "All routing providers failed for %s -> %s; using straight-line %.1f km",
            a.cache_key(),
            b.cache_key(),
            straight,
        )
        self._cache.distance.set(self.cache_key(self._fallback_tag, a, b), straight)
        return straight
