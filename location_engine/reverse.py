"""Reverse geocoding: coordinates to a display address."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.constants import REVERSE_GEOCODE_CHANNEL, REVERSE_GEOCODE_MIN_INTERVAL
from core.mapping.results import first_ok
from core.spatial import Coordinate

if TYPE_CHECKING:
    from core.cache import CacheManager
    from core.mapping.interfaces import ReverseGeocoder

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"


class ReverseGeocodeResolver:
    """
    Cached, rate-limited reverse geocoding with a secondary provider.

    A module-wide minimum interval protects the primary provider: calls
    arriving inside the window get the best cached value (even if stale)
    or the coordinate as text, without a network call.
    """

    def __init__(
        self,
        primary: ReverseGeocoder,
        cache: CacheManager,
        *,
        secondary: ReverseGeocoder | None = None,
        min_interval: float = REVERSE_GEOCODE_MIN_INTERVAL,
    ) -> None:
        self._providers = [p for p in (primary, secondary) if p is not None]
        self._cache = cache
        self._min_interval = min_interval

    async def reverse_geocode(self, coordinate: Coordinate) -> str:
        """Return a display-safe address for ``coordinate``; never raises."""
        if not isinstance(coordinate, Coordinate) or not coordinate.is_valid:
            logger.debug("Rejected invalid coordinate for reverse geocoding: %r", coordinate)
            return UNKNOWN_LOCATION

        key = coordinate.cache_key()
        try:
            cached = self._cache.reverse.get(key)
            if cached is not None:
                return cached

            pending_key = f"reverse:{key}"
            if self._cache.deduplicator.is_pending(pending_key):
                logger.debug("Waiting for pending reverse geocode of %s", key)
                return await self._cache.deduplicator.dedupe(
                    pending_key,
                    lambda: self._lookup_and_cache(key, coordinate),
                )

            if not self._cache.rate_limiter.can_proceed(
                REVERSE_GEOCODE_CHANNEL,
                self._min_interval,
            ):
                logger.debug("Rate limiting reverse geocode request for %s", key)
                stale = self._cache.reverse.get(key, allow_stale=True)
                return stale or coordinate.as_text()

            return await self._cache.deduplicator.dedupe(
                pending_key,
                lambda: self._lookup_and_cache(key, coordinate),
            )
        except Exception:
            logger.warning("Reverse geocoding failed unexpectedly for %s", key, exc_info=True)
            return coordinate.as_text()

    async def _lookup_and_cache(self, key: str, coordinate: Coordinate) -> str:
        result = await first_ok(
            (lambda p=provider: p.lookup(coordinate)) for provider in self._providers
        )
        if result.is_ok and result.value:
            address = result.value
            logger.debug("Reverse geocoded %s via %s: %s", key, result.provider, address)
        else:
            address = coordinate.as_text()
            logger.warning("All reverse geocoding providers failed for %s", key)
        self._cache.reverse.set(key, address)
        return address
