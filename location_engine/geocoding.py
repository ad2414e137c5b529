"""Forward geocoding: free-text place names to coordinates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.constants import DEFAULT_COUNTRY_CODE
from location_engine.schemas import Correction, country_name
from location_engine.similarity import rank_by_similarity, similarity
from location_engine.variations import VariationGenerator, correction_key

if TYPE_CHECKING:
    from core.cache import CacheManager
    from core.mapping.interfaces import Geocoder, PlaceSuggester
    from core.mapping.results import GeocodeMatch, ProviderResult
    from core.spatial import Coordinate

logger = logging.getLogger(__name__)


class ForwardGeocoder:
    """
    Resolve place names through a fallback sequence.

    1. Each generated variation against the geocoding provider.
    2. Autocomplete suggestions ranked by similarity to the input.
    3. The first variation suffixed with a human-readable country name.

    Successful lookups that needed a different spelling teach the
    correction cache, which the variation generator consults next time.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        cache: CacheManager,
        *,
        suggester: PlaceSuggester | None = None,
        default_country_code: str = DEFAULT_COUNTRY_CODE,
    ) -> None:
        self._geocoder = geocoder
        self._suggester = suggester
        self._cache = cache
        self._variations = VariationGenerator(cache.corrections)
        self._default_country_code = default_country_code

    @staticmethod
    def cache_key(address: str, country_code: str | None) -> str:
        return f"{address.lower()}|{country_code or ''}"

    async def geocode(
        self,
        address: str,
        country_code: str | None = None,
    ) -> Coordinate | None:
        """
        Resolve ``address`` to a coordinate.

        Returns None for blank input or when every strategy is exhausted;
        never raises.
        """
        text = address.strip() if isinstance(address, str) else ""
        if not text:
            logger.debug("Empty address provided for geocoding")
            return None
        code = (country_code or "").strip().upper() or None
        key = self.cache_key(text, code)

        entry = self._cache.geocode.get_entry(key)
        if entry is not None:
            logger.debug("Geocode cache hit for %r", text)
            return entry.value

        try:
            return await self._cache.deduplicator.dedupe(
                f"geocode:{key}",
                lambda: self._resolve_and_cache(key, text, code),
            )
        except Exception:
            logger.warning("Geocoding failed unexpectedly for %r", text, exc_info=True)
            return None

    async def _resolve_and_cache(
        self,
        key: str,
        text: str,
        code: str | None,
    ) -> Coordinate | None:
        coordinate = await self._resolve(text, code)
        self._cache.geocode.set(key, coordinate)
        return coordinate

    def _query(self, name: str, code: str | None) -> str:
        return f"{name}, {code}" if code else name

    def _accepted(self, result: ProviderResult, query: str) -> GeocodeMatch | None:
        """Return the match when the provider answered with an in-bounds point."""
        if not result.is_ok:
            return None
        if not result.value.coordinate.is_valid:
            logger.warning(
                "Geocoding provider returned out-of-range coordinate %s for %r",
                result.value.coordinate,
                query,
            )
            return None
        return result.value

    async def _resolve(self, text: str, code: str | None) -> Coordinate | None:
        variations = self._variations.generate(text)
        logger.debug("Generated %d variations for %r: %s", len(variations), text, variations)

        for index, variation in enumerate(variations, start=1):
            query = self._query(variation, code)
            logger.debug("Geocoding attempt %d/%d: %r", index, len(variations), query)
            result = await self._geocoder.search(query)
            if result.is_zero_results:
                continue
            found = self._accepted(result, query)
            if found is not None:
                self._learn(text, variation, found)
                return found.coordinate
            logger.warning(
                "Geocoding provider failed for %r (%s); skipping remaining variations",
                query,
                result.error or "invalid coordinate",
            )
            break

        coordinate = await self._resolve_from_suggestions(text, code)
        if coordinate is not None:
            return coordinate

        fallback_query = (
            f"{variations[0]}, {country_name(code, self._default_country_code)}"
        )
        logger.debug("Final geocoding attempt with country context: %r", fallback_query)
        found = self._accepted(await self._geocoder.search(fallback_query), fallback_query)
        if found is not None:
            return found.coordinate

        logger.warning("All geocoding attempts failed for %r", text)
        return None

    async def _resolve_from_suggestions(
        self,
        text: str,
        code: str | None,
    ) -> Coordinate | None:
        if self._suggester is None:
            return None
        suggestions = await self._suggester.suggest(text, code)
        if not suggestions.is_ok or not suggestions.value:
            return None

        ranked = rank_by_similarity(text, suggestions.value)
        logger.debug(
            "Trying %d autocomplete suggestions for %r: %s",
            len(ranked),
            text,
            [s.name for s in ranked],
        )
        for suggestion in ranked:
            query = self._query(suggestion.name, code)
            found = self._accepted(await self._geocoder.search(query), query)
            if found is not None:
                self._learn(text, suggestion.name, found)
                return found.coordinate
        return None

    def _learn(self, original: str, used_query: str, match: GeocodeMatch) -> None:
        """Remember ``original -> canonical name`` when a different spelling won."""
        corrected = match.canonical_name
        if (
            not corrected
            or used_query.lower() == original.lower()
            or corrected.lower() == original.lower()
        ):
            return
        key = correction_key(original)
        score = similarity(original, corrected)
        existing = self._cache.corrections.get(key)
        if (
            isinstance(existing, Correction)
            and existing.corrected_name != corrected
            and score < existing.similarity
        ):
            logger.debug(
                "Keeping correction %r -> %r over weaker %r",
                original,
                existing.corrected_name,
                corrected,
            )
            return
        self._cache.corrections.set(
            key,
            Correction(original_query=original, corrected_name=corrected, similarity=score),
        )
        logger.debug("Cached location correction: %r -> %r", original, corrected)
