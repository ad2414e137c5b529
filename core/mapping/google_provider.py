"""
Google Maps Platform adapters: geocoding, place autocomplete, reverse
geocoding and driving distance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from config import (
    GOOGLE_AUTOCOMPLETE_URL,
    GOOGLE_DISTANCE_MATRIX_URL,
    GOOGLE_GEOCODE_URL,
    get_google_maps_api_key,
)
from core.constants import PROVIDER_TIMEOUT_SECONDS
from core.exceptions import ConfigurationError, ExternalServiceError, RateLimitError
from core.http.circuit_breaker import CircuitBreaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.mapping.rate_limiting import google_rate_limiter
from core.mapping.results import GeocodeMatch, ProviderResult, capture
from core.spatial import Coordinate

if TYPE_CHECKING:
    from collections.abc import Callable

    from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)


def _status(data: Any) -> str:
    if not isinstance(data, dict):
        return "UNKNOWN"
    return str(data.get("status") or "UNKNOWN")


def _raise_for_status(data: Any, service_name: str) -> None:
    """Map a non-OK Google status onto the engine exception hierarchy."""
    status = _status(data)
    details = {"status": status}
    if isinstance(data, dict) and data.get("error_message"):
        details["error_message"] = data["error_message"]
    msg = f"{service_name} error: {status}"
    if status == "OVER_QUERY_LIMIT":
        details["status"] = 429
        raise RateLimitError(msg, details)
    raise ExternalServiceError(msg, details)


def canonical_name(formatted_address: str) -> str:
    """First comma-separated component of a formatted address."""
    return (formatted_address or "").split(",")[0].strip()


class _GoogleClient:
    """Shared plumbing: key lookup, breaker, limiter and JSON requests."""

    name = "google"

    def __init__(
        self,
        api_key: str | Callable[[], str | None] | None = None,
        *,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        breaker: CircuitBreaker | None = None,
        limiter: AsyncLimiter | None = None,
    ) -> None:
        if api_key is None:
            self._key_provider = get_google_maps_api_key
        elif callable(api_key):
            self._key_provider = api_key
        else:
            self._key_provider = lambda: api_key
        self._timeout = timeout
        self._breaker = breaker or CircuitBreaker(type(self).__name__)
        self._limiter = limiter or google_rate_limiter

    @property
    def is_configured(self) -> bool:
        return bool(self._key_provider())

    def _api_key(self) -> str:
        key = (self._key_provider() or "").strip()
        if not key:
            msg = "Google Maps API key is not configured"
            raise ConfigurationError(msg, {"provider": self.name})
        return key

    @retry_async()
    async def _get(self, url: str, params: dict[str, Any], service_name: str) -> Any:
        session = await get_session()
        async with self._limiter:
            return await request_json(
                "GET",
                url,
                session=session,
                params=params,
                service_name=service_name,
                timeout=self._timeout,
            )

    async def _call(self, url: str, params: dict[str, Any], service_name: str) -> Any:
        params = {**params, "key": self._api_key()}
        return await self._breaker.call(self._get, url, params, service_name)


class GoogleGeocoder(_GoogleClient):
    """Forward and reverse geocoding through the Google Geocoding API."""

    name = "google-geocode"

    async def search(self, query: str) -> ProviderResult[GeocodeMatch]:
        return await capture(self.name, self._search, query)

    async def _search(self, query: str) -> ProviderResult[GeocodeMatch]:
        data = await self._call(
            GOOGLE_GEOCODE_URL,
            {"address": query},
            "Google geocode",
        )
        status = _status(data)
        if status == "ZERO_RESULTS":
            return ProviderResult.zero_results(provider=self.name)
        if status != "OK":
            _raise_for_status(data, "Google geocode")

        results = data.get("results") or []
        if not results:
            return ProviderResult.zero_results(provider=self.name)
        best = results[0]
        location = (best.get("geometry") or {}).get("location") or {}
        coordinate = Coordinate.from_values(location.get("lat"), location.get("lng"))
        if coordinate is None:
            msg = "Google geocode error: invalid coordinate in response"
            raise ExternalServiceError(msg, {"location": location})
        formatted = best.get("formatted_address") or query
        return ProviderResult.ok(
            GeocodeMatch(coordinate=coordinate, canonical_name=canonical_name(formatted)),
            provider=self.name,
        )

    async def lookup(self, coordinate: Coordinate) -> ProviderResult[str]:
        return await capture(self.name, self._lookup, coordinate)

    async def _lookup(self, coordinate: Coordinate) -> ProviderResult[str]:
        data = await self._call(
            GOOGLE_GEOCODE_URL,
            {"latlng": f"{coordinate.latitude},{coordinate.longitude}"},
            "Google reverse geocode",
        )
        status = _status(data)
        if status == "ZERO_RESULTS":
            return ProviderResult.zero_results(provider=self.name)
        if status != "OK":
            _raise_for_status(data, "Google reverse geocode")

        results = data.get("results") or []
        address = (results[0].get("formatted_address") or "").strip() if results else ""
        if not address:
            return ProviderResult.zero_results(provider=self.name)
        return ProviderResult.ok(address, provider=self.name)


class GooglePlaceSuggester(_GoogleClient):
    """Candidate city names from Google Places Autocomplete."""

    name = "google-autocomplete"

    async def suggest(
        self,
        query: str,
        country_code: str | None = None,
    ) -> ProviderResult[list[str]]:
        return await capture(self.name, self._suggest, query, country_code)

    async def _suggest(
        self,
        query: str,
        country_code: str | None = None,
    ) -> ProviderResult[list[str]]:
        params: dict[str, Any] = {"input": query, "types": "(cities)"}
        if country_code:
            params["components"] = f"country:{country_code.lower()}"
        data = await self._call(GOOGLE_AUTOCOMPLETE_URL, params, "Google autocomplete")
        status = _status(data)
        if status == "ZERO_RESULTS":
            return ProviderResult.zero_results(provider=self.name)
        if status != "OK":
            _raise_for_status(data, "Google autocomplete")

        suggestions: list[str] = []
        for prediction in data.get("predictions") or []:
            if not isinstance(prediction, dict):
                continue
            structured = prediction.get("structured_formatting") or {}
            text = structured.get("main_text") or prediction.get("description") or ""
            name = canonical_name(text)
            if name:
                suggestions.append(name)
        if not suggestions:
            return ProviderResult.zero_results(provider=self.name)
        logger.debug("Got %d place suggestions for %r", len(suggestions), query)
        return ProviderResult.ok(suggestions, provider=self.name)


class GoogleDistanceMatrix(_GoogleClient):
    """Driving distance from the Google Distance Matrix API."""

    name = "google"

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> ProviderResult[float]:
        return await capture(self.name, self._route, origin, destination)

    async def _route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> ProviderResult[float]:
        params = {
            "origins": f"{origin.latitude},{origin.longitude}",
            "destinations": f"{destination.latitude},{destination.longitude}",
            "mode": "driving",
            "units": "metric",
        }
        data = await self._call(GOOGLE_DISTANCE_MATRIX_URL, params, "Google distance matrix")
        if _status(data) != "OK":
            _raise_for_status(data, "Google distance matrix")

        rows = data.get("rows") or []
        elements = (rows[0].get("elements") or []) if rows else []
        if not elements:
            msg = "Google distance matrix error: empty response"
            raise ExternalServiceError(msg)
        element = elements[0]
        element_status = str(element.get("status") or "UNKNOWN")
        if element_status in {"ZERO_RESULTS", "NOT_FOUND"}:
            return ProviderResult.zero_results(provider=self.name)
        if element_status != "OK":
            msg = f"Google distance matrix error: element {element_status}"
            raise ExternalServiceError(msg, {"status": element_status})
        meters = float((element.get("distance") or {})["value"])
        if meters < 0:
            msg = "Google distance matrix error: negative distance"
            raise ExternalServiceError(msg, {"distance": meters})
        return ProviderResult.ok(meters, provider=self.name)
