"""
Nominatim reverse geocoding adapter.

Used as the secondary reverse geocoder when the primary provider fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from config import get_nominatim_reverse_url, get_nominatim_user_agent
from core.constants import PROVIDER_TIMEOUT_SECONDS
from core.exceptions import ExternalServiceError
from core.http.circuit_breaker import CircuitBreaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.mapping.rate_limiting import nominatim_rate_limiter
from core.mapping.results import ProviderResult, capture

if TYPE_CHECKING:
    from aiolimiter import AsyncLimiter

    from core.spatial import Coordinate

logger = logging.getLogger(__name__)


class NominatimReverseGeocoder:
    name = "nominatim"

    def __init__(
        self,
        *,
        reverse_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        breaker: CircuitBreaker | None = None,
        limiter: AsyncLimiter | None = None,
    ) -> None:
        self._reverse_url = reverse_url or get_nominatim_reverse_url()
        self._user_agent = user_agent or get_nominatim_user_agent()
        self._timeout = timeout
        self._breaker = breaker or CircuitBreaker("Nominatim")
        self._limiter = limiter or nominatim_rate_limiter

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    @staticmethod
    def format_address(data: dict[str, Any]) -> str:
        """
        Build a short display address from a jsonv2 reverse response.

        Prefers ``name/road, city, state, country`` and falls back to the
        provider's ``display_name``.
        """
        address = data.get("address") or {}
        locality = address.get("city") or address.get("town") or address.get("village")
        parts = [
            data.get("name") or address.get("road"),
            locality,
            address.get("state"),
            address.get("country"),
        ]
        text = ", ".join(str(part).strip() for part in parts if part)
        return text or str(data.get("display_name") or "").strip()

    async def lookup(self, coordinate: Coordinate) -> ProviderResult[str]:
        return await capture(self.name, self._lookup, coordinate)

    @retry_async()
    async def _reverse(self, params: dict[str, Any]) -> Any:
        session = await get_session()
        async with self._limiter:
            return await request_json(
                "GET",
                self._reverse_url,
                session=session,
                params=params,
                headers=self._headers(),
                service_name="Nominatim reverse",
                none_on=(404,),
                timeout=self._timeout,
            )

    async def _lookup(self, coordinate: Coordinate) -> ProviderResult[str]:
        params = {
            "format": "jsonv2",
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "zoom": 18,
            "addressdetails": 1,
        }
        data = await self._breaker.call(self._reverse, params)
        if data is None:
            return ProviderResult.zero_results(provider=self.name)
        if not isinstance(data, dict):
            msg = "Nominatim reverse error: unexpected response"
            raise ExternalServiceError(msg, {"url": self._reverse_url})
        if data.get("error"):
            logger.debug("Nominatim reverse returned no match: %s", data["error"])
            return ProviderResult.zero_results(provider=self.name)
        address = self.format_address(data)
        if not address:
            return ProviderResult.zero_results(provider=self.name)
        return ProviderResult.ok(address, provider=self.name)
