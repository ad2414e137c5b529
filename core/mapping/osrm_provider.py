"""
OSRM HTTP adapter.

Driving distance from an OSRM routing server, used as the secondary
(open) routing provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from config import get_osrm_base_url
from core.constants import PROVIDER_TIMEOUT_SECONDS
from core.exceptions import ExternalServiceError
from core.http.circuit_breaker import CircuitBreaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.mapping.rate_limiting import osrm_rate_limiter
from core.mapping.results import ProviderResult, capture

if TYPE_CHECKING:
    from aiolimiter import AsyncLimiter

    from core.spatial import Coordinate

logger = logging.getLogger(__name__)


class OsrmRouter:
    name = "osrm"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        profile: str = "driving",
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        breaker: CircuitBreaker | None = None,
        limiter: AsyncLimiter | None = None,
    ) -> None:
        self._base_url = (base_url or get_osrm_base_url()).rstrip("/")
        self._profile = profile
        self._timeout = timeout
        self._breaker = breaker or CircuitBreaker("OSRM")
        self._limiter = limiter or osrm_rate_limiter

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        # OSRM takes lon,lat pairs
        waypoints = (
            f"{origin.longitude},{origin.latitude};"
            f"{destination.longitude},{destination.latitude}"
        )
        return f"{self._base_url}/route/v1/{self._profile}/{waypoints}"

    @staticmethod
    def _normalize_route_response(data: dict[str, Any]) -> float | None:
        routes = data.get("routes") or []
        if not routes:
            return None
        distance = routes[0].get("distance")
        if distance is None:
            return None
        meters = float(distance)
        if meters < 0:
            msg = "OSRM route error: negative distance"
            raise ExternalServiceError(msg, {"distance": meters})
        return meters

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> ProviderResult[float]:
        return await capture(self.name, self._route, origin, destination)

    @retry_async()
    async def _fetch(self, url: str) -> Any:
        session = await get_session()
        async with self._limiter:
            return await request_json(
                "GET",
                url,
                session=session,
                params={"overview": "false"},
                # OSRM reports NoRoute with a 400 body
                expected_status=(200, 400),
                service_name="OSRM route",
                timeout=self._timeout,
            )

    async def _route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> ProviderResult[float]:
        url = self.route_url(origin, destination)
        data = await self._breaker.call(self._fetch, url)
        if not isinstance(data, dict):
            msg = "OSRM route error: unexpected response"
            raise ExternalServiceError(msg, {"url": url})
        code = str(data.get("code") or "")
        if code == "NoRoute":
            return ProviderResult.zero_results(provider=self.name)
        if code != "Ok":
            msg = f"OSRM route error: {code or 'unknown'}"
            raise ExternalServiceError(msg, {"code": code, "url": url})
        meters = self._normalize_route_response(data)
        if meters is None:
            return ProviderResult.zero_results(provider=self.name)
        return ProviderResult.ok(meters, provider=self.name)
