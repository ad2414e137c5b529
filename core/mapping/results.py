"""
Explicit provider results and the fallback-chain combinator.

Adapters never leak exceptions to the resolvers: every call comes back as
a :class:`ProviderResult` whose status tells the caller whether to accept
the value, try the next variation, or move on to the next provider.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import aiohttp

from core.exceptions import ExternalServiceError, LocationEngineError
from core.http.circuit_breaker import CircuitOpen

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from core.spatial import Coordinate

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exceptions that count as a provider hard failure rather than a bug.
PROVIDER_ERRORS: tuple[type[BaseException], ...] = (
    LocationEngineError,
    CircuitOpen,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
)


class ProviderStatus(str, Enum):
    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class GeocodeMatch:
    coordinate: Coordinate
    canonical_name: str


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    status: ProviderStatus
    value: T | None = None
    error: BaseException | None = None
    provider: str = ""

    @classmethod
    def ok(cls, value: T, *, provider: str = "") -> ProviderResult[T]:
        return cls(ProviderStatus.OK, value=value, provider=provider)

    @classmethod
    def zero_results(cls, *, provider: str = "") -> ProviderResult[T]:
        return cls(ProviderStatus.ZERO_RESULTS, provider=provider)

    @classmethod
    def failure(
        cls,
        error: BaseException | str,
        *,
        provider: str = "",
    ) -> ProviderResult[T]:
        if isinstance(error, str):
            error = ExternalServiceError(error)
        return cls(ProviderStatus.ERROR, error=error, provider=provider)

    @property
    def is_ok(self) -> bool:
        return self.status is ProviderStatus.OK

    @property
    def is_zero_results(self) -> bool:
        return self.status is ProviderStatus.ZERO_RESULTS

    @property
    def is_error(self) -> bool:
        return self.status is ProviderStatus.ERROR

    @property
    def is_rate_limited(self) -> bool:
        details = getattr(self.error, "details", None) or {}
        return details.get("status") == 429


async def capture(
    provider: str,
    fn: Callable[..., Awaitable[ProviderResult[T]]],
    *args: Any,
    **kwargs: Any,
) -> ProviderResult[T]:
    """Run an adapter call, turning provider exceptions into a failed result."""
    try:
        return await fn(*args, **kwargs)
    except PROVIDER_ERRORS as exc:
        logger.warning("%s request failed: %s", provider, exc or type(exc).__name__)
        return ProviderResult.failure(exc, provider=provider)


async def first_ok(
    attempts: Iterable[Callable[[], Awaitable[ProviderResult[T]]]],
) -> ProviderResult[T]:
    """
    Walk a chain of provider attempts and return the first OK result.

    When nothing succeeds, the last result is returned so the caller can
    inspect why; an empty chain yields a failed result.
    """
    last: ProviderResult[T] = ProviderResult.failure("no providers configured")
    for attempt in attempts:
        last = await attempt()
        if last.is_ok:
            return last
        logger.debug(
            "Provider %s returned %s, falling through",
            last.provider or "unknown",
            last.status.value,
        )
    return last
