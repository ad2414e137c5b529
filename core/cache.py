"""
Process-local caches for provider results.

Provides time-bounded key/value stores, a minimum-interval rate limiter
and an in-flight request deduplicator.  All state is in memory and lives
for the lifetime of the process; expiry is checked lazily on read and
``sweep()`` drops stale entries in bulk.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from core.constants import (
    CORRECTION_TTL,
    FORWARD_GEOCODE_TTL,
    REVERSE_GEOCODE_TTL,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry(Generic[T]):
    value: T
    written_at: float


class TTLCache(Generic[T]):
    """
    Key/value store with an optional time-to-live.

    Parameters
    ----------
    name : str
        Namespace used in log messages.
    ttl : float | None
        Seconds an entry stays fresh; ``None`` keeps entries forever.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        name: str,
        ttl: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def is_expired(self, entry: CacheEntry[Any], ttl: float | None = None) -> bool:
        ttl = self.ttl if ttl is None else ttl
        if ttl is None:
            return False
        return self._clock() - entry.written_at >= ttl

    def get_entry(self, key: str, *, allow_stale: bool = False) -> CacheEntry[T] | None:
        try:
            entry = self._entries.get(key)
        except Exception:
            logger.debug("Cache read failed for %s:%s", self.name, key, exc_info=True)
            return None
        if entry is None:
            return None
        if not allow_stale and self.is_expired(entry):
            return None
        return entry

    def get(self, key: str, default: Any = None, *, allow_stale: bool = False) -> Any:
        """Return the cached value, or ``default`` on a miss or expired entry."""
        entry = self.get_entry(key, allow_stale=allow_stale)
        if entry is None:
            return default
        return entry.value

    def set(self, key: str, value: T) -> None:
        try:
            self._entries[key] = CacheEntry(value=value, written_at=self._clock())
        except Exception:
            logger.debug("Cache write failed for %s:%s", self.name, key, exc_info=True)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries and return how many were dropped."""
        if self.ttl is None:
            return 0
        stale = [key for key, entry in self._entries.items() if self.is_expired(entry)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Swept %d expired entries from %s cache", len(stale), self.name)
        return len(stale)


class RateLimiter:
    """Minimum-interval gate tracked per logical channel."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_call: dict[str, float] = {}

    def can_proceed(self, channel: str, min_interval: float) -> bool:
        """
        Return True and record the call when ``min_interval`` seconds have
        passed since the last permitted call on ``channel``.
        """
        now = self._clock()
        last = self._last_call.get(channel)
        if last is not None and now - last < min_interval:
            return False
        self._last_call[channel] = now
        return True

    def reset(self, channel: str | None = None) -> None:
        if channel is None:
            self._last_call.clear()
        else:
            self._last_call.pop(channel, None)


class RequestDeduplicator:
    """
    Coalesce concurrent requests for the same key into one task.

    Callers that abandon interest do not cancel the underlying task; its
    result still reaches whatever cache the factory writes to.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[Any]] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def dedupe(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, k=key: self._release(k, done))
        else:
            logger.debug("Joining in-flight request for %s", key)
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]


class CacheManager:
    """
    One instance per process, shared by every resolver.

    Holds the forward/reverse geocode caches, the learned correction cache,
    the distance cache, the rate limiter and the in-flight deduplicator.
    """

    def __init__(
        self,
        *,
        forward_ttl: float = FORWARD_GEOCODE_TTL,
        reverse_ttl: float = REVERSE_GEOCODE_TTL,
        correction_ttl: float = CORRECTION_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.clock = clock
        self.geocode: TTLCache[Any] = TTLCache("geocode", forward_ttl, clock=clock)
        self.reverse: TTLCache[str] = TTLCache("reverse", reverse_ttl, clock=clock)
        self.corrections: TTLCache[Any] = TTLCache(
            "corrections",
            correction_ttl,
            clock=clock,
        )
        self.distance: TTLCache[float] = TTLCache("distance", None, clock=clock)
        self.rate_limiter = RateLimiter(clock=clock)
        self.deduplicator = RequestDeduplicator()

    def sweep(self) -> int:
        return sum(
            cache.sweep()
            for cache in (self.geocode, self.reverse, self.corrections, self.distance)
        )

    def clear(self) -> None:
        for cache in (self.geocode, self.reverse, self.corrections, self.distance):
            cache.clear()
        self.rate_limiter.reset()
