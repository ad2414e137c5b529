"""
Per-provider circuit breaker.

After ``failure_threshold`` consecutive failures a provider is skipped for
``recovery_timeout`` seconds; the resolver's fallback chain moves straight
on to the next provider. One probe call is let through afterwards and its
outcome decides whether the circuit closes again.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitOpen(Exception):
    """The provider is being skipped until the breaker's recovery window ends."""

    def __init__(self, service: str, resets_in: float) -> None:
        super().__init__(f"{service} skipped: circuit open for another {resets_in:.0f}s")
        self.service = service
        self.resets_in = resets_in


class CircuitBreaker:
    """
    Track consecutive failures of one provider.

    Parameters
    ----------
    service : str
        Provider name used in logs and :class:`CircuitOpen`.
    failure_threshold : int
        Consecutive failures that open the circuit.
    recovery_timeout : float
        Seconds the circuit stays open before a probe is allowed.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        service: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service = service
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = BreakerState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> BreakerState:
        if (
            self._state is BreakerState.OPEN
            and self._clock() - self._opened_at >= self.recovery_timeout
        ):
            self._state = BreakerState.HALF_OPEN
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def _open(self) -> None:
        self._state = BreakerState.OPEN
        self._opened_at = self._clock()

    def record_success(self) -> None:
        if self._state is not BreakerState.CLOSED:
            logger.info("%s recovered; circuit closed", self.service)
        self._state = BreakerState.CLOSED
        self._consecutive_failures = 0

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._state is BreakerState.HALF_OPEN:
            self._open()
            logger.warning("%s probe failed; circuit re-opened", self.service)
        elif (
            self._state is BreakerState.CLOSED
            and self._consecutive_failures >= self.failure_threshold
        ):
            self._open()
            logger.warning(
                "%s failed %d times in a row; circuit opened for %.0fs",
                self.service,
                self._consecutive_failures,
                self.recovery_timeout,
            )

    def check(self) -> None:
        """Raise :class:`CircuitOpen` while the recovery window is running."""
        if self.state is BreakerState.OPEN:
            elapsed = self._clock() - self._opened_at
            raise CircuitOpen(self.service, max(0.0, self.recovery_timeout - elapsed))

    async def call(
        self,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Await ``fn`` unless the circuit is open, recording the outcome."""
        self.check()
        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result
