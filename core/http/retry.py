"""Tenacity retry policy for provider HTTP calls.

Only connection-level failures are worth repeating against the same
provider: timeouts, 429s and provider status errors are handed straight to
the next provider in the fallback chain instead.
"""

from __future__ import annotations

import logging

from aiohttp import ClientConnectorError, ServerDisconnectedError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

TRANSIENT_CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    ClientConnectorError,
    ServerDisconnectedError,
)


def retry_async(
    max_retries: int = 1,
    retry_delay: float = 0.5,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = TRANSIENT_CONNECTION_ERRORS,
):
    """Build a retry decorator for an async provider call.

    Args:
        max_retries: Extra attempts after the first one.
        retry_delay: Base delay in seconds, grown by ``backoff_factor`` each attempt.
        backoff_factor: Exponential base for the wait between attempts.
        retry_exceptions: Exception types that trigger another attempt.

    The last exception is re-raised unchanged once attempts run out, so the
    adapter's ``capture`` wrapper sees the real failure.
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
