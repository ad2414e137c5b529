"""
JSON request helper shared by the provider adapters.

Maps HTTP-level failures onto the engine's exception hierarchy so every
adapter reports rate limiting, bad statuses and undecodable bodies the
same way.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from core.exceptions import ExternalServiceError, RateLimitError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 5


def _as_status_set(statuses: int | Iterable[int] | None) -> set[int]:
    if statuses is None:
        return set()
    if isinstance(statuses, int):
        return {statuses}
    return set(statuses)


def _as_client_timeout(timeout: Any) -> Any:
    if timeout is None or isinstance(timeout, aiohttp.ClientTimeout):
        return timeout
    return aiohttp.ClientTimeout(total=float(timeout))


def _request_fn(session: Any, method: str, service_name: str, url: str) -> Callable:
    if method == "GET":
        return session.get
    if method == "POST":
        return session.post
    request = getattr(session, "request", None)
    if request is None:
        msg = f"{service_name} request error: unsupported method {method}"
        raise ExternalServiceError(msg, {"url": url})
    return lambda target, **kwargs: request(method, target, **kwargs)


def _retry_after(headers: Any) -> int:
    try:
        return int(headers.get("Retry-After", DEFAULT_RETRY_AFTER))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER


async def request_json(
    method: str,
    url: str,
    *,
    session: Any,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    expected_status: int | Iterable[int] = 200,
    none_on: Iterable[int] | None = None,
    service_name: str = "Service",
    timeout: Any | None = None,
) -> Any | None:
    """
    Send a request and decode its JSON body.

    Returns None for statuses in ``none_on``. Raises RateLimitError on 429,
    and ExternalServiceError for any other status outside
    ``expected_status`` or a body that is not JSON.
    """
    method = method.upper()
    expected = _as_status_set(expected_status)
    empty_statuses = _as_status_set(none_on)
    send = _request_fn(session, method, service_name, url)

    kwargs: dict[str, Any] = {"params": params, "json": json, "headers": headers}
    if timeout is not None:
        kwargs["timeout"] = _as_client_timeout(timeout)

    async with send(url, **kwargs) as response:
        status = response.status
        response_url = str(getattr(response, "url", url))
        if status in empty_statuses:
            logger.debug("%s returned %s for %s", service_name, status, response_url)
            return None
        if status == 429:
            msg = f"{service_name} error: 429"
            raise RateLimitError(
                msg,
                {
                    "status": 429,
                    "retry_after": _retry_after(response.headers),
                    "url": response_url,
                },
            )
        if status not in expected:
            msg = f"{service_name} error: {status}"
            raise ExternalServiceError(
                msg,
                {"status": status, "body": await response.text(), "url": response_url},
            )
        try:
            return await response.json()
        except (aiohttp.ContentTypeError, ValueError) as exc:
            msg = f"{service_name} error: malformed response"
            raise ExternalServiceError(msg, {"url": response_url}) from exc
