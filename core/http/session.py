"""Shared aiohttp session for provider adapters.

One ``ClientSession`` serves every adapter in a process. A session that was
inherited across a fork, or that belongs to another (or closed) event loop,
is replaced transparently on the next ``get_session()`` call.
"""

from __future__ import annotations

import asyncio
import logging
import os

import aiohttp

from core.constants import (
    HTTP_CONNECTION_LIMIT,
    HTTP_TIMEOUT_CONNECT,
    HTTP_TIMEOUT_SOCK_READ,
    HTTP_TIMEOUT_TOTAL,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


class SessionState:
    """Holder for the process-wide session and the context it was built in."""

    session: aiohttp.ClientSession | None = None
    owner_pid: int | None = None
    owner_loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def reset(cls) -> None:
        cls.session = None
        cls.owner_pid = None
        cls.owner_loop = None


def _is_reusable(loop: asyncio.AbstractEventLoop) -> bool:
    session = SessionState.session
    if session is None or session.closed:
        return False
    if SessionState.owner_pid != os.getpid():
        logger.debug(
            "Dropping session inherited from pid %s in pid %s",
            SessionState.owner_pid,
            os.getpid(),
        )
        return False
    owner_loop = SessionState.owner_loop
    if owner_loop is not loop or owner_loop.is_closed():
        logger.info("Event loop changed; provider session will be recreated")
        return False
    return True


async def _close_stale_session() -> None:
    session = SessionState.session
    owner_loop = SessionState.owner_loop
    SessionState.reset()
    if session is None or session.closed:
        return
    # A session from a forked parent or a dead loop cannot be closed here.
    if owner_loop is None or owner_loop.is_closed():
        return
    if owner_loop is not asyncio.get_running_loop():
        return
    try:
        await session.close()
    except Exception as exc:
        logger.warning("Error closing stale provider session: %s", exc)


def _new_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(
            total=HTTP_TIMEOUT_TOTAL,
            connect=HTTP_TIMEOUT_CONNECT,
            sock_read=HTTP_TIMEOUT_SOCK_READ,
        ),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        connector=aiohttp.TCPConnector(
            limit=HTTP_CONNECTION_LIMIT,
            enable_cleanup_closed=True,
        ),
    )


async def get_session() -> aiohttp.ClientSession:
    """Return the provider session for the running loop, creating it if needed."""
    loop = asyncio.get_running_loop()
    if _is_reusable(loop):
        return SessionState.session

    await _close_stale_session()
    SessionState.session = _new_session()
    SessionState.owner_pid = os.getpid()
    SessionState.owner_loop = loop
    logger.debug("Created provider session for pid %s", SessionState.owner_pid)
    return SessionState.session


async def cleanup_session() -> None:
    """Close the shared session; safe to call when none exists."""
    session = SessionState.session
    SessionState.reset()
    if session is None or session.closed:
        return
    try:
        await session.close()
        logger.info("Closed provider session for pid %s", os.getpid())
    except Exception as exc:
        logger.warning("Error closing provider session: %s", exc)
