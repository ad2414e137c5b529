import asyncio

import pytest
from aiohttp import ServerDisconnectedError

from core.http.retry import retry_async


@pytest.mark.asyncio
async def test_retry_async_retries_until_success() -> None:
    attempts = 0

    @retry_async(max_retries=2, retry_delay=0)
    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise ServerDisconnectedError()
        return "ok"

    result = await flaky()
    assert result == "ok"
    assert attempts == 3


@pytest.mark.asyncio
async def test_retry_async_raises_after_exhaustion() -> None:
    attempts = 0

    @retry_async(max_retries=1, retry_delay=0)
    async def always_fail():
        nonlocal attempts
        attempts += 1
        raise ServerDisconnectedError()

    with pytest.raises(ServerDisconnectedError):
        await always_fail()

    assert attempts == 2


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_timeouts_by_default() -> None:
    attempts = 0

    @retry_async(max_retries=3, retry_delay=0)
    async def slow():
        nonlocal attempts
        attempts += 1
        raise asyncio.TimeoutError()

    with pytest.raises(asyncio.TimeoutError):
        await slow()

    assert attempts == 1


@pytest.mark.asyncio
async def test_retry_async_accepts_custom_exceptions() -> None:
    attempts = 0

    @retry_async(max_retries=1, retry_delay=0, retry_exceptions=(asyncio.TimeoutError,))
    async def slow():
        nonlocal attempts
        attempts += 1
        raise asyncio.TimeoutError()

    with pytest.raises(asyncio.TimeoutError):
        await slow()

    assert attempts == 2
