import asyncio

import pytest

from core.exceptions import ExternalServiceError, RateLimitError
from core.mapping.results import ProviderResult, ProviderStatus, capture, first_ok


def test_failure_wraps_message_in_exception() -> None:
    result = ProviderResult.failure("boom", provider="p")

    assert result.status is ProviderStatus.ERROR
    assert isinstance(result.error, ExternalServiceError)
    assert not result.is_rate_limited


def test_rate_limited_failure() -> None:
    result = ProviderResult.failure(RateLimitError("slow down", {"status": 429}))

    assert result.is_rate_limited


@pytest.mark.asyncio
async def test_capture_turns_provider_errors_into_results() -> None:
    async def timeout():
        raise asyncio.TimeoutError()

    result = await capture("svc", timeout)

    assert result.is_error
    assert result.provider == "svc"
    assert isinstance(result.error, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_capture_lets_programming_errors_through() -> None:
    async def broken():
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await capture("svc", broken)


@pytest.mark.asyncio
async def test_first_ok_stops_at_first_success() -> None:
    calls = []

    def attempt(result):
        async def run():
            calls.append(result.provider)
            return result

        return run

    result = await first_ok(
        [
            attempt(ProviderResult.failure("down", provider="a")),
            attempt(ProviderResult.ok(1, provider="b")),
            attempt(ProviderResult.ok(2, provider="c")),
        ],
    )

    assert result.value == 1
    assert calls == ["a", "b"]


@pytest.mark.asyncio
async def test_first_ok_returns_last_result_when_exhausted() -> None:
    async def zero():
        return ProviderResult.zero_results(provider="z")

    assert (await first_ok([zero])).is_zero_results
    assert (await first_ok([])).is_error
