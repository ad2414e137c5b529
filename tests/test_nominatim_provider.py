from unittest.mock import AsyncMock

import pytest
from aiolimiter import AsyncLimiter

from core.http.circuit_breaker import CircuitBreaker
from core.mapping.nominatim_provider import NominatimReverseGeocoder
from core.spatial import Coordinate
from tests.http_fakes import FakeResponse, FakeSession

MG_ROAD = Coordinate(12.9752, 77.6066)


def _geocoder() -> NominatimReverseGeocoder:
    return NominatimReverseGeocoder(
        reverse_url="http://nominatim.test/reverse",
        user_agent="LocationEngineTests/1.0",
        limiter=AsyncLimiter(100, 1),
        breaker=CircuitBreaker("test"),
    )


def _install(monkeypatch: pytest.MonkeyPatch, response: FakeResponse) -> FakeSession:
    session = FakeSession(get_responses=[response])
    monkeypatch.setattr(
        "core.mapping.nominatim_provider.get_session",
        AsyncMock(return_value=session),
    )
    return session


def test_format_address_prefers_components() -> None:
    data = {
        "display_name": "MG Road, Shivajinagar, Bengaluru, Karnataka, 560001, India",
        "address": {
            "road": "MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "country": "India",
        },
    }

    assert NominatimReverseGeocoder.format_address(data) == (
        "MG Road, Bengaluru, Karnataka, India"
    )


def test_format_address_falls_back_to_display_name() -> None:
    assert NominatimReverseGeocoder.format_address({"display_name": "Somewhere"}) == (
        "Somewhere"
    )


@pytest.mark.asyncio
async def test_lookup_sends_user_agent_and_params(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _install(
        monkeypatch,
        FakeResponse(
            json_data={
                "name": "Brigade Road",
                "address": {"town": "Bengaluru", "country": "India"},
            },
        ),
    )

    result = await _geocoder().lookup(MG_ROAD)

    assert result.value == "Brigade Road, Bengaluru, India"
    assert result.provider == "nominatim"
    _, url, kwargs = session.requests[0]
    assert url == "http://nominatim.test/reverse"
    assert kwargs["headers"] == {"User-Agent": "LocationEngineTests/1.0"}
    assert kwargs["params"]["format"] == "jsonv2"
    assert kwargs["params"]["lat"] == 12.9752


@pytest.mark.asyncio
async def test_unable_to_geocode_is_zero_results(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeResponse(json_data={"error": "Unable to geocode"}))

    result = await _geocoder().lookup(MG_ROAD)

    assert result.is_zero_results


@pytest.mark.asyncio
async def test_not_found_is_zero_results(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeResponse(status=404))

    result = await _geocoder().lookup(MG_ROAD)

    assert result.is_zero_results


@pytest.mark.asyncio
async def test_rate_limit_is_error_result(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeResponse(status=429, headers={"Retry-After": "30"}))

    result = await _geocoder().lookup(MG_ROAD)

    assert result.is_rate_limited
    assert result.error.details["retry_after"] == 30
