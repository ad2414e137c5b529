import asyncio

import pytest
from tests.provider_fakes import StubRouter

from core.mapping.results import ProviderResult
from core.spatial import Coordinate, straight_line_distance_km
from location_engine.distance import STRAIGHT_LINE_TAG, DistanceResolver

BANGALORE = Coordinate(12.9716, 77.5946)
CHENNAI = Coordinate(13.0827, 80.2707)
LONDON = Coordinate(51.5074, -0.1278)


def _routers(primary_result, secondary_result):
    return (
        StubRouter("google", primary_result),
        StubRouter("osrm", secondary_result),
    )


@pytest.mark.asyncio
async def test_long_distance_skips_providers(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.ok(1.0, provider="google"),
        ProviderResult.ok(1.0, provider="osrm"),
    )
    resolver = DistanceResolver(cache, primary=primary, secondary=secondary)

    distance = await resolver.travel_distance_km(BANGALORE, LONDON)

    assert distance == pytest.approx(straight_line_distance_km(BANGALORE, LONDON))
    assert distance > 5000
    assert primary.calls == []
    assert secondary.calls == []


@pytest.mark.asyncio
async def test_primary_router_distance_is_converted_to_km(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.ok(346_200.0, provider="google"),
        ProviderResult.ok(1.0, provider="osrm"),
    )
    resolver = DistanceResolver(cache, primary=primary, secondary=secondary)

    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(346.2)
    assert secondary.calls == []
    assert cache.distance.get(resolver.cache_key("google", BANGALORE, CHENNAI)) == (
        pytest.approx(346.2)
    )


@pytest.mark.asyncio
async def test_secondary_router_result_is_cached(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.failure(asyncio.TimeoutError(), provider="google"),
        ProviderResult.ok(290_500.0, provider="osrm"),
    )
    resolver = DistanceResolver(cache, primary=primary, secondary=secondary)

    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(290.5)
    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(290.5)
    assert len(primary.calls) == 1
    assert len(secondary.calls) == 1
    assert cache.distance.get(resolver.cache_key("osrm", BANGALORE, CHENNAI)) == (
        pytest.approx(290.5)
    )


@pytest.mark.asyncio
async def test_straight_line_fallback_is_cached(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.failure("quota", provider="google"),
        ProviderResult.zero_results(provider="osrm"),
    )
    resolver = DistanceResolver(cache, primary=primary, secondary=secondary)
    expected = straight_line_distance_km(BANGALORE, CHENNAI)

    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(expected)
    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(expected)
    assert len(primary.calls) == 1
    assert len(secondary.calls) == 1


@pytest.mark.asyncio
async def test_without_routers_uses_straight_line(cache) -> None:
    resolver = DistanceResolver(cache)
    expected = straight_line_distance_km(BANGALORE, CHENNAI)

    assert await resolver.travel_distance_km(BANGALORE, CHENNAI) == pytest.approx(expected)
    assert cache.distance.get(
        resolver.cache_key(STRAIGHT_LINE_TAG, BANGALORE, CHENNAI),
    ) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_threshold_is_configurable(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.ok(346_200.0, provider="google"),
        ProviderResult.ok(1.0, provider="osrm"),
    )
    resolver = DistanceResolver(
        cache,
        primary=primary,
        secondary=secondary,
        long_distance_threshold_km=100,
    )

    distance = await resolver.travel_distance_km(BANGALORE, CHENNAI)

    assert distance == pytest.approx(straight_line_distance_km(BANGALORE, CHENNAI))
    assert primary.calls == []


@pytest.mark.asyncio
async def test_invalid_coordinates_return_none(cache) -> None:
    primary, secondary = _routers(
        ProviderResult.ok(1.0, provider="google"),
        ProviderResult.ok(1.0, provider="osrm"),
    )
    resolver = DistanceResolver(cache, primary=primary, secondary=secondary)

    assert await resolver.travel_distance_km(BANGALORE, Coordinate(0, 200)) is None
    assert resolver.straight_line_distance_km(Coordinate(-91, 0), CHENNAI) is None
    assert primary.calls == []
