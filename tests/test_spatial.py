import math

import pytest

from core.spatial import (
    Coordinate,
    GeometryService,
    continent_for,
    format_distance,
    straight_line_distance_km,
    total_distance_km,
    validate_coordinates,
)

BANGALORE = Coordinate(12.9716, 77.5946)
CHENNAI = Coordinate(13.0827, 80.2707)
MYSORE = Coordinate(12.2958, 76.6394)


@pytest.mark.parametrize(
    ("lat", "lon", "expected"),
    [
        (0, 0, True),
        (90, 180, True),
        (-90, -180, True),
        (90.0001, 0, False),
        (0, -180.5, False),
        (math.nan, 0, False),
        (0, math.inf, False),
        ("12.5", "77.1", True),
        ("abc", 0, False),
        (None, 0, False),
    ],
)
def test_validate_coordinates(lat, lon, expected) -> None:
    assert validate_coordinates(lat, lon) is expected


def test_from_values_rejects_out_of_range() -> None:
    assert Coordinate.from_values(91, 0) is None
    assert Coordinate.from_values("12.5", "77.1") == Coordinate(12.5, 77.1)


def test_cache_key_rounds_to_four_decimals() -> None:
    a = Coordinate(12.971601, 77.594612)
    b = Coordinate(12.971649, 77.594578)

    assert a.cache_key() == b.cache_key() == "12.9716,77.5946"


def test_as_text_formats_both_components() -> None:
    assert Coordinate(12.97164, -77.5).as_text() == "12.9716, -77.5000"


def test_distance_to_self_is_zero() -> None:
    assert straight_line_distance_km(BANGALORE, BANGALORE) == 0.0


def test_distance_is_symmetric() -> None:
    assert straight_line_distance_km(BANGALORE, CHENNAI) == pytest.approx(
        straight_line_distance_km(CHENNAI, BANGALORE),
    )


def test_known_distance() -> None:
    # Bangalore to Chennai is roughly 290 km as the crow flies
    assert straight_line_distance_km(BANGALORE, CHENNAI) == pytest.approx(290, abs=5)


def test_distance_with_invalid_coordinate_is_none() -> None:
    assert straight_line_distance_km(BANGALORE, Coordinate(120, 0)) is None
    assert straight_line_distance_km(BANGALORE, None) is None


def test_total_distance_sums_legs() -> None:
    legs = straight_line_distance_km(MYSORE, BANGALORE) + straight_line_distance_km(
        BANGALORE,
        CHENNAI,
    )

    assert total_distance_km([MYSORE, BANGALORE, CHENNAI]) == pytest.approx(legs)
    assert total_distance_km([BANGALORE]) == 0.0
    assert total_distance_km([]) == 0.0


@pytest.mark.parametrize(
    ("distance_km", "expected"),
    [
        (0.85, "850m"),
        (0.0, "0m"),
        (4.24, "4.2km"),
        (9.99, "10.0km"),
        (120.4, "120km"),
    ],
)
def test_format_distance(distance_km, expected) -> None:
    assert format_distance(distance_km) == expected


@pytest.mark.parametrize(
    ("coordinate", "expected"),
    [
        (BANGALORE, "ASIA"),
        (Coordinate(48.8566, 2.3522), "EUROPE"),
        (Coordinate(40.7128, -74.0060), "NORTH AMERICA"),
        (Coordinate(-23.5505, -46.6333), "SOUTH AMERICA"),
        (Coordinate(6.5244, 3.3792), "AFRICA"),
        (Coordinate(-77.85, 166.67), "ANTARCTICA"),
        (Coordinate(0.0, -150.0), "UNKNOWN"),
    ],
)
def test_continent_for(coordinate, expected) -> None:
    assert continent_for(coordinate) == expected


def test_parse_coordinate_literal() -> None:
    assert GeometryService.parse_coordinate_literal(" 12.97, 77.59 ") == Coordinate(
        12.97,
        77.59,
    )
    assert GeometryService.parse_coordinate_literal("Bangalore") is None
    assert GeometryService.parse_coordinate_literal("95,10") is None
