#!/usr/bin/env python3
"""Resolve places, coordinates and distances from the command line.

Examples:
    python scripts/resolve_location.py geocode "bangalore city" --country IN
    python scripts/resolve_location.py reverse 12.9716,77.5946
    python scripts/resolve_location.py distance 12.9716,77.5946 13.0827,80.2707
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.http.session import cleanup_session
from core.spatial import GeometryService, format_distance
from location_engine.service import LocationService, build_location_service

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Geocode place names, reverse geocode coordinates and measure distances.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    geocode = subparsers.add_parser("geocode", help="Place name to coordinates.")
    geocode.add_argument("address")
    geocode.add_argument("--country", default=None, help="ISO country code, e.g. IN.")

    reverse = subparsers.add_parser("reverse", help="Coordinates to address.")
    reverse.add_argument("coordinate", help='"lat,lon"')

    distance = subparsers.add_parser("distance", help="Distance between two places.")
    distance.add_argument("origin", help='"lat,lon" or a place name')
    distance.add_argument("destination", help='"lat,lon" or a place name')
    distance.add_argument("--country", default=None)
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace, service: LocationService) -> int:
    if args.command == "geocode":
        coordinate = await service.geocode_address(args.address, args.country)
        if coordinate is None:
            print(f"No match for {args.address!r}")
            return 1
        print(coordinate.as_text(6))
        return 0

    if args.command == "reverse":
        coordinate = GeometryService.parse_coordinate_literal(args.coordinate)
        if coordinate is None:
            print(f"Invalid coordinate: {args.coordinate!r}")
            return 2
        print(await service.reverse_geocode(coordinate))
        return 0

    origin = await service.parse_location_string(args.origin, args.country)
    destination = await service.parse_location_string(args.destination, args.country)
    if origin is None or destination is None:
        print("Could not resolve both endpoints")
        return 1
    straight = service.straight_line_distance_km(origin, destination)
    travel = await service.travel_distance_km(origin, destination)
    print(f"Straight line: {format_distance(straight)}")
    print(f"Travel:        {format_distance(travel)}")
    return 0


async def _main(args: argparse.Namespace) -> int:
    service = build_location_service()
    try:
        return await _run(args, service)
    finally:
        await cleanup_session()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
