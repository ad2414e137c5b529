"""Value types shared by the resolvers."""

from __future__ import annotations

from dataclasses import dataclass

from core.spatial import Coordinate

# Used for the final "<name>, <country>" geocoding attempt.
COUNTRY_NAMES: dict[str, str] = {
    "IN": "India",
    "US": "United States",
    "GB": "United Kingdom",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "JP": "Japan",
    "AE": "United Arab Emirates",
    "SG": "Singapore",
    "LK": "Sri Lanka",
    "NP": "Nepal",
}


def country_name(country_code: str | None, default_code: str = "IN") -> str:
    """Human-readable country for a code; unknown codes are passed through."""
    code = (country_code or "").strip().upper() or default_code.upper()
    return COUNTRY_NAMES.get(code, code)


@dataclass(frozen=True)
class PlaceSuggestion:
    name: str
    similarity: float


@dataclass(frozen=True)
class Correction:
    original_query: str
    corrected_name: str
    similarity: float


__all__ = [
    "COUNTRY_NAMES",
    "Coordinate",
    "Correction",
    "PlaceSuggestion",
    "country_name",
]
