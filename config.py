"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
engine. Import the getters from here rather than calling os.getenv directly
in multiple places. Getters read the environment at call time; resolvers get
an immutable ``EngineSettings`` snapshot at construction time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

from core.constants import (
    CORRECTION_TTL,
    DEFAULT_COUNTRY_CODE,
    FORWARD_GEOCODE_TTL,
    LONG_DISTANCE_THRESHOLD_KM,
    PROVIDER_TIMEOUT_SECONDS,
    REVERSE_GEOCODE_MIN_INTERVAL,
    REVERSE_GEOCODE_TTL,
    USER_AGENT,
)

# Load environment variables from .env if present
load_dotenv()

logger = logging.getLogger(__name__)

# --- Google Maps Platform ---
GOOGLE_GEOCODE_URL: Final[str] = "https://maps.googleapis.com/maps/api/geocode/json"
GOOGLE_AUTOCOMPLETE_URL: Final[str] = (
    "https://maps.googleapis.com/maps/api/place/autocomplete/json"
)
GOOGLE_DISTANCE_MATRIX_URL: Final[str] = (
    "https://maps.googleapis.com/maps/api/distancematrix/json"
)

# --- Open providers ---
DEFAULT_OSRM_BASE_URL: Final[str] = "https://router.project-osrm.org"
DEFAULT_NOMINATIM_REVERSE_URL: Final[str] = (
    "https://nominatim.openstreetmap.org/reverse"
)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    return value


def get_google_maps_api_key() -> str | None:
    """Return the Google Maps API key, or None when none is configured.

    ``GOOGLE_MAPS_API_KEY`` wins; ``GOOGLE_MAPS_SERVER_KEY`` is accepted for
    deployments that keep a separate server-side key.
    """
    for name in ("GOOGLE_MAPS_API_KEY", "GOOGLE_MAPS_SERVER_KEY"):
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None


def get_osrm_base_url() -> str:
    return (os.getenv("OSRM_BASE_URL", "").strip() or DEFAULT_OSRM_BASE_URL).rstrip(
        "/"
    )


def get_nominatim_reverse_url() -> str:
    return os.getenv("NOMINATIM_REVERSE_URL", "").strip() or DEFAULT_NOMINATIM_REVERSE_URL


def get_nominatim_user_agent() -> str:
    return os.getenv("NOMINATIM_USER_AGENT", "").strip() or USER_AGENT


def is_nominatim_fallback_enabled() -> bool:
    """Secondary reverse geocoding is on unless explicitly disabled."""
    raw = os.getenv("NOMINATIM_REVERSE_FALLBACK", "true").strip().lower()
    return raw in _TRUTHY


def get_reverse_geocode_min_interval() -> float:
    return _env_float("REVERSE_GEOCODE_MIN_INTERVAL", REVERSE_GEOCODE_MIN_INTERVAL)


def get_long_distance_threshold_km() -> float:
    return _env_float("LONG_DISTANCE_THRESHOLD_KM", LONG_DISTANCE_THRESHOLD_KM)


def get_provider_timeout() -> float:
    return _env_float("PROVIDER_TIMEOUT_SECONDS", PROVIDER_TIMEOUT_SECONDS)


def get_default_country_code() -> str:
    return (os.getenv("DEFAULT_COUNTRY_CODE", "").strip() or DEFAULT_COUNTRY_CODE).upper()


@dataclass(frozen=True)
class EngineSettings:
    """Snapshot of tunables handed to each resolver at construction."""

    reverse_min_interval: float = REVERSE_GEOCODE_MIN_INTERVAL
    long_distance_threshold_km: float = LONG_DISTANCE_THRESHOLD_KM
    provider_timeout: float = PROVIDER_TIMEOUT_SECONDS
    default_country_code: str = DEFAULT_COUNTRY_CODE
    forward_ttl: float = FORWARD_GEOCODE_TTL
    reverse_ttl: float = REVERSE_GEOCODE_TTL
    correction_ttl: float = CORRECTION_TTL
    osrm_base_url: str = DEFAULT_OSRM_BASE_URL
    nominatim_reverse_url: str = DEFAULT_NOMINATIM_REVERSE_URL
    nominatim_user_agent: str = USER_AGENT
    nominatim_fallback: bool = True


def load_engine_settings() -> EngineSettings:
    """Build settings from the current environment."""
    return EngineSettings(
        reverse_min_interval=get_reverse_geocode_min_interval(),
        long_distance_threshold_km=get_long_distance_threshold_km(),
        provider_timeout=get_provider_timeout(),
        default_country_code=get_default_country_code(),
        osrm_base_url=get_osrm_base_url(),
        nominatim_reverse_url=get_nominatim_reverse_url(),
        nominatim_user_agent=get_nominatim_user_agent(),
        nominatim_fallback=is_nominatim_fallback_enabled(),
    )


__all__ = [
    "DEFAULT_NOMINATIM_REVERSE_URL",
    "DEFAULT_OSRM_BASE_URL",
    "GOOGLE_AUTOCOMPLETE_URL",
    "GOOGLE_DISTANCE_MATRIX_URL",
    "GOOGLE_GEOCODE_URL",
    "EngineSettings",
    "get_default_country_code",
    "get_google_maps_api_key",
    "get_long_distance_threshold_km",
    "get_nominatim_reverse_url",
    "get_nominatim_user_agent",
    "get_osrm_base_url",
    "get_provider_timeout",
    "get_reverse_geocode_min_interval",
    "is_nominatim_fallback_enabled",
    "load_engine_settings",
]
