"""
Deterministic spelling/formatting variants of a place-name query.

Variants broaden provider recall for sloppy input ("munnar city" ->
"Munnar") and surface corrections learned from earlier successful lookups.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from location_engine.schemas import Correction

if TYPE_CHECKING:
    from core.cache import TTLCache

logger = logging.getLogger(__name__)

COMMON_SUFFIXES = ("city", "town", "village", "place", "location")
_SUFFIX_PATTERN = re.compile(
    r"\s+(?:" + "|".join(COMMON_SUFFIXES) + r")$",
    re.IGNORECASE,
)


def title_case(text: str) -> str:
    """First character upper-cased, the remainder lower-cased."""
    return text[:1].upper() + text[1:].lower()


def strip_common_suffixes(text: str) -> str:
    stripped = text
    while True:
        candidate = _SUFFIX_PATTERN.sub("", stripped).strip()
        if candidate == stripped:
            return stripped
        stripped = candidate


def correction_key(text: str) -> str:
    return (text or "").strip().lower()


class VariationGenerator:
    """Generates ordered, de-duplicated query variants."""

    def __init__(self, corrections: TTLCache[Correction] | None = None) -> None:
        self._corrections = corrections

    def learned_correction(self, name: str) -> str | None:
        if self._corrections is None:
            return None
        entry = self._corrections.get(correction_key(name))
        if isinstance(entry, Correction):
            return entry.corrected_name
        return None

    def generate(self, name: str) -> list[str]:
        normalized = (name or "").strip()
        variations: list[str] = []

        def add(candidate: str) -> None:
            if candidate and candidate not in variations:
                variations.append(candidate)

        add(normalized)

        learned = self.learned_correction(normalized)
        if learned and learned != normalized:
            logger.debug("Using cached correction: %r -> %r", normalized, learned)
            add(learned)

        add(title_case(normalized))
        add(normalized.lower())
        add(normalized.upper())

        without_suffix = strip_common_suffixes(normalized)
        if without_suffix and without_suffix != normalized:
            add(without_suffix)
            add(title_case(without_suffix))

        if not variations:
            variations.append(normalized)
        return variations


def generate_variations(
    name: str,
    corrections: TTLCache[Correction] | None = None,
) -> list[str]:
    return VariationGenerator(corrections).generate(name)
