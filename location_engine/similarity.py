"""Edit-distance similarity used to rank place-name suggestions."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from location_engine.schemas import PlaceSuggestion


def similarity(a: str, b: str) -> float:
    """
    Case-insensitive Levenshtein similarity in ``[0, 1]``.

    ``1 - distance / max(len(a), len(b))``; identical strings score 1.0 and
    an empty string against a non-empty one scores 0.0.
    """
    s1 = (a or "").lower()
    s2 = (b or "").lower()
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    distance = Levenshtein.distance(s1, s2)
    return 1.0 - distance / max(len(s1), len(s2))


def rank_by_similarity(query: str, candidates: list[str]) -> list[PlaceSuggestion]:
    """Score candidates against the query, best first; ties keep input order."""
    scored = [PlaceSuggestion(name, similarity(query, name)) for name in candidates]
    return sorted(scored, key=lambda item: item.similarity, reverse=True)
