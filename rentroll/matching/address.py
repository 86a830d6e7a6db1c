"""Danish address normalization and string similarity."""

import re

from rapidfuzz.distance import Levenshtein

_STREET_TYPES: dict[str, str] = {
    "allé": "alle",
    "gd": "gade",
    "vj": "vej",
    "pl": "plads",
    "blvd": "boulevard",
}
_PUNCTUATION = re.compile(r"[,.;:]")
_WHITESPACE = re.compile(r"\s+")


def normalize_address(raw: str | None) -> str:
    """Lowercase, strip punctuation, collapse whitespace, unify street types."""
    if not raw:
        return ""
    text = _PUNCTUATION.sub(" ", raw.lower())
    words = [_STREET_TYPES.get(word, word) for word in _WHITESPACE.split(text.strip()) if word]
    return " ".join(words)


def normalize_name(raw: str | None) -> str:
    if not raw:
        return ""
    return _WHITESPACE.sub(" ", raw.lower()).strip()


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    """1 - levenshtein / longer length; 0.0 when either side is empty."""
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)
