#!/usr/bin/env python3
"""
Customer Location Registry — String Similarity

Normalised Levenshtein similarity used to compare customer names,
street addresses, cities and postal codes.  Strings are case-folded and
trimmed before comparison (a leading or trailing U+FEFF byte order mark
is trimmed too); no other cleanup is applied so that the scores line up
with what the entry form shows the user.

Lengths and edit distances count Unicode code points, so a character
outside the Basic Multilingual Plane (most emoji) counts once.

Dependencies:
    pip install rapidfuzz
"""

from __future__ import annotations

import math
import re

from rapidfuzz.distance import Levenshtein


_EDGES = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


def normalize_text(value: str | None) -> str:
    """Lowercase and trim a field value.  ``None`` becomes an empty string."""
    if value is None:
        return ""
    return _EDGES.sub("", str(value).lower())


def levenshtein_distance(a: str, b: str) -> int:
    """
    Classic edit distance between two strings.

    Insertions, deletions and substitutions each cost 1.
    """
    return Levenshtein.distance(a, b)


def calculate_similarity(a: str | None, b: str | None) -> float:
    """
    Normalised Levenshtein similarity between two field values.

    Returns a value in [0.0, 1.0] where 1.0 means identical after
    case-folding and trimming.  Two empty strings are identical.

        similarity = (max_len - distance) / max_len
    """
    s1 = normalize_text(a)
    s2 = normalize_text(b)

    if s1 == s2:
        return 1.0

    max_len = max(len(s1), len(s2))
    dist = levenshtein_distance(s1, s2)
    return (max_len - dist) / max_len


def similarity_percent(score: float) -> int:
    """Whole-number percentage, rounding halves up (0.625 → 63)."""
    return int(math.floor(score * 100 + 0.5))
