"""Customer Location Registry — Duplicate Detection Algorithms."""

from .string_similarity import (
    calculate_similarity,
    levenshtein_distance,
    normalize_text,
    similarity_percent,
)
from .geo_proximity import (
    Coordinate,
    bounding_box,
    coordinate_from,
    find_nearby,
    haversine_km,
)
from .duplicate_matcher import (
    DEFAULT_FACTORS,
    CustomerLocation,
    DuplicateMatch,
    MatchFactor,
    MatcherConfig,
    build_factors,
    evaluate_factors,
    find_duplicates,
    score_location,
)

__all__ = [
    "calculate_similarity",
    "levenshtein_distance",
    "normalize_text",
    "similarity_percent",
    "Coordinate",
    "bounding_box",
    "coordinate_from",
    "find_nearby",
    "haversine_km",
    "DEFAULT_FACTORS",
    "CustomerLocation",
    "DuplicateMatch",
    "MatchFactor",
    "MatcherConfig",
    "build_factors",
    "evaluate_factors",
    "find_duplicates",
    "score_location",
]
