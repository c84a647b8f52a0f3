#!/usr/bin/env python3
"""
Customer Location Registry — Duplicate Matcher

Warns about likely duplicate customer locations before a new record is
committed.  Each existing location is compared against the candidate
on up to five factors (customer name, address, city, postal code, GPS
proximity).  A factor contributes only when its threshold is passed;
contributions are aggregated into a single similarity score and the
best-scoring locations are returned.

The factor table is data: each row pairs a measurement with a threshold
predicate, a weight and a reason formatter, so rows can be tested on
their own and the table can be overridden from duplicate_rules.yaml.

Dependencies:
    pip install rapidfuzz pyyaml
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import yaml

from .geo_proximity import DEFAULT_NEARBY_RADIUS_KM, coordinate_from, haversine_km
from .string_similarity import calculate_similarity, normalize_text, similarity_percent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

# camelCase keys used by the entry form, plus the short "name" alias
_KEY_ALIASES = {
    "name": "customer_name",
    "customerName": "customer_name",
    "postalCode": "postal_code",
    "countryCode": "country_code",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class CustomerLocation:
    """A customer delivery location.  Candidates may leave any field empty."""

    id: str = ""
    customer_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    country_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomerLocation":
        """Build a location from a dict with snake_case or camelCase keys."""
        known = {f for f in cls.__dataclass_fields__}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        if kwargs.get("id") is not None:
            kwargs["id"] = str(kwargs["id"])
        for stamp in ("created_at", "updated_at"):
            value = kwargs.get(stamp)
            if isinstance(value, str):
                kwargs[stamp] = _parse_timestamp(value)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "country_code": self.country_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class DuplicateMatch:
    """An existing location flagged as a possible duplicate of the candidate."""

    location: CustomerLocation
    similarity: float
    match_reasons: list[str] = field(default_factory=list)
    distance_km: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "similarity": self.similarity,
            "similarity_percent": similarity_percent(self.similarity),
            "match_reasons": list(self.match_reasons),
            "distance_km": round(self.distance_km, 4) if self.distance_km is not None else None,
        }


# ---------------------------------------------------------------------------
# Factor table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchFactor:
    """
    One row of the duplicate factor table.

    measure(candidate, existing) returns the raw value for the factor
    (a similarity or a distance), or None when either side lacks the
    data and the factor must be skipped.  passes() is the inclusion
    threshold, score() turns the raw value into the per-factor score
    that is multiplied by ``weight``, and reason() renders the badge
    text shown to the user.
    """

    key: str
    measure: Callable[[CustomerLocation, CustomerLocation], float | None]
    passes: Callable[[float], bool]
    weight: float
    score: Callable[[float], float]
    reason: Callable[[float], str]


def _text(location: Any, attr: str) -> str:
    return normalize_text(getattr(location, attr, None))


def field_similarity(attr: str) -> Callable[[Any, Any], float | None]:
    """
    Measure for a text field; skipped when either side is blank.

    Whitespace-only values count as blank, so two whitespace-only names
    skip the factor rather than scoring an exact match.
    """

    def measure(candidate: Any, existing: Any) -> float | None:
        a = _text(candidate, attr)
        b = _text(existing, attr)
        if not a or not b:
            return None
        return calculate_similarity(a, b)

    measure.__name__ = f"{attr}_similarity"
    return measure


def gps_distance(candidate: Any, existing: Any) -> float | None:
    """Distance in km; skipped unless both sides carry finite coordinates."""
    coord_a = coordinate_from(getattr(candidate, "latitude", None), getattr(candidate, "longitude", None))
    coord_b = coordinate_from(getattr(existing, "latitude", None), getattr(existing, "longitude", None))
    if coord_a is None or coord_b is None:
        return None
    return haversine_km(coord_a, coord_b)


def above(threshold: float) -> Callable[[float], bool]:
    def passes(value: float) -> bool:
        return value > threshold

    passes.__name__ = f"above_{threshold}"
    return passes


def below(threshold: float) -> Callable[[float], bool]:
    def passes(value: float) -> bool:
        return value < threshold

    passes.__name__ = f"below_{threshold}"
    return passes


def _as_is(value: float) -> float:
    return value


def _flat(contribution: float) -> Callable[[float], float]:
    def score(_value: float) -> float:
        return contribution

    return score


def _percent_reason(template: str) -> Callable[[float], str]:
    def reason(value: float) -> str:
        return template.format(percent=similarity_percent(value))

    return reason


def _gps_reason(distance_km: float) -> str:
    return f"Very close GPS location ({distance_km:.2f}km away)"


# Defaults (overridden by duplicate_rules.yaml at runtime)
_DEFAULT_THRESHOLDS = {
    "name": 0.70,
    "address": 0.60,
    "city": 0.80,
    "postal_code": 0.80,
}

_DEFAULT_WEIGHTS = {
    "name": 0.40,
    "address": 0.30,
    "city": 0.20,
    "postal_code": 0.10,
    "gps": 0.30,
}

_DEFAULT_GPS = {
    "max_distance_km": DEFAULT_NEARBY_RADIUS_KM,
    "flat_score": 1.0,
}

AGGREGATIONS = ("factor_count", "weight_sum")


def build_factors(
    thresholds: Mapping[str, float] | None = None,
    weights: Mapping[str, float] | None = None,
    gps: Mapping[str, float] | None = None,
) -> tuple[MatchFactor, ...]:
    """
    Build the ordered factor table.  Missing entries fall back to defaults.

    Order matters: match reasons are emitted in table order.
    """
    t = {**_DEFAULT_THRESHOLDS, **(thresholds or {})}
    w = {**_DEFAULT_WEIGHTS, **(weights or {})}
    g = {**_DEFAULT_GPS, **(gps or {})}

    return (
        MatchFactor(
            key="name",
            measure=field_similarity("customer_name"),
            passes=above(t["name"]),
            weight=w["name"],
            score=_as_is,
            reason=_percent_reason("Similar customer name ({percent}% match)"),
        ),
        MatchFactor(
            key="address",
            measure=field_similarity("address"),
            passes=above(t["address"]),
            weight=w["address"],
            score=_as_is,
            reason=_percent_reason("Similar address ({percent}% match)"),
        ),
        MatchFactor(
            key="city",
            measure=field_similarity("city"),
            passes=above(t["city"]),
            weight=w["city"],
            score=_as_is,
            reason=_percent_reason("Same/similar city ({percent}% match)"),
        ),
        MatchFactor(
            key="postal_code",
            measure=field_similarity("postal_code"),
            passes=above(t["postal_code"]),
            weight=w["postal_code"],
            score=_as_is,
            reason=lambda _value: "Same/similar postal code",
        ),
        MatchFactor(
            key="gps",
            measure=gps_distance,
            passes=below(g["max_distance_km"]),
            weight=w["gps"],
            score=_flat(g["flat_score"]),
            reason=_gps_reason,
        ),
    )


DEFAULT_FACTORS = build_factors()


# ---------------------------------------------------------------------------
# Configuration loader
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatcherConfig:
    """Matcher configuration, loadable from duplicate_rules.yaml."""

    factors: tuple[MatchFactor, ...] = DEFAULT_FACTORS
    min_similarity: float = 0.5
    max_results: int = 3
    # factor_count: divide by the number of passing factors
    # weight_sum:   divide by the summed weights of passing factors
    aggregation: str = "factor_count"

    def __post_init__(self) -> None:
        if self.aggregation not in AGGREGATIONS:
            raise ValueError(
                f"Unknown aggregation {self.aggregation!r}; expected one of {', '.join(AGGREGATIONS)}"
            )

    def with_aggregation(self, aggregation: str) -> "MatcherConfig":
        return replace(self, aggregation=aggregation)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "MatcherConfig":
        raw = raw or {}
        factors_raw = raw.get("factors", {}) or {}

        thresholds = {}
        weights = {}
        for key, row in factors_raw.items():
            row = row or {}
            if "threshold" in row:
                thresholds[key] = float(row["threshold"])
            if "weight" in row:
                weights[key] = float(row["weight"])

        gps_raw = raw.get("gps", {}) or {}
        gps = {k: float(v) for k, v in gps_raw.items() if k in _DEFAULT_GPS}

        return cls(
            factors=build_factors(thresholds, weights, gps),
            min_similarity=float(raw.get("min_similarity", 0.5)),
            max_results=int(raw.get("max_results", 3)),
            aggregation=str(raw.get("aggregation", "factor_count")),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MatcherConfig":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        config = cls.from_dict(raw)
        logger.info(
            "Loaded duplicate rules from %s (aggregation=%s, min_similarity=%s)",
            path, config.aggregation, config.min_similarity,
        )
        return config


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def evaluate_factors(
    candidate: Any,
    existing: Any,
    factors: Iterable[MatchFactor] = DEFAULT_FACTORS,
) -> list[tuple[MatchFactor, float]]:
    """Return (factor, raw value) for every factor that passes, in table order."""
    passed = []
    for factor in factors:
        value = factor.measure(candidate, existing)
        if value is None:
            continue
        if factor.passes(value):
            passed.append((factor, value))
    return passed


def score_location(
    candidate: Any,
    existing: CustomerLocation,
    config: MatcherConfig | None = None,
) -> DuplicateMatch | None:
    """
    Score a single existing location against the candidate.

    Returns a DuplicateMatch when the aggregate similarity exceeds
    ``config.min_similarity``, otherwise None.
    """
    if config is None:
        config = MatcherConfig()

    passed = evaluate_factors(candidate, existing, config.factors)
    if not passed:
        return None

    total = 0.0
    reasons = []
    distance_km = None
    for factor, value in passed:
        total += factor.score(value) * factor.weight
        reasons.append(factor.reason(value))
        if factor.key == "gps":
            distance_km = value

    if config.aggregation == "weight_sum":
        divisor = sum(factor.weight for factor, _ in passed)
        if divisor <= 0:
            return None
    else:
        divisor = len(passed)

    similarity = total / divisor
    if not similarity > config.min_similarity:
        return None

    return DuplicateMatch(
        location=existing,
        similarity=similarity,
        match_reasons=reasons,
        distance_km=distance_km,
    )


def find_duplicates(
    candidate: Any,
    existing_locations: Iterable[CustomerLocation],
    config: MatcherConfig | None = None,
) -> list[DuplicateMatch]:
    """
    Find existing locations that are likely duplicates of the candidate.

    Parameters
    ----------
    candidate : CustomerLocation (or any object with the same attributes)
        The location about to be entered.  Fields may be empty.
    existing_locations : iterable of CustomerLocation
        Locations already known to the registry.
    config : MatcherConfig, optional
        Factor table and ranking policy.  Uses defaults if not provided.

    Returns
    -------
    At most ``config.max_results`` DuplicateMatch objects sorted by
    similarity descending.  Ties keep their input order.
    """
    if config is None:
        config = MatcherConfig()

    matches = []
    for existing in existing_locations:
        match = score_location(candidate, existing, config)
        if match is not None:
            matches.append(match)

    matches.sort(key=lambda m: m.similarity, reverse=True)
    logger.debug("Duplicate check: %d candidate match(es)", len(matches))
    return matches[: config.max_results]
