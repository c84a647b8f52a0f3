#!/usr/bin/env python3
"""
Customer Location Registry — Geospatial Proximity

Great-circle distance between delivery locations using the Haversine
formula, plus helpers to build coordinates from loosely typed form or
API values and to pre-filter candidates around a point.

No external geo-libraries required — pure math with stdlib.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0

# GPS proximity radius used by the duplicate matcher
DEFAULT_NEARBY_RADIUS_KM = 1.0


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 coordinate pair in degrees."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Check that the pair lies within the WGS84 value ranges."""
        return (
            -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


def _finite_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coordinate_from(latitude: Any, longitude: Any) -> Coordinate | None:
    """
    Build a Coordinate from raw latitude/longitude values.

    Returns None when either value is missing, non-numeric, NaN or
    infinite.  Numeric strings (as typed into a form) are accepted.
    """
    lat = _finite_float(latitude)
    lon = _finite_float(longitude)
    if lat is None or lon is None:
        return None
    return Coordinate(latitude=lat, longitude=lon)


# ---------------------------------------------------------------------------
# Core distance calculation
# ---------------------------------------------------------------------------


def haversine_km(coord_a: Coordinate, coord_b: Coordinate) -> float:
    """
    Compute the great-circle distance in kilometres between two WGS84 points
    using the Haversine formula.
    """
    lat1 = math.radians(coord_a.latitude)
    lat2 = math.radians(coord_b.latitude)
    dlat = math.radians(coord_b.latitude - coord_a.latitude)
    dlon = math.radians(coord_b.longitude - coord_a.longitude)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


# ---------------------------------------------------------------------------
# Candidate filtering
# ---------------------------------------------------------------------------


def bounding_box(
    center: Coordinate,
    radius_km: float,
) -> tuple[float, float, float, float]:
    """
    Return a lat/lon bounding box that encloses a circle of the given radius
    around the center coordinate.

    Returns (min_lat, max_lat, min_lon, max_lon) in degrees.
    """
    lat_delta = radius_km / EARTH_RADIUS_KM * (180.0 / math.pi)
    cos_lat = math.cos(math.radians(center.latitude))
    # At the poles every longitude is within reach
    lon_delta = 180.0 if cos_lat < 1e-12 else lat_delta / cos_lat

    return (
        center.latitude - lat_delta,
        center.latitude + lat_delta,
        center.longitude - lon_delta,
        center.longitude + lon_delta,
    )


def find_nearby(
    center: Coordinate,
    locations: Iterable[Any],
    radius_km: float = DEFAULT_NEARBY_RADIUS_KM,
) -> list[tuple[Any, float]]:
    """
    Filter locations to those within radius_km of the center.

    Each location must expose ``latitude`` and ``longitude`` attributes;
    locations without usable coordinates are skipped.  Uses a bounding-box
    pre-filter then an exact Haversine check.  Returns ``(location,
    distance_km)`` pairs sorted by distance (ascending).
    """
    min_lat, max_lat, min_lon, max_lon = bounding_box(center, radius_km)
    wraps_lon = min_lon < -180.0 or max_lon > 180.0

    nearby = []
    for loc in locations:
        coord = coordinate_from(
            getattr(loc, "latitude", None),
            getattr(loc, "longitude", None),
        )
        if coord is None:
            continue
        if not (min_lat <= coord.latitude <= max_lat):
            continue
        if not wraps_lon and not (min_lon <= coord.longitude <= max_lon):
            continue
        dist = haversine_km(center, coord)
        if dist <= radius_km:
            nearby.append((loc, dist))

    nearby.sort(key=lambda pair: pair[1])
    return nearby
