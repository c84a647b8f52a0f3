"""
Customer Location Registry — Address Service Client

Thin client for the external address service that owns geocoding,
address matching and the location database:

    POST /match-address       free-text query → ranked address matches
    GET  /address-database    every stored location

Configuration via environment variables:

    CLR_UPSTREAM_URL        base URL of the address service
    CLR_MATCH_TIMEOUT       seconds allowed for /match-address (default 10)
    CLR_DATABASE_TIMEOUT    seconds allowed for /address-database (default 15)

Usage:
    from location_registry import upstream

    records = upstream.fetch_database_locations()
    locations = [upstream.record_to_location(r) for r in records]

Dependencies:
    pip install requests
"""

from __future__ import annotations

import logging
import math
import os
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Sequence, TypeVar

import requests

from .algorithms import CustomerLocation, DuplicateMatch
from .vehicle_codes import get_vehicle_code

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

UPSTREAM_CONFIG = {
    "base_url": os.environ.get("CLR_UPSTREAM_URL", "http://localhost:8080").rstrip("/"),
    "match_timeout": float(os.environ.get("CLR_MATCH_TIMEOUT", "10")),
    "database_timeout": float(os.environ.get("CLR_DATABASE_TIMEOUT", "15")),
}

MAX_REMOTE_MATCHES = 3

# User-facing notices shown when the address service cannot be reached.
NOTICES = {
    "NO_DATA_FOUND": "No matching data found. The system is ready for new entries.",
    "NETWORK_ISSUE": "Using local data while connectivity is being restored.",
    "SEARCH_COMPLETE": "Search completed. No exact matches found in current database.",
    "LOCATION_UNIQUE": "This location appears to be unique in our system.",
    "SYSTEM_READY": "System is operating normally with available data.",
    "DATABASE_UNAVAILABLE": "Database connection temporarily unavailable. System is ready for new entries.",
    "QUERY_NOT_FOUND": (
        "Unable to find location details for your search. "
        "Please try a different search term or use the detailed form."
    ),
}


class UpstreamError(Exception):
    """The address service could not be reached or returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AddressRecord:
    """One address row as stored by the address service."""

    name1: str = ""
    name2: str | None = None
    street: str = ""
    country: str = ""
    postal_code: str = ""
    city: str = ""
    latitude2: float | None = None
    longitude2: float | None = None
    latitude_mercator2: float | None = None
    longitude_mercator2: float | None = None
    confidence_percent: float | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "AddressRecord":
        return cls(
            name1=raw.get("ADR_NAME1") or "",
            name2=raw.get("ADR_NAME2"),
            street=raw.get("ADR_STRASSE") or "",
            country=raw.get("ADR_LND") or "",
            postal_code=str(raw.get("ADR_PLZ") or ""),
            city=raw.get("ADR_ORT") or "",
            latitude2=raw.get("ADR_LATITUDE2"),
            longitude2=raw.get("ADR_LONGITUDE2"),
            latitude_mercator2=raw.get("ADR_LATITUDE_MERCATOR2"),
            longitude_mercator2=raw.get("ADR_LONGITUDE_MERCATOR2"),
            confidence_percent=raw.get("confidence_percent"),
        )

    def to_api(self) -> dict[str, Any]:
        data = {
            "ADR_NAME1": self.name1,
            "ADR_NAME2": self.name2,
            "ADR_STRASSE": self.street,
            "ADR_LND": self.country,
            "ADR_PLZ": self.postal_code,
            "ADR_ORT": self.city,
            "ADR_LATITUDE2": self.latitude2,
            "ADR_LONGITUDE2": self.longitude2,
            "ADR_LATITUDE_MERCATOR2": self.latitude_mercator2,
            "ADR_LONGITUDE_MERCATOR2": self.longitude_mercator2,
        }
        if self.confidence_percent is not None:
            data["confidence_percent"] = self.confidence_percent
        return data


@dataclass(frozen=True)
class Page:
    items: list[Any]
    total: int
    page: int
    page_size: int
    total_pages: int


# ---------------------------------------------------------------------------
# HTTP calls
# ---------------------------------------------------------------------------


def _url(path: str) -> str:
    return f"{UPSTREAM_CONFIG['base_url']}{path}"


def _decode(response: requests.Response, what: str) -> Any:
    if not response.ok:
        raise UpstreamError(
            f"{what} error: {response.status_code} {response.reason}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(f"{what} returned invalid JSON: {e}") from e


def _rows(data: Any, what: str) -> list[AddressRecord]:
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise UpstreamError(f"{what} returned an unexpected payload")
    return [AddressRecord.from_api(r) for r in data]


def match_address(query: str) -> list[AddressRecord]:
    """
    Ask the address service for locations matching a free-text query.

    Results come back in the service's ranking order, each carrying a
    ``confidence_percent``.
    """
    try:
        resp = requests.post(
            _url("/match-address"),
            json={"query": query},
            headers={"accept": "application/json"},
            timeout=UPSTREAM_CONFIG["match_timeout"],
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Address match request failed: {e}") from e

    data = _decode(resp, "Address match API")
    if not isinstance(data, dict):
        raise UpstreamError("Address match API returned an unexpected payload")
    records = _rows(data.get("results", []), "Address match API")
    logger.info("Address match for %r returned %d result(s)", query, len(records))
    return records


def fetch_database_locations() -> list[AddressRecord]:
    """Fetch every stored location from the address service."""
    try:
        resp = requests.get(
            _url("/address-database"),
            headers={"accept": "application/json"},
            timeout=UPSTREAM_CONFIG["database_timeout"],
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Database request failed: {e}") from e

    records = _rows(_decode(resp, "Database API"), "Database API")
    logger.info("Fetched %d locations from the address database", len(records))
    return records


def graceful_call(
    fn: Callable[[], T],
    fallback: T,
    notice: str = NOTICES["NETWORK_ISSUE"],
) -> tuple[T, str | None]:
    """
    Call ``fn``; on UpstreamError return ``(fallback, notice)`` instead.

    On success the notice is None.
    """
    try:
        return fn(), None
    except UpstreamError as e:
        logger.warning("Address service call failed: %s", e)
        return fallback, notice


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def format_address_query(
    customer_name: str | None = None,
    address: str | None = None,
    city: str | None = None,
    postal_code: str | None = None,
    country: str | None = None,
) -> str:
    """Join the non-empty form fields into a single search query."""
    parts = [customer_name, address, city, postal_code, country]
    return " ".join(p for p in parts if p)


def generate_location_id(prefix: str = "api") -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def record_to_location(record: AddressRecord) -> CustomerLocation:
    """
    Convert an address-service row into a CustomerLocation.

    The service stores latitude in ADR_LONGITUDE2 and longitude in
    ADR_LATITUDE2, so the two are swapped back here.
    """
    name = record.name1 + (f" {record.name2}" if record.name2 else "")
    country = "Germany" if record.country == "D" else record.country
    now = datetime.now(timezone.utc)
    return CustomerLocation(
        id=generate_location_id(),
        customer_name=name,
        address=record.street,
        city=record.city,
        postal_code=record.postal_code,
        country=country,
        country_code=get_vehicle_code(country),
        latitude=record.longitude2,
        longitude=record.latitude2,
        created_at=now,
        updated_at=now,
    )


def remote_matches(records: Sequence[AddressRecord]) -> list[DuplicateMatch]:
    """
    Turn /match-address results into duplicate suggestions.

    The service's confidence becomes the similarity; reasons describe
    what the service matched on.
    """
    matches = []
    for record in records:
        confidence = float(record.confidence_percent or 0)
        confidence_label = f"{confidence:g}"
        reasons = [
            f"{confidence_label}% confidence match",
            "Company name match" if record.name1 else "Address match",
            f"Located in {record.city}" if record.city else "Geographic match",
        ]
        matches.append(
            DuplicateMatch(
                location=record_to_location(record),
                similarity=confidence / 100,
                match_reasons=reasons,
            )
        )
    return matches[:MAX_REMOTE_MATCHES]


# ---------------------------------------------------------------------------
# Listing helpers
# ---------------------------------------------------------------------------


def search_records(records: Iterable[AddressRecord], term: str | None) -> list[AddressRecord]:
    """Case-insensitive substring search over name, street, city, country and postal code."""
    records = list(records)
    if not term:
        return records

    needle = term.lower()
    out = []
    for r in records:
        fields = (r.name1, r.name2, r.street, r.city, r.country, r.postal_code)
        if any(f and needle in f.lower() for f in fields):
            out.append(r)
    return out


_SORT_KEYS: dict[str, Callable[[AddressRecord], str]] = {
    "name": lambda r: (r.name1 or "").lower(),
    "city": lambda r: (r.city or "").lower(),
    "country": lambda r: (r.country or "").lower(),
}


def sort_records(records: Iterable[AddressRecord], sort_by: str | None) -> list[AddressRecord]:
    """Sort by name, city or country; any other value keeps the service's order."""
    key = _SORT_KEYS.get(sort_by or "")
    if key is None:
        return list(records)
    return sorted(records, key=key)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """Slice out a 1-based page."""
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        total=len(items),
        page=page,
        page_size=page_size,
        total_pages=math.ceil(len(items) / page_size),
    )
