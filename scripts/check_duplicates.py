#!/usr/bin/env python3
"""
Customer Location Registry — Duplicate Check

Checks a new customer location against existing locations and prints the
likely duplicates with their match reasons.  Existing locations come from
a JSON file (a list of location objects, snake_case or camelCase keys) or,
when no file is given, from the address service.

Usage:
    python scripts/check_duplicates.py \
        --name "BMW Berlin" --address "Hauptstr 1" --city Berlin \
        --postal-code 10115 --existing sample-locations.json

    # Compare against the live address database, JSON report to a file:
    python scripts/check_duplicates.py --name "IKEA Hamburg" \
        --lat 53.55 --lon 9.99 --output report.json

Dependencies:
    pip install rapidfuzz pyyaml requests
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Add project root to path for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from location_registry import upstream  # noqa: E402
from location_registry.algorithms import (  # noqa: E402
    CustomerLocation,
    MatcherConfig,
    find_duplicates,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_RULES = ROOT / "config" / "duplicate_rules.yaml"


def load_existing(path: str | None) -> list[CustomerLocation]:
    """Load existing locations from a JSON file, or the address service."""
    if path is None:
        records = upstream.fetch_database_locations()
        return [upstream.record_to_location(r) for r in records]

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of locations")

    locations = [CustomerLocation.from_dict(r) for r in raw if isinstance(r, dict)]
    logger.info("Loaded %d existing locations from %s", len(locations), path)
    return locations


def build_report(
    candidate: CustomerLocation,
    existing: list[CustomerLocation],
    config: MatcherConfig,
) -> dict[str, Any]:
    matches = find_duplicates(candidate, existing, config)
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "candidate": candidate.to_dict(),
        "compared": len(existing),
        "aggregation": config.aggregation,
        "matches": [m.to_dict() for m in matches],
    }


def print_report(report: dict[str, Any]) -> None:
    matches = report["matches"]
    print(f"\nCompared against {report['compared']} location(s) "
          f"[aggregation={report['aggregation']}]")
    if not matches:
        print("No likely duplicates — this location appears to be unique.")
        return

    print(f"{len(matches)} possible duplicate(s):")
    for i, m in enumerate(matches, 1):
        loc = m["location"]
        print(f"  {i}. {loc['customer_name']} — {loc['address']}, "
              f"{loc['postal_code']} {loc['city']}  ({m['similarity_percent']}%)")
        for reason in m["match_reasons"]:
            print(f"       • {reason}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check a new customer location for duplicates")
    parser.add_argument("--name", default="", help="Customer or company name")
    parser.add_argument("--address", default="", help="Street and house number")
    parser.add_argument("--city", default="")
    parser.add_argument("--postal-code", default="")
    parser.add_argument("--country", default="")
    parser.add_argument("--lat", type=float, default=None, help="Latitude")
    parser.add_argument("--lon", type=float, default=None, help="Longitude")
    parser.add_argument(
        "--existing",
        default=None,
        help="JSON file of existing locations (default: fetch from the address service)",
    )
    parser.add_argument(
        "--rules",
        default=str(DEFAULT_RULES),
        help="Duplicate rules YAML (default: config/duplicate_rules.yaml)",
    )
    parser.add_argument(
        "--aggregation",
        choices=["factor_count", "weight_sum"],
        default=None,
        help="Override the aggregation mode from the rules file",
    )
    parser.add_argument("--output", default=None, help="Write the JSON report to this file")
    args = parser.parse_args(argv)

    config = MatcherConfig.from_yaml(args.rules) if Path(args.rules).exists() else MatcherConfig()
    if args.aggregation:
        config = config.with_aggregation(args.aggregation)

    candidate = CustomerLocation(
        id="candidate",
        customer_name=args.name,
        address=args.address,
        city=args.city,
        postal_code=args.postal_code,
        country=args.country,
        latitude=args.lat,
        longitude=args.lon,
    )

    try:
        existing = load_existing(args.existing)
    except upstream.UpstreamError as e:
        logger.error("Could not load existing locations: %s", e)
        return 2

    report = build_report(candidate, existing, config)
    print_report(report)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info("Report written to %s", args.output)

    return 1 if report["matches"] else 0


if __name__ == "__main__":
    sys.exit(main())
