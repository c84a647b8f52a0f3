"""Shared helpers and matcher state for the Customer Location Registry API."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from fastapi import HTTPException

from .. import upstream
from ..algorithms import CustomerLocation, MatcherConfig
from .models import LocationIn

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_RULES_PATH = ROOT / "config" / "duplicate_rules.yaml"

# ---------------------------------------------------------------------------
# Matcher configuration (populated by load_matcher_config)
# ---------------------------------------------------------------------------

_MATCHER_CONFIG: MatcherConfig = MatcherConfig()


def load_matcher_config() -> MatcherConfig:
    """
    Load duplicate rules from CLR_DUPLICATE_RULES, or config/duplicate_rules.yaml
    when present.  Falls back to the built-in defaults.
    """
    global _MATCHER_CONFIG  # noqa: PLW0603

    env_path = os.environ.get("CLR_DUPLICATE_RULES")
    path = Path(env_path) if env_path else DEFAULT_RULES_PATH

    if path.exists():
        _MATCHER_CONFIG = MatcherConfig.from_yaml(path)
    else:
        if env_path:
            logger.warning("Duplicate rules file %s not found, using defaults", path)
        _MATCHER_CONFIG = MatcherConfig()
    return _MATCHER_CONFIG


def get_matcher_config() -> MatcherConfig:
    return _MATCHER_CONFIG


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def iso(dt: datetime | None) -> str | None:
    """Convert a datetime to ISO-8601 string, or None."""
    return dt.isoformat() if dt else None


def to_location(model: LocationIn) -> CustomerLocation:
    data = model.model_dump()
    data["id"] = data.get("id") or ""
    return CustomerLocation.from_dict(data)


def database_locations() -> list[CustomerLocation]:
    """All stored locations, converted.  Raises HTTPException(502) if unreachable."""
    try:
        records = upstream.fetch_database_locations()
    except upstream.UpstreamError as e:
        logger.error("Address database unavailable: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e
    return [upstream.record_to_location(r) for r in records]
