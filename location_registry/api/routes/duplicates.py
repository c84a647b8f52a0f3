"""Duplicate warning endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from ... import upstream
from ...algorithms import find_duplicates
from ...algorithms.duplicate_matcher import AGGREGATIONS
from ..helpers import database_locations, get_matcher_config, to_location
from ..models import DuplicateCheckRequest, DuplicateSearchRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/duplicates/check")
async def check_duplicates(req: DuplicateCheckRequest) -> dict[str, Any]:
    """
    Score the candidate against existing locations and return likely duplicates.

    Compares against ``existing`` when given, otherwise against the whole
    address database.
    """
    config = get_matcher_config()
    if req.aggregation is not None:
        if req.aggregation not in AGGREGATIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid aggregation '{req.aggregation}'. Valid modes: {list(AGGREGATIONS)}",
            )
        config = config.with_aggregation(req.aggregation)

    candidate = to_location(req.candidate)
    if req.existing is not None:
        existing = [to_location(loc) for loc in req.existing]
        source = "request"
    else:
        existing = database_locations()
        source = "address_database"

    matches = find_duplicates(candidate, existing, config)
    logger.info(
        "Duplicate check against %d %s location(s): %d match(es)",
        len(existing), source, len(matches),
    )

    return {
        "source": source,
        "compared": len(existing),
        "aggregation": config.aggregation,
        "is_duplicate_suspected": bool(matches),
        "matches": [m.to_dict() for m in matches],
    }


@router.post("/api/duplicates/search")
async def search_duplicates(req: DuplicateSearchRequest) -> dict[str, Any]:
    """
    Ask the address service for existing records resembling the entry.

    Service failures are not errors for the user: the entry is reported as
    unique and the caller may proceed.
    """
    query = (req.query or "").strip()
    if not query and req.candidate is not None:
        c = req.candidate
        query = upstream.format_address_query(
            c.customer_name, c.address, c.city, c.postal_code, c.country,
        )
    if not query:
        raise HTTPException(status_code=400, detail="A query or candidate is required")

    matches, notice = upstream.graceful_call(
        lambda: upstream.remote_matches(upstream.match_address(query)),
        [],
        upstream.NOTICES["LOCATION_UNIQUE"],
    )
    return {
        "query": query,
        "is_duplicate_suspected": bool(matches),
        "matches": [m.to_dict() for m in matches],
        "notice": notice,
    }
