"""Location endpoints (list, count, nearby, submit, address match)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ... import upstream
from ...algorithms import CustomerLocation, coordinate_from, find_nearby
from ...vehicle_codes import get_vehicle_code
from ..helpers import database_locations, to_location
from ..models import AddressMatchRequest, LocationSubmitRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/locations")
async def list_locations(
    q: str | None = Query(None, description="Search name, street, city, country or postal code"),
    sort_by: str | None = Query(None, description="Sort by name, city or country"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
) -> dict[str, Any]:
    """Paginated address database listing. Degrades to an empty page when the service is down."""
    records, notice = upstream.graceful_call(
        upstream.fetch_database_locations,
        [],
        upstream.NOTICES["DATABASE_UNAVAILABLE"],
    )
    filtered = upstream.sort_records(upstream.search_records(records, q), sort_by)
    result = upstream.paginate(filtered, page, page_size)

    return {
        "data": [r.to_api() for r in result.items],
        "total": result.total,
        "database_total": len(records),
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
        "notice": notice,
    }


@router.get("/api/locations/count")
async def count_locations() -> dict[str, Any]:
    records, notice = upstream.graceful_call(upstream.fetch_database_locations, None)
    return {
        "count": len(records) if records is not None else None,
        "notice": notice,
    }


@router.get("/api/locations/nearby")
async def nearby_locations(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude"),
    radius_km: float = Query(1.0, gt=0, le=100, description="Search radius in km"),
    limit: int = Query(20, ge=1, le=200),
) -> dict[str, Any]:
    """Stored locations within radius_km of a point, nearest first."""
    center = coordinate_from(lat, lon)
    nearby = find_nearby(center, database_locations(), radius_km)[:limit]
    return {
        "center": {"latitude": lat, "longitude": lon},
        "radius_km": radius_km,
        "count": len(nearby),
        "data": [
            {**loc.to_dict(), "distance_km": round(dist, 4)}
            for loc, dist in nearby
        ],
    }


@router.post("/api/locations", status_code=201)
async def submit_location(req: LocationSubmitRequest) -> dict[str, Any]:
    """
    Build a new customer location from the detailed form or a free-text query.

    Query mode takes the address service's best match.  Storage is owned
    by the address service; the built record is returned to the caller.
    """
    if req.query and req.query.strip():
        try:
            results = upstream.match_address(req.query.strip())
        except upstream.UpstreamError as e:
            logger.warning("Query submission failed: %s", e)
            raise HTTPException(status_code=502, detail=upstream.NOTICES["QUERY_NOT_FOUND"]) from e
        if not results:
            raise HTTPException(status_code=404, detail=upstream.NOTICES["QUERY_NOT_FOUND"])
        location = upstream.record_to_location(results[0])
    else:
        if not (req.customer_name.strip() or req.address.strip()):
            raise HTTPException(
                status_code=400,
                detail="Either a query or at least a customer name or address is required",
            )
        now = datetime.now(timezone.utc)
        draft = to_location(req)
        location = CustomerLocation(
            id=draft.id or str(int(now.timestamp() * 1000)),
            customer_name=draft.customer_name,
            address=draft.address,
            city=draft.city,
            postal_code=draft.postal_code,
            country=draft.country,
            country_code=get_vehicle_code(draft.country),
            latitude=draft.latitude,
            longitude=draft.longitude,
            created_at=now,
            updated_at=now,
        )

    if location.country_code:
        message = (
            "Location has been successfully added to the system with vehicle "
            f"registration code {location.country_code}."
        )
    else:
        message = "Location has been successfully processed and added to the system."

    logger.info("Location submitted: %s (%s)", location.id, location.customer_name)
    return {"location": location.to_dict(), "message": message}


@router.post("/api/address/match")
async def address_match(req: AddressMatchRequest) -> dict[str, Any]:
    """Proxy to the address service's matcher, returning converted locations."""
    try:
        results = upstream.match_address(req.query)
    except upstream.UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return {
        "query": req.query,
        "count": len(results),
        "data": [
            {
                "location": upstream.record_to_location(r).to_dict(),
                "confidence_percent": r.confidence_percent,
            }
            for r in results
        ],
    }
