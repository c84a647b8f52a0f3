"""Health check endpoint."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from ... import upstream
from ..helpers import get_matcher_config, iso

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/health")
async def health(request: Request):
    """Health check — reports address service reachability, latency, version. Always open."""
    upstream_ok = False
    latency_ms: float | None = None
    record_count: int | None = None

    try:
        t0 = time.monotonic()
        records = upstream.fetch_database_locations()
        latency_ms = round((time.monotonic() - t0) * 1000, 1)
        record_count = len(records)
        upstream_ok = True
    except upstream.UpstreamError as e:
        logger.warning("Health check: address service unreachable: %s", e)

    server_started_at = request.app.state.server_started_at
    uptime_seconds = round((datetime.now(timezone.utc) - server_started_at).total_seconds())

    return JSONResponse(
        status_code=200 if upstream_ok else 503,
        content={
            "status": "healthy" if upstream_ok else "degraded",
            "version": request.app.version,
            "record_count": record_count,
            "aggregation": get_matcher_config().aggregation,
            "started_at": iso(server_started_at),
            "uptime_seconds": uptime_seconds,
            "checks": {
                "address_service": {
                    "status": "up" if upstream_ok else "down",
                    "latency_ms": latency_ms,
                },
            },
        },
    )
