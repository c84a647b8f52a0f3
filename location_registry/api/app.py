#!/usr/bin/env python3
"""
Customer Location Registry — API

FastAPI server backing the location entry screen:
  • duplicate warnings before a new location is committed
  • paginated, searchable listing of the address database
  • vehicle registration code lookup

Geocoding, address matching and storage belong to the external address
service (see location_registry.upstream).

Usage:
    uvicorn location_registry.api.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__, upstream
from .helpers import load_matcher_config
from .routes import duplicates, health, locations, vehicle_codes

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Customer Location Registry",
    version=__version__,
    description="Customer delivery location entry with duplicate warnings",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(locations.router)
app.include_router(duplicates.router)
app.include_router(vehicle_codes.router)

app.state.server_started_at = datetime.now(timezone.utc)


@app.on_event("startup")
async def startup():
    app.state.server_started_at = datetime.now(timezone.utc)
    config = load_matcher_config()
    logger.info(
        "Address service at %s; duplicate aggregation=%s",
        upstream.UPSTREAM_CONFIG["base_url"], config.aggregation,
    )
