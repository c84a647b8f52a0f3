"""Vehicle registration code lookup endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from ...vehicle_codes import all_country_codes, get_vehicle_code

router = APIRouter()


@router.get("/api/vehicle-codes")
async def list_vehicle_codes() -> dict[str, Any]:
    codes = all_country_codes()
    return {"count": len(codes), "data": codes}


@router.get("/api/vehicle-codes/{country}")
async def vehicle_code(country: str) -> dict[str, Any]:
    code = get_vehicle_code(country)
    if code is None:
        raise HTTPException(status_code=404, detail=f"No vehicle registration code for '{country}'")
    return {"country": country, "code": code}
