"""Pydantic request/response models for the Customer Location Registry API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LocationIn(BaseModel):
    id: str | None = Field(
        None,
        description="Stable identifier; generated when omitted",
    )
    customer_name: str = Field(
        "",
        description="Customer or company name",
    )
    address: str = Field(
        "",
        description="Street and house number",
    )
    city: str = Field("", description="City")
    postal_code: str = Field("", description="Postal code")
    country: str = Field("", description="Country name (any language)")
    latitude: float | None = Field(
        None,
        ge=-90,
        le=90,
        description="WGS84 latitude in degrees",
    )
    longitude: float | None = Field(
        None,
        ge=-180,
        le=180,
        description="WGS84 longitude in degrees",
    )


class DuplicateCheckRequest(BaseModel):
    candidate: LocationIn = Field(
        ...,
        description="The location about to be entered (fields may be empty)",
    )
    existing: list[LocationIn] | None = Field(
        None,
        description="Locations to compare against. Omit to use the address database.",
    )
    aggregation: str | None = Field(
        None,
        description="Override the aggregation mode: factor_count or weight_sum",
    )


class DuplicateSearchRequest(BaseModel):
    query: str | None = Field(
        None,
        description="Free-text search. Built from `candidate` when omitted.",
    )
    candidate: LocationIn | None = Field(
        None,
        description="Location form fields used to build the query",
    )


class AddressMatchRequest(BaseModel):
    query: str = Field(
        ...,
        min_length=1,
        description="Free-text address, e.g. 'BMW Berlin Hauptstr 1 10115'",
    )


class LocationSubmitRequest(LocationIn):
    query: str | None = Field(
        None,
        description="Free-text query mode: resolve the location via the address service",
    )
