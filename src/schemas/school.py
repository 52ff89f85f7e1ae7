from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class SchoolResponse(BaseModel):
    """Registry summary row for search results."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    urn: str
    name: str
    type: str | None = None
    la_name: str | None = None
    group_name: str | None = None
    target_status: str | None = None
    ofsted_rating: str | None = None
    town: str | None = None
    postcode: str | None = None


class SchoolDetailResponse(SchoolResponse):
    """Full registry record, including the nested assessment documents."""

    company_number: str | None = None
    rationale: str | None = None
    last_inspection_date: str | None = None
    inspectorate: str | None = None
    pupil_count: int | None = None
    school_capacity: int | None = None
    boarders: str | None = None
    county: str | None = None
    lat: float | None = None
    lng: float | None = None
    headteacher: dict[str, Any] | None = None
    vulnerability_score: dict[str, Any] | None = None
    pillar_details: dict[str, Any] | None = None


class LocalAuthorityResponse(BaseModel):
    """SEND metrics for a local authority."""

    model_config = ConfigDict(from_attributes=True)

    la_name: str
    la_id: str | None = None
    total_ehcps: int | None = None
    timeliness_pct: float | None = None
    awaiting_provision: int | None = None
    high_needs_funding: float | None = None
    appeals: int | None = None
    safety_valve_pool: int | None = None
