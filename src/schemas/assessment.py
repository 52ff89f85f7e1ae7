"""Pydantic schemas for the assessment, scoring, forecast and report endpoints."""

from __future__ import annotations

import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

CriterionScoreValue = Annotated[int, Field(ge=1, le=5)]


class AutoScoreResponse(BaseModel):
    score: int | None
    confidence: str
    rationale: str
    data_points: list[str]


class CriterionResultResponse(BaseModel):
    key: str
    label: str
    weight: int
    score: int | None


class ScoringResultResponse(BaseModel):
    total_score: int
    max_possible: int
    percentage: float
    decision: str
    criteria: list[CriterionResultResponse]


class AssessmentResponse(BaseModel):
    """Auto-assessment of one school, scored without overrides."""

    urn: str
    school_name: str | None
    la_name: str | None = None
    company_name: str | None = None
    scores: dict[str, AutoScoreResponse]
    result: ScoringResultResponse
    errors: list[str]


class ScoringRequest(BaseModel):
    """Effective scores keyed by criterion key; ``null`` means not scored."""

    scores: dict[str, CriterionScoreValue | None] = Field(default_factory=dict)


class LAInCatchmentRequest(BaseModel):
    la_name: str
    pool: int = Field(ge=1, le=4)
    unplaced: int = Field(default=0, ge=0)


class ForecastRequest(BaseModel):
    """Forecast inputs.  ``total_unplaced`` defaults to the sum of the LAs' counts."""

    total_unplaced: int | None = Field(default=None, ge=0)
    las: list[LAInCatchmentRequest] = Field(default_factory=list)
    capacities: list[Annotated[int, Field(gt=0)]] = Field(default_factory=lambda: [12, 18, 24, 30], min_length=1)


class CapacityScenarioResponse(BaseModel):
    capacity: int
    demand_ratio: int
    confidence: str
    opening_fill_range: list[int]
    year_one_fill_range: list[int]
    opening_places_range: list[int]
    year_one_places_range: list[int]


class ForecastResponse(BaseModel):
    total_unplaced: int
    addressable_demand: int
    total_las: int
    pool1_count: int
    pool2_count: int
    pool3_count: int
    pool4_count: int
    la_quality_percent: int
    scenarios: list[CapacityScenarioResponse]
    recommended_capacity: int


class ReportCreateRequest(BaseModel):
    """Run an assessment for *urn*, apply manual overrides and save the report.

    An override of ``null`` clears that criterion's auto-score.
    """

    urn: str
    overrides: dict[str, CriterionScoreValue | None] = Field(default_factory=dict)
    forecast: ForecastRequest | None = None


class ReportSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    urn: str
    school_name: str
    created_at: datetime.datetime
    decision: str
    percentage: float


class ReportResponse(ReportSummaryResponse):
    score: dict[str, Any]
    auto_scores: dict[str, Any]
    overrides: dict[str, Any]
    la_snapshot: dict[str, Any] | None = None
    company_snapshot: dict[str, Any] | None = None
    forecast: dict[str, Any] | None = None
    markdown: str
