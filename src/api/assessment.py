"""Auto-assessment and Go/No-Go scoring endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_orchestrator
from src.schemas.assessment import AssessmentResponse, ScoringRequest, ScoringResultResponse
from src.services.assessment import AssessmentOrchestrator
from src.services.scoring import calculate_score

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assessment"])


@router.get("/api/assessment/{urn}", response_model=AssessmentResponse)
async def run_assessment(
    urn: str,
    orchestrator: Annotated[AssessmentOrchestrator, Depends(get_orchestrator)],
) -> AssessmentResponse:
    """Gather data for a school, auto-score every criterion and compute the decision."""
    data = await orchestrator.run(urn)
    if not data.found:
        raise HTTPException(status_code=404, detail=data.errors[0] if data.errors else "School not found")

    result = calculate_score(data.score_values())
    return AssessmentResponse(**data.to_dict(), result=result.to_dict())


@router.post("/api/scoring", response_model=ScoringResultResponse)
async def score(body: ScoringRequest) -> ScoringResultResponse:
    """Compute the weighted percentage and decision for a set of criterion scores."""
    try:
        result = calculate_score(body.scores)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ScoringResultResponse(**result.to_dict())
