"""Saved assessment reports."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import get_orchestrator
from src.api.forecast import run_forecast
from src.db.base import AssessmentRepository
from src.db.factory import get_assessment_repository
from src.schemas.assessment import ReportCreateRequest, ReportResponse, ReportSummaryResponse
from src.services.assessment import AssessmentOrchestrator
from src.services.report_generator import build_report
from src.services.scoring import calculate_score, effective_scores

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


@router.post("/api/reports", response_model=ReportResponse, status_code=201)
async def create_report(
    body: ReportCreateRequest,
    orchestrator: Annotated[AssessmentOrchestrator, Depends(get_orchestrator)],
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
) -> ReportResponse:
    """Assess a school, apply manual overrides, and save the report."""
    data = await orchestrator.run(body.urn)
    if not data.found:
        raise HTTPException(status_code=404, detail=data.errors[0] if data.errors else "School not found")

    try:
        forecast = run_forecast(body.forecast) if body.forecast is not None else None
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = calculate_score(effective_scores(data.score_values(), body.overrides))
    report = await repo.save_report(build_report(data, result, overrides=body.overrides, forecast=forecast))
    logger.info("Saved report %s for URN %s: %s", report.id, report.urn, report.decision)
    return report


@router.get("/api/reports", response_model=list[ReportSummaryResponse])
async def list_reports(
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
    urn: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[ReportSummaryResponse]:
    """List saved reports, newest first."""
    reports = await repo.list_reports(urn=urn, limit=limit)
    return reports


@router.get("/api/reports/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: int,
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
) -> ReportResponse:
    report = await repo.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report
