from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from src.db.base import AssessmentRepository
from src.db.factory import get_assessment_repository
from src.schemas.school import SchoolDetailResponse, SchoolResponse

router = APIRouter(tags=["schools"])


@router.get("/api/schools", response_model=list[SchoolResponse])
async def search_schools(
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
    search: Annotated[str, Query(description="Name substring or exact URN")] = "",
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[SchoolResponse]:
    """Search the registry by school name or URN."""
    schools = await repo.search_schools(search, limit=limit)
    return schools


@router.get("/api/schools/{urn}", response_model=SchoolDetailResponse)
async def get_school(
    urn: str,
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
) -> SchoolDetailResponse:
    """Get the full registry record for a school."""
    school = await repo.get_school_by_urn(urn)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return school
