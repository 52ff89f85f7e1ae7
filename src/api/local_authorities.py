from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.db.base import AssessmentRepository
from src.db.factory import get_assessment_repository
from src.schemas.school import LocalAuthorityResponse

router = APIRouter(tags=["local-authorities"])


@router.get("/api/local-authorities", response_model=list[str])
async def list_local_authorities(
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
) -> list[str]:
    """List all local authority names."""
    names = await repo.list_local_authorities()
    return names


@router.get("/api/local-authorities/{la_name}", response_model=LocalAuthorityResponse)
async def get_local_authority(
    la_name: str,
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
) -> LocalAuthorityResponse:
    la = await repo.get_local_authority_by_name(la_name)
    if la is None:
        raise HTTPException(status_code=404, detail="Local authority not found")
    return la
