"""FastAPI dependency providers shared by the assessment routers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.config import get_settings
from src.db.base import AssessmentRepository
from src.db.factory import get_assessment_repository
from src.services.assessment import AssessmentOrchestrator, RatingLookup
from src.services.ch_proxy import CompaniesHouseRelay, RequestThrottle
from src.services.companies_house import CompaniesHouseCache, get_companies_house_cache
from src.services.gov_data.gias import GIASRatingLookup


@lru_cache
def get_rating_lookup() -> RatingLookup | None:
    """GIAS-backed rating lookup when enabled, else ``None`` (registry fields are used)."""
    if not get_settings().GIAS_LOOKUP_ENABLED:
        return None
    return GIASRatingLookup()


def get_orchestrator(
    repo: Annotated[AssessmentRepository, Depends(get_assessment_repository)],
    companies: Annotated[CompaniesHouseCache, Depends(get_companies_house_cache)],
    ratings: Annotated[RatingLookup | None, Depends(get_rating_lookup)],
) -> AssessmentOrchestrator:
    return AssessmentOrchestrator(repo, companies=companies, ratings=ratings)


@lru_cache
def get_ch_throttle() -> RequestThrottle:
    """Process-wide relay throttle."""
    settings = get_settings()
    return RequestThrottle(settings.CH_PROXY_MAX_REQUESTS, settings.CH_PROXY_WINDOW_SECONDS)


def get_ch_relay() -> CompaniesHouseRelay | None:
    """Relay to the Companies House API, or ``None`` when no API key is configured."""
    settings = get_settings()
    if not settings.CH_API_KEY:
        return None
    return CompaniesHouseRelay(settings.CH_API_KEY, settings.CH_API_BASE)
