"""Assessment orchestrator.

Fetches the registry record for a school, then looks up its local
authority, Companies House profile, officers and external inspection rating
concurrently, and runs every criterion scorer over whatever came back.

Only a missing school is fatal.  Every other lookup is optional: a failure
is recorded in :attr:`AssessmentData.errors` and the affected scorers fall
back to partial data or ``MANUAL``.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.db.base import AssessmentRepository
from src.services.auto_assess import AutoScore, empty_scores, score_all
from src.services.records import (
    CompanyRecord,
    ExternalRating,
    LocalAuthorityRecord,
    OfficerList,
    SchoolRecord,
    local_authority_from_orm,
    school_record_from_orm,
)

logger = logging.getLogger(__name__)


class CompanyLookup(Protocol):
    def get_company_profile(self, urn: str) -> CompanyRecord | None: ...

    def get_officers(self, urn: str) -> OfficerList | None: ...


class RatingLookup(Protocol):
    def get_external_rating(self, urn: str) -> ExternalRating | None: ...


@dataclass
class AssessmentData:
    """Everything gathered for one assessment run."""

    urn: str
    school: SchoolRecord | None = None
    la: LocalAuthorityRecord | None = None
    company: CompanyRecord | None = None
    officers: OfficerList | None = None
    external_rating: ExternalRating | None = None
    scores: dict[str, AutoScore] = field(default_factory=empty_scores)
    errors: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.school is not None

    def score_values(self) -> dict[str, int | None]:
        return {key: s.score for key, s in self.scores.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "urn": self.urn,
            "school_name": self.school.name if self.school else None,
            "la_name": self.la.la_name if self.la else None,
            "company_name": self.company.company_name if self.company else None,
            "scores": {key: s.to_dict() for key, s in self.scores.items()},
            "errors": list(self.errors),
        }


async def _none() -> None:
    return None


class AssessmentOrchestrator:
    """Gather inputs for a school and auto-score every criterion.

    Parameters
    ----------
    repo:
        Registry repository (schools and local authorities).
    companies:
        Companies House cache lookup, or ``None`` to skip company data.
    ratings:
        External inspection-rating lookup, or ``None`` to use the registry's
        own rating fields.
    """

    def __init__(
        self,
        repo: AssessmentRepository,
        companies: CompanyLookup | None = None,
        ratings: RatingLookup | None = None,
    ) -> None:
        self._repo = repo
        self._companies = companies
        self._ratings = ratings
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    async def run(self, urn: str, today: datetime.date | None = None) -> AssessmentData:
        data = AssessmentData(urn=urn)

        try:
            school = await self._repo.get_school_by_urn(urn)
        except Exception as exc:
            self._logger.exception("School lookup failed for URN %s", urn)
            data.errors.append(f"Failed to load school {urn}: {exc}")
            return data

        if school is None:
            data.errors.append(f"School {urn} not found")
            return data

        record = school_record_from_orm(school)
        data.school = record

        la_task = self._repo.get_local_authority_by_name(record.la_name) if record.la_name else _none()
        company_task = self._call(self._companies, "get_company_profile", urn)
        officers_task = self._call(self._companies, "get_officers", urn)
        rating_task = self._call(self._ratings, "get_external_rating", urn)

        la_res, company_res, officers_res, rating_res = await asyncio.gather(
            la_task, company_task, officers_task, rating_task, return_exceptions=True
        )

        if isinstance(la_res, BaseException):
            self._warn(data, f"Failed to load local authority '{record.la_name}'", la_res)
        elif la_res is not None:
            data.la = local_authority_from_orm(la_res)
        elif record.la_name:
            data.errors.append(f"Local authority '{record.la_name}' not found")
        else:
            data.errors.append("School has no local authority")

        if isinstance(company_res, BaseException):
            self._warn(data, "Failed to load company profile", company_res)
        else:
            data.company = company_res

        if isinstance(officers_res, BaseException):
            self._warn(data, "Failed to load officers", officers_res)
        else:
            data.officers = officers_res

        if isinstance(rating_res, BaseException):
            self._warn(data, "Failed to load external rating", rating_res)
        else:
            data.external_rating = rating_res

        data.scores = score_all(
            record,
            la=data.la,
            company=data.company,
            officers=data.officers,
            external=data.external_rating,
            today=today,
        )
        return data

    @staticmethod
    async def _call(collaborator: Any, method: str, urn: str) -> Any:
        """Run a synchronous collaborator method in a worker thread."""
        if collaborator is None:
            return None
        return await asyncio.to_thread(getattr(collaborator, method), urn)

    def _warn(self, data: AssessmentData, message: str, exc: BaseException) -> None:
        self._logger.warning("%s for URN %s: %s", message, data.urn, exc)
        data.errors.append(f"{message}: {exc}")
