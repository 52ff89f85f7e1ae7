"""Companies House enrichment job.

Looks up the company profile and officers for every registry school that has
a company number and writes the results to the JSON cache read by
:class:`src.services.companies_house.CompaniesHouseCache`.  The cache is keyed
by URN so assessments never call Companies House directly.
"""

from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from src.config import get_settings
from src.db.models import School
from src.services.gov_data.base import BaseGovDataService

logger = logging.getLogger(__name__)

MAX_CACHED_OFFICERS = 10
# Companies House allows 600 requests per 5 minutes; two requests per school.
PAUSE_EVERY = 50
PAUSE_SECONDS = 2.0


def company_number_for(school: School) -> str | None:
    """The school's company number, from the column or the governance pillar details."""
    if school.company_number:
        return school.company_number.strip() or None
    pillar4 = (school.pillar_details or {}).get("pillar4") or {}
    number = pillar4.get("company_number") if isinstance(pillar4, dict) else None
    return str(number).strip() if number else None


def build_cache_entry(
    company_number: str,
    profile: dict[str, Any],
    officers: dict[str, Any] | None,
    enriched_at: datetime.datetime | None = None,
) -> dict[str, Any]:
    """Condense a profile and officer list into one cache entry."""
    items = (officers or {}).get("items") or []
    enriched_at = enriched_at or datetime.datetime.now(datetime.timezone.utc)
    return {
        "company_number": company_number,
        "company_name": profile.get("company_name", ""),
        "company_status": profile.get("company_status", ""),
        "company_type": profile.get("type", ""),
        "date_of_creation": profile.get("date_of_creation", ""),
        "has_charges": bool(profile.get("has_charges", False)),
        "has_insolvency_history": bool(profile.get("has_insolvency_history", False)),
        "registered_office": profile.get("registered_office_address") or {},
        "sic_codes": profile.get("sic_codes") or [],
        "accounts": profile.get("accounts") or {},
        "officers": [
            {
                "name": o.get("name", ""),
                "role": o.get("officer_role", ""),
                "appointed": o.get("appointed_on", ""),
                "resigned": o.get("resigned_on", ""),
            }
            for o in items[:MAX_CACHED_OFFICERS]
        ],
        "officers_total": (officers or {}).get("total_results", 0),
        "enriched_at": enriched_at.isoformat(),
    }


class CompaniesHouseEnrichmentService(BaseGovDataService):
    """Build the URN-keyed Companies House cache from the live API.

    Usage::

        service = CompaniesHouseEnrichmentService()
        stats = service.enrich()
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs,
    ) -> None:
        settings = get_settings()
        super().__init__(**kwargs)
        self._api_key = api_key or settings.CH_API_KEY
        self._base_url = (base_url or settings.CH_API_BASE).rstrip("/")
        if not self._api_key:
            raise ValueError("CH_API_KEY is not configured")

    def fetch(self, client: httpx.Client, path: str) -> dict[str, Any] | None:
        """GET a Companies House resource; ``None`` for any non-2xx response."""
        response = self._get_with_retry(client, f"{self._base_url}{path}")
        if not response.is_success:
            self._logger.debug("Companies House %s returned %d", path, response.status_code)
            return None
        return response.json()

    def enrich_company(self, client: httpx.Client, company_number: str) -> dict[str, Any] | None:
        profile = self.fetch(client, f"/company/{company_number}")
        if not profile:
            self._logger.info("No profile found for %s", company_number)
            return None
        officers = self.fetch(client, f"/company/{company_number}/officers")
        return build_cache_entry(company_number, profile, officers)

    def enrich(
        self,
        urn: str | None = None,
        db_path: str | None = None,
        cache_path: str | None = None,
    ) -> dict[str, int]:
        """Enrich one school (*urn*) or every school with a company number.

        Existing cache entries for other schools are kept.

        Returns
        -------
        dict
            Statistics: {candidates, enriched, not_found}.
        """
        settings = get_settings()
        db = db_path or settings.SQLITE_PATH
        out = Path(cache_path or settings.CH_CACHE_PATH)

        targets = self._load_targets(db, urn)
        self._logger.info("%d schools have company numbers", len(targets))

        cache: dict[str, Any] = {}
        if out.is_file():
            cache = json.loads(out.read_text(encoding="utf-8"))

        enriched = 0
        not_found = 0
        with self._client(auth=(self._api_key, ""), headers={"Accept": "application/json"}) as client:
            for count, (school_urn, company_number) in enumerate(targets, start=1):
                self._logger.info("Enriching URN %s (company %s)", school_urn, company_number)
                entry = self.enrich_company(client, company_number)
                if entry is None:
                    not_found += 1
                else:
                    cache[school_urn] = entry
                    enriched += 1
                if count % PAUSE_EVERY == 0:
                    self._logger.info("Processed %d/%d, pausing", count, len(targets))
                    self._sleep(PAUSE_SECONDS)

        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(cache, indent=2), encoding="utf-8")
        self._logger.info("Wrote %d cache entries to %s", len(cache), out)
        return {"candidates": len(targets), "enriched": enriched, "not_found": not_found}

    @staticmethod
    def _load_targets(db_path: str, urn: str | None) -> list[tuple[str, str]]:
        engine = create_engine(f"sqlite:///{db_path}")
        stmt = select(School).order_by(School.urn)
        if urn is not None:
            stmt = stmt.where(School.urn == urn)
        try:
            with Session(engine) as session:
                targets = []
                for school in session.scalars(stmt):
                    number = company_number_for(school)
                    if number:
                        targets.append((school.urn, number))
                return targets
        finally:
            engine.dispose()
