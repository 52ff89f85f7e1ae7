"""Shared pytest fixtures for the assessment test suite."""

from __future__ import annotations

import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from src.api.dependencies import get_rating_lookup
from src.db.base import AssessmentRepository
from src.db.factory import get_assessment_repository
from src.db.models import AssessmentReport, Base, LocalAuthority, School
from src.db.sqlite_repo import SQLiteAssessmentRepository
from src.main import app
from src.services.companies_house import CompaniesHouseCache, get_companies_house_cache

# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

OAKFIELD_VULNERABILITY = {
    "total": 8,
    "pillar1_size": 0,
    "pillar2_liquidity": 5,
    "pillar3_regulatory": 1,
    "pillar4_governance": 2,
    "pillar5_assets": 3,
    "pillar6_boarding": 0,
    "pillar7_resilience": 0,
    "status": "AMBER",
    "action": "Monitor closely",
}


def _create_test_schools() -> list[School]:
    """Three registry schools with progressively less data."""
    return [
        School(
            id=1,
            urn="140001",
            name="Oakfield House School",
            type="Other independent special school",
            la_name="Kent",
            group_name="Oakfield Education Trust",
            company_number="01234567",
            target_status="TARGET",
            rationale="Strong SEND niche with spare capacity",
            ofsted_rating="Good",
            last_inspection_date="2023-05-10",
            inspectorate="Ofsted",
            pupil_count=80,
            school_capacity=120,
            boarders="No boarders",
            town="Ashford",
            county="Kent",
            postcode="TN23 1AA",
            headteacher={
                "title": "Mrs",
                "first_name": "Jane",
                "last_name": "Doe",
                "preferred_job_title": "Headteacher",
            },
            vulnerability_score=OAKFIELD_VULNERABILITY,
            pillar_details={
                "pillar4": {"company_number": "01234567"},
                "pillar5": {"rural_isolation": {"flag": "Rural village", "points": 2}},
            },
        ),
        School(
            id=2,
            urn="140002",
            name="Riverside Academy",
            type="Other independent school",
            la_name="Nowhere Shire",
            town="Riverton",
        ),
        School(
            id=3,
            urn="140003",
            name="Hillcrest School",
            type="Other independent school",
            la_name="Surrey",
            inspectorate="ISI",
            pupil_count=300,
            school_capacity=310,
            vulnerability_score={"total": 20, "pillar2_liquidity": 1, "pillar5_assets": 5},
            pillar_details={"pillar3": {"no_ofsted_data": {"flag": "No Ofsted data (likely ISI)", "points": 1}}},
        ),
    ]


def _create_test_local_authorities() -> list[LocalAuthority]:
    return [
        LocalAuthority(
            id=1,
            la_name="Kent",
            la_id="886",
            total_ehcps=20000,
            timeliness_pct=45.0,
            awaiting_provision=250,
            high_needs_funding=300_000_000.0,
            appeals=900,
            safety_valve_pool=2,
        ),
        LocalAuthority(id=2, la_name="Surrey", la_id="936", awaiting_provision=120, safety_valve_pool=3),
    ]


def _create_test_reports() -> list[AssessmentReport]:
    return [
        AssessmentReport(
            id=1,
            urn="140001",
            school_name="Oakfield House School",
            created_at=datetime.datetime(2026, 1, 5, 9, 0),
            decision="INVESTIGATE",
            percentage=61.0,
            score={"total_score": 30, "max_possible": 50, "percentage": 61.0, "decision": "INVESTIGATE"},
            auto_scores={},
            overrides={},
            markdown="# School Assessment Report: Oakfield House School",
        ),
        AssessmentReport(
            id=2,
            urn="140003",
            school_name="Hillcrest School",
            created_at=datetime.datetime(2026, 2, 1, 14, 30),
            decision="AVOID",
            percentage=40.0,
            score={"total_score": 12, "max_possible": 30, "percentage": 40.0, "decision": "AVOID"},
            auto_scores={},
            overrides={},
            markdown="# School Assessment Report: Hillcrest School",
        ),
    ]


CH_CACHE_ENTRIES = {
    "140001": {
        "company_number": "01234567",
        "company_name": "OAKFIELD EDUCATION TRUST LIMITED",
        "company_status": "active",
        "company_type": "private-limited-guarant-nsc",
        "date_of_creation": "1998-04-01",
        "has_charges": True,
        "has_insolvency_history": False,
        "registered_office": {"locality": "Ashford", "postal_code": "TN23 1AA"},
        "sic_codes": ["85200"],
        "officers": [
            {"name": "DOE, Jane", "role": "director", "appointed": "2015-09-01", "resigned": ""},
            {"name": "SMITH, John", "role": "director", "appointed": "2010-01-01", "resigned": "2019-07-31"},
            {"name": "BROWN, Amy", "role": "secretary", "appointed": "2020-03-15", "resigned": ""},
        ],
        "officers_total": 3,
    }
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path) -> str:
    """Create a temporary SQLite database seeded with test data and return its path."""
    path = str(tmp_path / "test_assess.db")
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    with Session(sync_engine) as session:
        session.add_all(_create_test_schools())
        session.add_all(_create_test_local_authorities())
        session.add_all(_create_test_reports())
        session.commit()

    sync_engine.dispose()
    return path


@pytest.fixture()
def test_repo(db_path) -> SQLiteAssessmentRepository:
    """Return an async :class:`SQLiteAssessmentRepository` backed by the test database."""
    return SQLiteAssessmentRepository(db_path)


@pytest.fixture()
def ch_cache_entries() -> dict:
    return CH_CACHE_ENTRIES


@pytest.fixture()
def ch_cache(ch_cache_entries) -> CompaniesHouseCache:
    return CompaniesHouseCache.from_entries(ch_cache_entries)


@pytest.fixture()
def test_client(db_path, ch_cache) -> TestClient:
    """Return a FastAPI ``TestClient`` wired to the test database and an in-memory CH cache."""
    repo = SQLiteAssessmentRepository(db_path)

    def _override_repo() -> AssessmentRepository:
        return repo

    app.dependency_overrides[get_assessment_repository] = _override_repo
    app.dependency_overrides[get_companies_house_cache] = lambda: ch_cache
    app.dependency_overrides[get_rating_lookup] = lambda: None

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
