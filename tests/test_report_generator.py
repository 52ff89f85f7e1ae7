"""Tests for the report builder and its markdown summary."""

from __future__ import annotations

import datetime
import json

import pytest

from src.services.assessment import AssessmentData
from src.services.auto_assess import ALERT, WARNING, AutoScore, Confidence, empty_scores, score_all
from src.services.forecast import LAInCatchment, calculate_forecast
from src.services.records import (
    CompanyRecord,
    LocalAuthorityRecord,
    school_record_from_dict,
)
from src.services.report_generator import build_report, due_diligence_flags, generate_markdown_report
from src.services.scoring import calculate_score, effective_scores

CREATED = datetime.datetime(2026, 3, 14, 10, 30)
TODAY = datetime.date(2026, 3, 14)


@pytest.fixture()
def assessment() -> AssessmentData:
    school = school_record_from_dict(
        {
            "urn": "140001",
            "name": "Oakfield House School",
            "type": "Other independent special school",
            "group_name": "Oakfield Education Trust",
            "la_name": "Kent",
            "school_capacity": 120,
            "pupil_count": 80,
            "ofsted_rating": "Good",
            "last_inspection_date": "2023-05-10",
            "vulnerability_score": {"total": 8, "pillar2_liquidity": 5, "pillar3_regulatory": 1},
        }
    )
    la = LocalAuthorityRecord(la_name="Kent", la_id="886", awaiting_provision=250, safety_valve_pool=2)
    company = CompanyRecord(
        company_name="OAKFIELD EDUCATION TRUST LIMITED", company_number="01234567", company_status="active"
    )
    data = AssessmentData(urn="140001", school=school, la=la, company=company)
    data.scores = score_all(school, la=la, company=company, today=TODAY)
    return data


class TestDueDiligenceFlags:
    def test_strips_markers_and_appends_errors(self):
        scores = empty_scores()
        scores["financial_health"] = AutoScore(
            2, Confidence.HIGH, "x", ("Vulnerability score: 8/35", f"{WARNING} Liquidity crisis flagged")
        )
        scores["ofsted_rating"] = AutoScore(
            1, Confidence.HIGH, "x", (f"{ALERT} Inadequate rating - high regulatory risk",)
        )
        flags = due_diligence_flags(scores, ["Local authority 'X' not found"])
        assert flags == [
            "Inadequate rating - high regulatory risk",
            "Liquidity crisis flagged",
            "Local authority 'X' not found",
        ]

    def test_no_flags(self):
        assert due_diligence_flags(empty_scores()) == []


class TestGenerateMarkdownReport:
    def test_sections_in_order(self, assessment):
        result = calculate_score(assessment.score_values())
        markdown = generate_markdown_report(assessment, result, created_at=CREATED)

        headings = [line for line in markdown.splitlines() if line.startswith("## ")]
        assert headings == [
            "## 1. School Overview",
            "## 2. Financial Health",
            "## 3. Catchment Analysis",
            "## 4. Commissioning Forecast",
            "## 5. Go/No-Go Score",
            "## 6. Due Diligence Flags",
            "## 7. Recommendation",
        ]
        assert markdown.startswith("# School Assessment Report: Oakfield House School")
        assert "**Date:** 2026-03-14" in markdown

    def test_content(self, assessment):
        result = calculate_score(assessment.score_values())
        markdown = generate_markdown_report(assessment, result, created_at=CREATED)

        assert "- **Proprietor:** Oakfield Education Trust" in markdown
        assert "- Company: OAKFIELD EDUCATION TRUST LIMITED (01234567)" in markdown
        assert "- Awaiting provision: 250" in markdown
        assert "- No forecast run" in markdown
        assert f"**Decision:** {result.decision.value}" in markdown
        assert f"({result.total_score}/{result.max_possible})" in markdown
        assert "- [FLAG] Liquidity crisis flagged" in markdown
        assert "- Staffing/Leadership (x2): not scored" in markdown

    def test_no_company_or_la(self, assessment):
        assessment.company = None
        assessment.la = None
        markdown = generate_markdown_report(assessment, calculate_score({}), created_at=CREATED)
        assert "- No financial data available" in markdown
        assert "- No local authority data available" in markdown
        assert "Do not proceed on current evidence." in markdown

    def test_forecast_block(self, assessment):
        forecast = calculate_forecast(500, [LAInCatchment("Kent", 2)])
        markdown = generate_markdown_report(
            assessment, calculate_score(assessment.score_values()), forecast, created_at=CREATED
        )
        block = markdown.split("```json\n", 1)[1].split("\n```", 1)[0]
        assert json.loads(block)["addressable_demand"] == 170


class TestBuildReport:
    def test_snapshots_and_scores(self, assessment):
        overrides = {"staffing_leadership": 5}
        result = calculate_score(effective_scores(assessment.score_values(), overrides))
        report = build_report(assessment, result, overrides=overrides, created_at=CREATED)

        assert report.id is None
        assert report.urn == "140001"
        assert report.school_name == "Oakfield House School"
        assert report.created_at == CREATED
        assert report.decision == result.decision.value
        assert report.percentage == result.percentage
        assert report.overrides == overrides
        assert report.la_snapshot == {
            "la_name": "Kent",
            "la_id": "886",
            "awaiting_provision": 250,
            "safety_valve_pool": 2,
        }
        assert report.company_snapshot["company_status"] == "active"
        assert report.auto_scores["staffing_leadership"]["score"] is None
        assert report.score["criteria"][4]["score"] == 5
        assert report.forecast is None
        assert report.markdown.startswith("# School Assessment Report")

    def test_without_optional_data(self, assessment):
        assessment.la = None
        assessment.company = None
        report = build_report(assessment, calculate_score({}), created_at=CREATED)
        assert report.la_snapshot is None
        assert report.company_snapshot is None
        assert report.overrides == {}
