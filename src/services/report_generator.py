"""Build saved assessment reports and their markdown summary."""

from __future__ import annotations

import datetime
import json
from collections.abc import Mapping

from src.db.models import AssessmentReport
from src.services.assessment import AssessmentData
from src.services.auto_assess import ALERT, WARNING, AutoScore
from src.services.forecast import ForecastResult
from src.services.scoring import Decision, ScoringResult

RECOMMENDATIONS: dict[Decision, str] = {
    Decision.GO: "Proceed to detailed due diligence and an indicative offer.",
    Decision.INVESTIGATE: "Investigate further before committing: resolve the flagged items and score the manual criteria.",
    Decision.AVOID: "Do not proceed on current evidence.",
}


def _or_unknown(value: object) -> object:
    return "Unknown" if value is None else value


def due_diligence_flags(scores: Mapping[str, AutoScore], errors: list[str] | None = None) -> list[str]:
    """Collect warning and alert data points from the scores, plus any lookup errors."""
    flags = []
    for auto in scores.values():
        for point in auto.data_points:
            if point.startswith((WARNING, ALERT)):
                flags.append(point.removeprefix(WARNING).removeprefix(ALERT).strip())
    flags.extend(errors or [])
    return flags


def generate_markdown_report(
    data: AssessmentData,
    result: ScoringResult,
    forecast: ForecastResult | None = None,
    created_at: datetime.datetime | None = None,
) -> str:
    created_at = created_at or datetime.datetime.now()
    school = data.school
    name = school.name if school else data.urn

    lines = [f"# School Assessment Report: {name}", f"**Date:** {created_at:%Y-%m-%d}", ""]

    lines.append("## 1. School Overview")
    lines.append(f"- **URN:** {data.urn}")
    lines.append(f"- **Type:** {(school.school_type if school else None) or 'Unknown'}")
    lines.append(f"- **Capacity:** {(school.school_capacity if school else None) or 'Unknown'}")
    lines.append(f"- **Proprietor:** {(school.group_name if school else None) or 'Unknown'}")
    lines.append("")

    lines.append("## 2. Financial Health")
    if data.company is not None:
        lines.append(f"- Company: {data.company.company_name or 'Unknown'} ({data.company.company_number or '?'})")
        lines.append(f"- Company Status: {data.company.company_status or 'Unknown'}")
    else:
        lines.append("- No financial data available")
    if school is not None and school.vulnerability is not None:
        lines.append(f"- Vulnerability score: {school.vulnerability.total}/35")
    lines.append("")

    lines.append("## 3. Catchment Analysis")
    if data.la is not None:
        lines.append(f"- Local authority: {data.la.la_name}")
        lines.append(f"- Awaiting provision: {_or_unknown(data.la.awaiting_provision)}")
        lines.append(f"- Safety Valve Pool: {_or_unknown(data.la.safety_valve_pool)}")
    else:
        lines.append("- No local authority data available")
    lines.append("")

    lines.append("## 4. Commissioning Forecast")
    if forecast is not None:
        lines.append("```json")
        lines.append(json.dumps(forecast.to_dict(), indent=2))
        lines.append("```")
    else:
        lines.append("- No forecast run")
    lines.append("")

    lines.append("## 5. Go/No-Go Score")
    lines.append(f"**Decision:** {result.decision.value}")
    lines.append(f"**Score:** {result.percentage:.1f}% ({result.total_score}/{result.max_possible})")
    lines.append("")
    for c in result.criteria:
        lines.append(f"- {c.label} (x{c.weight}): {c.score if c.score is not None else 'not scored'}")
    lines.append("")

    lines.append("## 6. Due Diligence Flags")
    flags = due_diligence_flags(data.scores, data.errors)
    if flags:
        lines.extend(f"- [FLAG] {f}" for f in flags)
    else:
        lines.append("- None")
    lines.append("")

    lines.append("## 7. Recommendation")
    lines.append(RECOMMENDATIONS[result.decision])

    return "\n".join(lines).strip()


def build_report(
    data: AssessmentData,
    result: ScoringResult,
    overrides: Mapping[str, int | None] | None = None,
    forecast: ForecastResult | None = None,
    created_at: datetime.datetime | None = None,
) -> AssessmentReport:
    """Assemble an unsaved :class:`AssessmentReport` with condensed LA/company snapshots."""
    created_at = created_at or datetime.datetime.now()
    la_snapshot = None
    if data.la is not None:
        la_snapshot = {
            "la_name": data.la.la_name,
            "la_id": data.la.la_id,
            "awaiting_provision": data.la.awaiting_provision,
            "safety_valve_pool": data.la.safety_valve_pool,
        }
    company_snapshot = None
    if data.company is not None:
        company_snapshot = {
            "company_name": data.company.company_name,
            "company_number": data.company.company_number,
            "company_status": data.company.company_status,
        }

    return AssessmentReport(
        urn=data.urn,
        school_name=data.school.name if data.school else data.urn,
        created_at=created_at,
        decision=result.decision.value,
        percentage=result.percentage,
        score=result.to_dict(),
        auto_scores={key: s.to_dict() for key, s in data.scores.items()},
        overrides=dict(overrides or {}),
        la_snapshot=la_snapshot,
        company_snapshot=company_snapshot,
        forecast=forecast.to_dict() if forecast else None,
        markdown=generate_markdown_report(data, result, forecast, created_at),
    )
