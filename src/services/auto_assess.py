"""Criterion auto-scorers for the Go/No-Go assessment.

Each scorer maps whatever data is available for a school to an
:class:`AutoScore`: a 1-5 score (or ``None`` when it cannot be computed),
a confidence level, a one-line rationale and the evidence behind it.

Scorers never raise.  Missing inputs produce ``score=None`` with
``Confidence.MANUAL`` so the reviewer knows to score that criterion by hand.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any

from src.services.records import (
    CompanyRecord,
    ExternalRating,
    LocalAuthorityRecord,
    OfficerList,
    SchoolRecord,
)
from src.services.scoring import CRITERIA

# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class Confidence(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class AutoScore:
    score: int | None  # 1-5, None = not computable
    confidence: Confidence
    rationale: str
    data_points: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence.value,
            "rationale": self.rationale,
            "data_points": list(self.data_points),
        }


def empty_score() -> AutoScore:
    return AutoScore(score=None, confidence=Confidence.MANUAL, rationale="Awaiting data")


WARNING = "⚠️"  # warning sign
ALERT = "\U0001f6a8"  # rotating light

# ---------------------------------------------------------------------------
# Policy constants
# ---------------------------------------------------------------------------
# Bands are (upper bound, score) pairs checked in order; the first bound the
# value falls under wins.  FINANCIAL_BANDS, LEGALS_BANDS and LOCATION_BANDS
# use inclusive bounds, UTILISATION_BANDS exclusive ones.

FINANCIAL_BANDS: tuple[tuple[float, int], ...] = ((3, 5), (6, 4), (10, 3), (15, 2))
FINANCIAL_FLOOR_SCORE = 1

# Liquidity penalty and utilisation bands have no documented derivation.
# Kept exactly as the dashboard has always applied them; revisit with finance.
LIQUIDITY_CRISIS_THRESHOLD = 4
LIQUIDITY_CRISIS_PENALTY = 1

UTILISATION_BANDS: tuple[tuple[float, int], ...] = ((60, 5), (75, 4), (85, 3), (95, 2))
UTILISATION_FLOOR_SCORE = 1

LEGALS_BANDS: tuple[tuple[float, int], ...] = ((0, 5), (2, 4), (4, 3), (6, 2))
LEGALS_FLOOR_SCORE = 1

LOCATION_BANDS: tuple[tuple[float, int], ...] = ((0, 5), (2, 4), (4, 3))
LOCATION_FLOOR_SCORE = 2

STALE_INSPECTION_YEARS = 5

POOL_DESCRIPTIONS: dict[int, str] = {
    1: "fastest commissioning",
    2: "good",
    3: "slower",
}

# Checked in order; the first keyword found in the lower-cased rating wins.
OFSTED_KEYWORDS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("outstanding",), 5),
    (("good",), 4),
    (("requires improvement", "satisfactory"), 2),
    (("inadequate", "serious weaknesses", "special measures"), 1),
)
UNRECOGNISED_RATING_SCORE = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _band(value: float, bands: tuple[tuple[float, int], ...], floor: int, inclusive: bool = True) -> int:
    for bound, score in bands:
        if value <= bound if inclusive else value < bound:
            return score
    return floor


def _flag_text(value: Any, default: str) -> str:
    """Return the human-readable text of a pillar flag.

    Flags are stored either as ``True`` or as ``{"flag": "...", "points": n}``.
    """
    if isinstance(value, dict):
        return str(value.get("flag") or value.get("status") or default)
    return default


def _flag_points(value: Any) -> float:
    if isinstance(value, dict):
        points = value.get("points")
        if isinstance(points, (int, float)) and not isinstance(points, bool):
            return points
    return 0


def parse_inspection_date(value: str | None) -> datetime.date | None:
    """Parse an inspection date as written by the register or GIAS, else ``None``."""
    if not value:
        return None
    text = value.strip()
    for fmt in ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y"):
        try:
            return datetime.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Commissioning Demand
# ---------------------------------------------------------------------------


def score_commissioning_demand(la: LocalAuthorityRecord | None) -> AutoScore:
    """Score demand from learners awaiting provision and the LA's pool."""
    if la is None:
        return AutoScore(None, Confidence.MANUAL, "No local authority data. Insufficient data for auto-scoring.")

    data_points: list[str] = []
    awaiting = la.awaiting_provision
    pool = la.safety_valve_pool

    if awaiting is not None:
        data_points.append(f"{awaiting} learners awaiting provision in {la.la_name or 'LA'}")
    if la.total_ehcps is not None:
        data_points.append(f"{la.total_ehcps} total EHCPs")
    if pool is not None:
        data_points.append(f"Safety Valve Pool {pool} ({POOL_DESCRIPTIONS.get(pool, 'difficult')})")

    if awaiting is None:
        return AutoScore(None, Confidence.MANUAL, "Insufficient data for auto-scoring.", tuple(data_points))

    if pool is not None:
        if awaiting >= 200 and pool <= 2:
            score, confidence = 5, Confidence.HIGH
        elif awaiting >= 100 and pool <= 2:
            score, confidence = 4, Confidence.HIGH
        elif awaiting >= 100 and pool == 3:
            score, confidence = 3, Confidence.MEDIUM
        elif awaiting >= 50:
            score, confidence = 3, Confidence.MEDIUM
        elif awaiting >= 20:
            score, confidence = 2, Confidence.MEDIUM
        else:
            score, confidence = 1, Confidence.MEDIUM
    else:
        confidence = Confidence.LOW
        if awaiting >= 150:
            score = 4
        elif awaiting >= 50:
            score = 3
        else:
            score = 2

    rationale = f"Based on {awaiting} unplaced learners and Pool {pool if pool is not None else '?'} LA classification."
    return AutoScore(score, confidence, rationale, tuple(data_points))


# ---------------------------------------------------------------------------
# Ofsted Rating & Regulatory Standing
# ---------------------------------------------------------------------------


def score_ofsted_rating(
    school: SchoolRecord,
    external: ExternalRating | None = None,
    today: datetime.date | None = None,
) -> AutoScore:
    """Score regulatory standing from the latest inspection outcome.

    The external register lookup takes precedence over the registry's own
    copy.  *today* defaults to the current date and exists so that the
    inspection-age check can be pinned in tests.
    """
    if school.pillar("pillar3").get("no_ofsted_data"):
        return AutoScore(
            3,
            Confidence.MEDIUM,
            "Independent school inspected by ISI rather than Ofsted. Assumed acceptable regulatory standing.",
            ("No Ofsted data (likely ISI-inspected)",),
        )

    external = external or ExternalRating()
    rating = external.rating or school.ofsted_rating or ""
    inspected_on = external.last_inspection_date or school.last_inspection_date or ""
    inspectorate = external.inspectorate or school.inspectorate or ""

    data_points: list[str] = []
    if inspectorate:
        data_points.append(f"Inspectorate: {inspectorate}")
    if rating:
        data_points.append(f"Ofsted Rating: {rating}")
    if inspected_on:
        data_points.append(f"Last Inspection: {inspected_on}")

    score: int | None = None
    confidence = Confidence.MANUAL

    if rating:
        lowered = rating.lower()
        for keywords, keyword_score in OFSTED_KEYWORDS:
            if any(k in lowered for k in keywords):
                score = keyword_score
                confidence = Confidence.HIGH
                break
        else:
            score = UNRECOGNISED_RATING_SCORE
            confidence = Confidence.LOW

        if score == 2:
            data_points.append(f"{WARNING} School requires improvement")
        elif score == 1:
            data_points.append(f"{ALERT} Inadequate rating - high regulatory risk")

    inspection_date = parse_inspection_date(inspected_on)
    if inspection_date is not None:
        today = today or datetime.date.today()
        years_since = (today - inspection_date).days / 365
        if years_since > STALE_INSPECTION_YEARS:
            data_points.append(f"{WARNING} Inspection data is {int(years_since + 0.5)} years old")
            if score is not None and confidence is Confidence.HIGH:
                confidence = Confidence.MEDIUM

    if score is None:
        return AutoScore(
            None, Confidence.MANUAL, "No Ofsted rating available. Manual assessment required.", tuple(data_points)
        )

    rationale = f"Ofsted rating: {rating}."
    if inspectorate == "Ofsted":
        rationale += " State-inspected."
    elif inspectorate:
        rationale += f" Inspected by {inspectorate}."
    return AutoScore(score, confidence, rationale, tuple(data_points))


# ---------------------------------------------------------------------------
# Financial Health
# ---------------------------------------------------------------------------


def score_financial_health(school: SchoolRecord, company: CompanyRecord | None = None) -> AutoScore:
    """Score financial health from the vulnerability total (5 = healthy, 1 = severe distress)."""
    vs = school.vulnerability
    if vs is None:
        return AutoScore(None, Confidence.MANUAL, "No vulnerability data available.")

    data_points = [
        f"Vulnerability score: {vs.total}/35",
        f"Status: {vs.status or ''} ({vs.action or ''})",
        f"Liquidity risk: {vs.liquidity} points",
        f"Governance risk: {vs.governance} points",
    ]

    company_number = school.pillar("pillar4").get("company_number") or school.company_number
    if company_number:
        data_points.append(f"Company: {company_number}")

    if company is not None:
        if company.company_status:
            data_points.append(f"Companies House status: {company.company_status}")
        if company.has_insolvency_history:
            data_points.append(f"{ALERT} Insolvency history on record")
        if company.has_charges:
            data_points.append("Charges registered against the company")

    score = _band(vs.total, FINANCIAL_BANDS, FINANCIAL_FLOOR_SCORE)

    liquidity_crisis = vs.liquidity >= LIQUIDITY_CRISIS_THRESHOLD
    if liquidity_crisis:
        data_points.append(f"{WARNING} Liquidity crisis flagged")
        score = max(FINANCIAL_FLOOR_SCORE, score - LIQUIDITY_CRISIS_PENALTY)

    parts = [f"Vulnerability total {vs.total}/35."]
    if vs.action:
        parts.append(f"{vs.action}.")
    if liquidity_crisis:
        parts.append("Liquidity crisis flagged.")

    return AutoScore(score, Confidence.HIGH, " ".join(parts), tuple(data_points))


# ---------------------------------------------------------------------------
# Building Condition
# ---------------------------------------------------------------------------


def score_building_condition(school: SchoolRecord) -> AutoScore:
    """Partial score from capacity utilisation; spare space scores higher.

    Always LOW confidence: only a physical inspection can confirm condition.
    """
    data_points: list[str] = []

    if school.boarders:
        data_points.append(f"Boarders: {school.boarders}")

    capacity = school.school_capacity
    pupils = school.pupil_count
    utilisation: float | None = None
    if capacity and pupils:
        utilisation = pupils / capacity * 100
        data_points.append(f"Capacity utilisation: {utilisation:.1f}% ({pupils}/{capacity})")

    p5 = school.pillar("pillar5")
    if p5.get("rural_isolation"):
        data_points.append(f"Rural isolation: {_flag_text(p5['rural_isolation'], 'flagged')}")
    if p5.get("lease_data_unavailable"):
        data_points.append("Lease tenure data not available")

    p6 = school.pillar("pillar6")
    if p6.get("has_boarding"):
        data_points.append(f"Boarding: {_flag_text(p6['has_boarding'], 'Yes')}")

    if utilisation is None:
        return AutoScore(
            None, Confidence.MANUAL, "No capacity data available. Requires physical inspection.", tuple(data_points)
        )

    score = _band(utilisation, UTILISATION_BANDS, UTILISATION_FLOOR_SCORE, inclusive=False)
    return AutoScore(
        score,
        Confidence.LOW,
        "Based on capacity utilisation. Physical inspection required for accurate score.",
        tuple(data_points),
    )


# ---------------------------------------------------------------------------
# Staffing/Leadership
# ---------------------------------------------------------------------------


def score_staffing_leadership(school: SchoolRecord, officers: OfficerList | None = None) -> AutoScore:
    """Surface leadership facts; there is no heuristic for this criterion."""
    data_points: list[str] = []

    ht = school.headteacher
    if ht is not None:
        data_points.append(f"{ht.job_title or 'Head'}: {ht.full_name}")
    if school.group_name:
        data_points.append(f"Group: {school.group_name}")
    if officers is not None and officers.items:
        data_points.append(f"Active company officers: {len(officers.active)} of {officers.total_results}")

    return AutoScore(
        None,
        Confidence.MANUAL,
        "Requires manual assessment of leadership quality and staffing stability.",
        tuple(data_points),
    )


# ---------------------------------------------------------------------------
# Legals/Compliance
# ---------------------------------------------------------------------------


def score_legals_compliance(school: SchoolRecord) -> AutoScore:
    vs = school.vulnerability
    if vs is None:
        return AutoScore(None, Confidence.MANUAL, "No vulnerability data available.")

    data_points = [
        f"Regulatory risk: {vs.regulatory} points",
        f"Governance risk: {vs.governance} points",
    ]

    p3 = school.pillar("pillar3")
    if p3.get("no_ofsted_data"):
        data_points.append(_flag_text(p3["no_ofsted_data"], "No Ofsted data (likely ISI)"))

    p4 = school.pillar("pillar4")
    if p4.get("trustee_benefits"):
        data_points.append(f"{WARNING} {_flag_text(p4['trustee_benefits'], 'Trustee benefits flagged')}")

    combined = vs.regulatory + vs.governance
    score = _band(combined, LEGALS_BANDS, LEGALS_FLOOR_SCORE)

    return AutoScore(
        score,
        Confidence.MEDIUM,
        f"Combined regulatory + governance risk: {combined} points.",
        tuple(data_points),
    )


# ---------------------------------------------------------------------------
# Location/Access
# ---------------------------------------------------------------------------


def score_location_access(school: SchoolRecord) -> AutoScore:
    vs = school.vulnerability
    data_points: list[str] = []

    if school.address:
        data_points.append(f"Location: {school.address}")

    if vs is None:
        return AutoScore(None, Confidence.MANUAL, "No asset risk data available.", tuple(data_points))

    data_points.append(f"Asset risk: {vs.assets} points")

    rural = school.pillar("pillar5").get("rural_isolation")
    rural_points = _flag_points(rural)
    if rural:
        data_points.append(f"Rural isolation: {'Yes' if rural_points > 0 else 'No'} ({rural_points} pts)")

    score = _band(vs.assets, LOCATION_BANDS, LOCATION_FLOOR_SCORE)
    setting = "Rural location." if rural_points > 0 else "Urban/suburban."

    return AutoScore(
        score,
        Confidence.MEDIUM,
        f"Asset risk {vs.assets} points. {setting}",
        tuple(data_points),
    )


# ---------------------------------------------------------------------------
# Reputation & Synergy
# ---------------------------------------------------------------------------


def score_reputation(school: SchoolRecord) -> AutoScore:
    data_points: list[str] = []
    if school.target_status:
        data_points.append(f"Target status: {school.target_status}")
    if school.rationale:
        data_points.append(f"ISF rationale: {school.rationale}")

    return AutoScore(
        None,
        Confidence.MANUAL,
        school.rationale or "Requires manual assessment of school reputation.",
        tuple(data_points),
    )


def score_synergy() -> AutoScore:
    return AutoScore(None, Confidence.MANUAL, "Strategic fit requires manual assessment.")


# ---------------------------------------------------------------------------
# All criteria
# ---------------------------------------------------------------------------


def empty_scores() -> dict[str, AutoScore]:
    """One "Awaiting data" score per criterion."""
    return {c.key: empty_score() for c in CRITERIA}


def score_all(
    school: SchoolRecord,
    la: LocalAuthorityRecord | None = None,
    company: CompanyRecord | None = None,
    officers: OfficerList | None = None,
    external: ExternalRating | None = None,
    today: datetime.date | None = None,
) -> dict[str, AutoScore]:
    """Run every criterion scorer, keyed by criterion key."""
    return {
        "commissioning_demand": score_commissioning_demand(la),
        "ofsted_rating": score_ofsted_rating(school, external, today=today),
        "financial_health": score_financial_health(school, company),
        "building_condition": score_building_condition(school),
        "staffing_leadership": score_staffing_leadership(school, officers),
        "legals_compliance": score_legals_compliance(school),
        "location_access": score_location_access(school),
        "reputation": score_reputation(school),
        "synergy": score_synergy(),
    }
