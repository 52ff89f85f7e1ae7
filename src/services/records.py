"""Plain record types consumed by the assessment scorers.

These are constructed from ORM models, cache entries or API dicts so that
the scoring engine doesn't depend on SQLAlchemy or on any one source's
field names.  Every converter tolerates missing or malformed sub-fields:
anything it cannot read becomes ``None``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _safe_number(value: Any) -> int | float | None:
    """Coerce *value* to an int (when integral) or finite float, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _safe_int(value: Any) -> int | None:
    number = _safe_number(value)
    if number is None:
        return None
    return int(number)


def _safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# School registry record
# ---------------------------------------------------------------------------

PILLAR_KEYS: tuple[str, ...] = (
    "pillar1_size",
    "pillar2_liquidity",
    "pillar3_regulatory",
    "pillar4_governance",
    "pillar5_assets",
    "pillar6_boarding",
    "pillar7_resilience",
)


@dataclass(frozen=True)
class Headteacher:
    title: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    job_title: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.title, self.first_name, self.last_name) if p)


@dataclass(frozen=True)
class VulnerabilityScore:
    """The 0-35 composite risk score across seven 0-5 pillars.

    Missing pillar values read as 0, matching how the upstream scoring
    pipeline treats an unflagged pillar.
    """

    total: int | float = 0
    size: int | float = 0
    liquidity: int | float = 0
    regulatory: int | float = 0
    governance: int | float = 0
    assets: int | float = 0
    boarding: int | float = 0
    resilience: int | float = 0
    status: str | None = None
    action: str | None = None


@dataclass(frozen=True)
class SchoolRecord:
    """Flat, immutable view of a registry school used by the scorers."""

    urn: str
    name: str
    school_type: str | None = None
    la_name: str | None = None
    group_name: str | None = None
    company_number: str | None = None
    target_status: str | None = None
    rationale: str | None = None

    ofsted_rating: str | None = None
    last_inspection_date: str | None = None
    inspectorate: str | None = None

    pupil_count: int | None = None
    school_capacity: int | None = None
    boarders: str | None = None

    town: str | None = None
    county: str | None = None
    postcode: str | None = None

    headteacher: Headteacher | None = None
    vulnerability: VulnerabilityScore | None = None
    pillar_details: dict[str, Any] = field(default_factory=dict)

    def pillar(self, name: str) -> dict[str, Any]:
        """Return the detail flags for one pillar (``"pillar3"`` etc.), or ``{}``."""
        return _as_dict(self.pillar_details.get(name))

    @property
    def address(self) -> str:
        return ", ".join(p for p in (self.town, self.county, self.postcode) if p)


def _headteacher_from_dict(d: Any) -> Headteacher | None:
    d = _as_dict(d)
    if not d:
        return None
    return Headteacher(
        title=_safe_str(d.get("title")),
        first_name=_safe_str(d.get("first_name")),
        last_name=_safe_str(d.get("last_name")),
        job_title=_safe_str(d.get("preferred_job_title") or d.get("job_title")),
    )


def vulnerability_from_dict(d: Any) -> VulnerabilityScore | None:
    """Build a :class:`VulnerabilityScore`; ``None`` when no usable data is present.

    An unreadable total is recomputed from the pillars that could be read.
    """
    d = _as_dict(d)
    if not d:
        return None
    readings = [_safe_number(d.get(key)) for key in PILLAR_KEYS]
    total = _safe_number(d.get("total"))
    if total is None:
        if all(r is None for r in readings):
            return None
        total = sum(r for r in readings if r is not None)
    pillars = [r or 0 for r in readings]
    return VulnerabilityScore(
        total=total,
        size=pillars[0],
        liquidity=pillars[1],
        regulatory=pillars[2],
        governance=pillars[3],
        assets=pillars[4],
        boarding=pillars[5],
        resilience=pillars[6],
        status=_safe_str(d.get("status")),
        action=_safe_str(d.get("action")),
    )


def school_record_from_orm(school: Any) -> SchoolRecord:
    """Construct a :class:`SchoolRecord` from an ORM ``School`` instance."""
    return SchoolRecord(
        urn=str(school.urn),
        name=school.name,
        school_type=getattr(school, "type", None),
        la_name=getattr(school, "la_name", None),
        group_name=getattr(school, "group_name", None),
        company_number=getattr(school, "company_number", None),
        target_status=getattr(school, "target_status", None),
        rationale=getattr(school, "rationale", None),
        ofsted_rating=getattr(school, "ofsted_rating", None),
        last_inspection_date=getattr(school, "last_inspection_date", None),
        inspectorate=getattr(school, "inspectorate", None),
        pupil_count=_safe_int(getattr(school, "pupil_count", None)),
        school_capacity=_safe_int(getattr(school, "school_capacity", None)),
        boarders=_safe_str(getattr(school, "boarders", None)),
        town=getattr(school, "town", None),
        county=getattr(school, "county", None),
        postcode=getattr(school, "postcode", None),
        headteacher=_headteacher_from_dict(getattr(school, "headteacher", None)),
        vulnerability=vulnerability_from_dict(getattr(school, "vulnerability_score", None)),
        pillar_details=dict(_as_dict(getattr(school, "pillar_details", None))),
    )


def school_record_from_dict(d: dict[str, Any]) -> SchoolRecord:
    """Construct a :class:`SchoolRecord` from a registry document.

    Accepts both the flat column layout and the nested document layout
    (``metrics`` / ``location`` sub-objects) used by the registry export.
    """
    metrics = _as_dict(d.get("metrics"))
    location = _as_dict(d.get("location"))
    return SchoolRecord(
        urn=str(d.get("urn") or d.get("id") or ""),
        name=str(d.get("name") or ""),
        school_type=_safe_str(d.get("type")),
        la_name=_safe_str(d.get("la_name")),
        group_name=_safe_str(d.get("group_name")),
        company_number=_safe_str(d.get("company_number")),
        target_status=_safe_str(d.get("target_status")),
        rationale=_safe_str(d.get("rationale")),
        ofsted_rating=_safe_str(d.get("ofsted_rating")),
        last_inspection_date=_safe_str(d.get("last_inspection_date")),
        inspectorate=_safe_str(d.get("inspectorate")),
        pupil_count=_safe_int(d.get("pupil_count", metrics.get("pupil_count"))),
        school_capacity=_safe_int(d.get("school_capacity", metrics.get("school_capacity"))),
        boarders=_safe_str(d.get("boarders", metrics.get("boarders"))),
        town=_safe_str(d.get("town", location.get("town"))),
        county=_safe_str(d.get("county", location.get("county"))),
        postcode=_safe_str(d.get("postcode", location.get("postcode"))),
        headteacher=_headteacher_from_dict(d.get("headteacher")),
        vulnerability=vulnerability_from_dict(d.get("vulnerability_score")),
        pillar_details=dict(_as_dict(d.get("pillar_details"))),
    )


# ---------------------------------------------------------------------------
# Local authority
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocalAuthorityRecord:
    la_name: str
    la_id: str | None = None
    total_ehcps: int | None = None
    timeliness_pct: float | None = None
    awaiting_provision: int | None = None
    high_needs_funding: float | None = None
    appeals: int | None = None
    safety_valve_pool: int | None = None  # 1 (fastest commissioning) .. 4


def local_authority_from_orm(la: Any) -> LocalAuthorityRecord:
    return LocalAuthorityRecord(
        la_name=la.la_name,
        la_id=getattr(la, "la_id", None),
        total_ehcps=_safe_int(getattr(la, "total_ehcps", None)),
        timeliness_pct=_safe_number(getattr(la, "timeliness_pct", None)),
        awaiting_provision=_safe_int(getattr(la, "awaiting_provision", None)),
        high_needs_funding=_safe_number(getattr(la, "high_needs_funding", None)),
        appeals=_safe_int(getattr(la, "appeals", None)),
        safety_valve_pool=_safe_int(getattr(la, "safety_valve_pool", None)),
    )


def local_authority_from_dict(d: dict[str, Any]) -> LocalAuthorityRecord:
    """Build from either flat keys or the grouped SEND metrics document.

    The grouped layout is ``metrics.{operational,placements,financial,legal}``
    with the pool under ``safetyValvePool.pool``.
    """
    metrics = _as_dict(d.get("metrics"))
    operational = _as_dict(metrics.get("operational"))
    placements = _as_dict(metrics.get("placements"))
    financial = _as_dict(metrics.get("financial"))
    legal = _as_dict(metrics.get("legal"))
    svp = _as_dict(d.get("safetyValvePool") or d.get("safety_valve"))

    def pick(flat_key: str, group: dict[str, Any], group_key: str) -> Any:
        return d[flat_key] if flat_key in d else group.get(group_key)

    return LocalAuthorityRecord(
        la_name=str(d.get("la_name") or ""),
        la_id=_safe_str(d.get("la_id")),
        total_ehcps=_safe_int(pick("total_ehcps", operational, "total_ehcps")),
        timeliness_pct=_safe_number(pick("timeliness_pct", operational, "timeliness_pct")),
        awaiting_provision=_safe_int(pick("awaiting_provision", placements, "awaiting_provision")),
        high_needs_funding=_safe_number(pick("high_needs_funding", financial, "high_needs_funding")),
        appeals=_safe_int(pick("appeals", legal, "appeals")),
        safety_valve_pool=_safe_int(pick("safety_valve_pool", svp, "pool")),
    )


# ---------------------------------------------------------------------------
# Companies House
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompanyRecord:
    company_name: str | None = None
    company_number: str | None = None
    company_status: str | None = None
    company_type: str | None = None
    date_of_creation: str | None = None
    has_charges: bool = False
    has_insolvency_history: bool = False
    sic_codes: tuple[str, ...] = ()
    registered_office: dict[str, Any] | None = None


@dataclass(frozen=True)
class Officer:
    name: str
    role: str | None = None
    appointed_on: str | None = None
    resigned_on: str | None = None

    @property
    def is_active(self) -> bool:
        return self.resigned_on is None


@dataclass(frozen=True)
class OfficerList:
    items: tuple[Officer, ...] = ()
    total_results: int | None = None

    @property
    def active(self) -> list[Officer]:
        return [o for o in self.items if o.is_active]


def company_from_cache_entry(entry: dict[str, Any]) -> CompanyRecord:
    """Map a Companies House cache entry (see the enrichment job) to a record."""
    sic = entry.get("sic_codes") or []
    return CompanyRecord(
        company_name=_safe_str(entry.get("company_name")),
        company_number=_safe_str(entry.get("company_number")),
        company_status=_safe_str(entry.get("company_status")),
        company_type=_safe_str(entry.get("type") or entry.get("company_type")),
        date_of_creation=_safe_str(entry.get("date_of_creation")),
        has_charges=bool(entry.get("has_charges")),
        has_insolvency_history=bool(entry.get("has_insolvency_history")),
        sic_codes=tuple(str(c) for c in sic) if isinstance(sic, list) else (),
        registered_office=_as_dict(entry.get("registered_office")) or None,
    )


def officers_from_cache_entry(entry: dict[str, Any]) -> OfficerList | None:
    raw = entry.get("officers")
    if not isinstance(raw, list):
        return None
    items = tuple(
        Officer(
            name=str(o.get("name") or ""),
            role=_safe_str(o.get("role") or o.get("officer_role")),
            appointed_on=_safe_str(o.get("appointed") or o.get("appointed_on")),
            resigned_on=_safe_str(o.get("resigned") or o.get("resigned_on")),
        )
        for o in raw
        if isinstance(o, dict)
    )
    total = _safe_int(entry.get("officers_total"))
    return OfficerList(items=items, total_results=total if total is not None else len(items))


# ---------------------------------------------------------------------------
# External inspection rating
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExternalRating:
    rating: str | None = None
    last_inspection_date: str | None = None
    inspectorate: str | None = None
