from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Async-compatible declarative base for all ORM models."""


class School(Base):
    """Registry record for an independent school under assessment."""

    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urn: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    la_name: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    group_name: Mapped[str | None] = mapped_column(String(255), nullable=True)  # proprietor / group
    company_number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    target_status: Mapped[str | None] = mapped_column(String(30), nullable=True)  # TARGET / WATCHLIST / ...
    rationale: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Registry copy of the latest inspection outcome
    ofsted_rating: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_inspection_date: Mapped[str | None] = mapped_column(String(20), nullable=True)  # raw register text
    inspectorate: Mapped[str | None] = mapped_column(String(50), nullable=True)

    pupil_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    school_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    boarders: Mapped[str | None] = mapped_column(String(50), nullable=True)

    town: Mapped[str | None] = mapped_column(String(100), nullable=True)
    county: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postcode: Mapped[str | None] = mapped_column(String(10), nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Nested documents: {title, first_name, last_name, preferred_job_title}
    headteacher: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # {total, pillar1_size .. pillar7_resilience, status, action}
    vulnerability_score: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # Free-form per-pillar flags, e.g. {"pillar3": {"no_ofsted_data": {...}}}
    pillar_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<School(urn={self.urn!r}, name={self.name!r}, la_name={self.la_name!r})>"


class LocalAuthority(Base):
    """SEND metrics for a local authority, plus its safety valve pool."""

    __tablename__ = "local_authorities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    la_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    la_id: Mapped[str | None] = mapped_column(String(20), nullable=True)  # ONS or DfE code

    # operational
    total_ehcps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timeliness_pct: Mapped[float | None] = mapped_column(Float, nullable=True)  # EHCPs issued within 20 weeks
    # placements
    awaiting_provision: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # financial
    high_needs_funding: Mapped[float | None] = mapped_column(Float, nullable=True)  # GBP
    # legal
    appeals: Mapped[int | None] = mapped_column(Integer, nullable=True)

    safety_valve_pool: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1 (fastest) .. 4

    def __repr__(self) -> str:
        return f"<LocalAuthority(la_name={self.la_name!r}, pool={self.safety_valve_pool})>"


class AssessmentReport(Base):
    """A saved Go/No-Go assessment, including the generated markdown summary."""

    __tablename__ = "assessment_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urn: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    school_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)

    decision: Mapped[str] = mapped_column(String(20), nullable=False)  # GO / INVESTIGATE / AVOID
    percentage: Mapped[float] = mapped_column(Float, nullable=False)

    score: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    auto_scores: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    overrides: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    la_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    company_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    forecast: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    markdown: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<AssessmentReport(id={self.id}, urn={self.urn!r}, decision={self.decision!r})>"
