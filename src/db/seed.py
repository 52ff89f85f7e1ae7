"""Seed the assessment database from a registry JSON export.

The export is a JSON object with two lists::

    {
      "schools": [{"urn": "...", "name": "...", "metrics": {...}, "location": {...},
                   "vulnerability_score": {...}, "pillar_details": {...}, ...}],
      "local_authorities": [{"la_name": "...", "metrics": {...}, "safetyValvePool": {"pool": 2}}]
    }

Both the flat column layout and the nested document layout are accepted.
Records are upserted by URN / LA name.

Usage::

    python -m src.db.seed data/registry.json
    python -m src.db.seed data/registry.json --db ./data/assess.db
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from src.config import get_settings
from src.db.models import Base, LocalAuthority, School
from src.services.records import local_authority_from_dict, school_record_from_dict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def _as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) and value else None


def school_from_doc(doc: dict[str, Any]) -> School | None:
    """Map a registry document to a School ORM object; ``None`` without URN or name."""
    record = school_record_from_dict(doc)
    if not record.urn or not record.name:
        return None
    location = doc.get("location") if isinstance(doc.get("location"), dict) else {}
    return School(
        urn=record.urn,
        name=record.name,
        type=record.school_type,
        la_name=record.la_name,
        group_name=record.group_name,
        company_number=record.company_number,
        target_status=record.target_status,
        rationale=record.rationale,
        ofsted_rating=record.ofsted_rating,
        last_inspection_date=record.last_inspection_date,
        inspectorate=record.inspectorate,
        pupil_count=record.pupil_count,
        school_capacity=record.school_capacity,
        boarders=record.boarders,
        town=record.town,
        county=record.county,
        postcode=record.postcode,
        lat=doc.get("lat", location.get("lat")),
        lng=doc.get("lng", location.get("lng")),
        headteacher=_as_dict(doc.get("headteacher")),
        vulnerability_score=_as_dict(doc.get("vulnerability_score")),
        pillar_details=_as_dict(doc.get("pillar_details")),
    )


def local_authority_from_doc(doc: dict[str, Any]) -> LocalAuthority | None:
    record = local_authority_from_dict(doc)
    if not record.la_name:
        return None
    return LocalAuthority(
        la_name=record.la_name,
        la_id=record.la_id,
        total_ehcps=record.total_ehcps,
        timeliness_pct=record.timeliness_pct,
        awaiting_provision=record.awaiting_provision,
        high_needs_funding=record.high_needs_funding,
        appeals=record.appeals,
        safety_valve_pool=record.safety_valve_pool,
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

_SCHOOL_COLUMNS = [c.key for c in School.__table__.columns if c.key not in ("id", "urn")]
_LA_COLUMNS = [c.key for c in LocalAuthority.__table__.columns if c.key not in ("id", "la_name")]


def _copy(target: Any, source: Any, columns: list[str]) -> None:
    for column in columns:
        setattr(target, column, getattr(source, column))


def upsert_registry(session: Session, schools: list[School], las: list[LocalAuthority]) -> dict[str, int]:
    """Upsert schools by URN and local authorities by name."""
    stats = {"schools_inserted": 0, "schools_updated": 0, "las_inserted": 0, "las_updated": 0}

    for school in schools:
        existing = session.scalars(select(School).where(School.urn == school.urn)).first()
        if existing is None:
            session.add(school)
            stats["schools_inserted"] += 1
        else:
            _copy(existing, school, _SCHOOL_COLUMNS)
            stats["schools_updated"] += 1

    for la in las:
        existing_la = session.scalars(select(LocalAuthority).where(LocalAuthority.la_name == la.la_name)).first()
        if existing_la is None:
            session.add(la)
            stats["las_inserted"] += 1
        else:
            _copy(existing_la, la, _LA_COLUMNS)
            stats["las_updated"] += 1

    session.commit()
    return stats


def seed_from_file(path: Path, db_path: str) -> dict[str, int]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object with 'schools' and 'local_authorities' lists")

    schools = [s for s in (school_from_doc(d) for d in payload.get("schools", []) if isinstance(d, dict)) if s]
    las = [
        la
        for la in (local_authority_from_doc(d) for d in payload.get("local_authorities", []) if isinstance(d, dict))
        if la
    ]
    logger.info("Read %d schools and %d local authorities from %s", len(schools), len(las), path)

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    try:
        with Session(engine) as session:
            return upsert_registry(session, schools, las)
    finally:
        engine.dispose()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m src.db.seed",
        description="Seed the assessment database from a registry JSON export.",
    )
    parser.add_argument("source", type=Path, help="Path to the registry JSON export.")
    parser.add_argument("--db", default=None, help="Database path (default: SQLITE_PATH setting).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    args = parse_args(argv)
    db_path = args.db or get_settings().SQLITE_PATH

    try:
        stats = seed_from_file(args.source, db_path)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Seeded {db_path}")
    for key, value in stats.items():
        print(f"  {key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
