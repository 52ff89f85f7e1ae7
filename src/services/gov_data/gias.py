"""GIAS (Get Information About Schools) register service.

Downloads the DfE GIAS establishment CSV and parses it with Polars.  Used two
ways:

* :class:`GIASRatingLookup` serves the latest inspection outcome for a URN,
  which the assessment prefers over the registry's own (often stale) copy.
* :meth:`GIASService.import_independent_schools` upserts open independent
  schools into the registry, refreshing register fields while leaving
  assessment fields (vulnerability scores, pillar details, rationale) alone.

Data source: https://get-information-schools.service.gov.uk/Downloads
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import date, timedelta
from pathlib import Path

import polars as pl
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from src.config import get_settings
from src.db.models import Base, School
from src.services.gov_data.base import BaseGovDataService
from src.services.records import ExternalRating

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# GIAS column constants
# ---------------------------------------------------------------------------
COL_URN = "URN"
COL_NAME = "EstablishmentName"
COL_TYPE = "TypeOfEstablishment (name)"
COL_TYPE_GROUP = "EstablishmentTypeGroup (name)"
COL_STATUS = "EstablishmentStatus (name)"
COL_LA = "LA (name)"
COL_TOWN = "Town"
COL_COUNTY = "County (name)"
COL_POSTCODE = "Postcode"
COL_CAPACITY = "SchoolCapacity"
COL_PUPILS = "NumberOfPupils"
COL_BOARDERS = "Boarders (name)"
COL_HEAD_TITLE = "HeadTitle (name)"
COL_HEAD_FIRST = "HeadFirstName"
COL_HEAD_LAST = "HeadLastName"
COL_HEAD_JOB = "HeadPreferredJobTitle"
COL_PROPRIETOR = "PropsName"
COL_INSPECTORATE = "InspectorateName (name)"
COL_OFSTED_RATING = "OfstedRating (name)"
COL_OFSTED_DATE = "OfstedLastInsp"

_INDEPENDENT_TYPE_GROUPS = frozenset({"Independent schools", "Independent special schools"})
_OPEN_STATUSES = frozenset({"Open", "Open, but proposed to close"})
_NOT_APPLICABLE = frozenset({"", "not applicable", "does not apply", "none"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    if value.lower() in _NOT_APPLICABLE:
        return None
    return value


def _safe_int(value: str | None) -> int | None:
    try:
        return int((value or "").strip())
    except ValueError:
        return None


def read_gias_csv(path: Path) -> pl.DataFrame:
    """Read a GIAS CSV as all-string columns, handling its encoding variants."""
    last_exc: Exception | None = None
    for encoding in ("cp1252", "utf-8-sig", "utf-8", "latin-1"):
        try:
            return pl.read_csv(
                path,
                encoding=encoding,
                infer_schema_length=0,
                null_values=[""],
                truncate_ragged_lines=True,
            )
        except (pl.exceptions.ComputeError, UnicodeDecodeError) as exc:
            last_exc = exc
            continue
    raise RuntimeError(f"Could not decode {path} with any known encoding") from last_exc


def _rows(df: pl.DataFrame) -> list[dict[str, str]]:
    return [{k: (v if v is not None else "") for k, v in row.items()} for row in df.iter_rows(named=True)]


def rating_from_row(row: dict[str, str]) -> ExternalRating | None:
    """Extract the inspection outcome from a GIAS row; ``None`` when there is none."""
    rating = _clean(row.get(COL_OFSTED_RATING))
    inspected = _clean(row.get(COL_OFSTED_DATE))
    inspectorate = _clean(row.get(COL_INSPECTORATE))
    if not (rating or inspected):
        return None
    return ExternalRating(rating=rating, last_inspection_date=inspected, inspectorate=inspectorate)


def _is_independent(row: dict[str, str]) -> bool:
    return row.get(COL_TYPE_GROUP, "").strip() in _INDEPENDENT_TYPE_GROUPS


def _row_to_school(row: dict[str, str]) -> School | None:
    """Convert a GIAS CSV row to a School ORM object (register fields only)."""
    if row.get(COL_STATUS, "").strip() not in _OPEN_STATUSES:
        return None
    urn = row.get(COL_URN, "").strip()
    name = row.get(COL_NAME, "").strip()
    if not urn or not name:
        return None

    head = {
        "title": _clean(row.get(COL_HEAD_TITLE)),
        "first_name": _clean(row.get(COL_HEAD_FIRST)),
        "last_name": _clean(row.get(COL_HEAD_LAST)),
        "preferred_job_title": _clean(row.get(COL_HEAD_JOB)),
    }

    return School(
        urn=urn,
        name=name,
        type=_clean(row.get(COL_TYPE)),
        la_name=_clean(row.get(COL_LA)),
        group_name=_clean(row.get(COL_PROPRIETOR)),
        ofsted_rating=_clean(row.get(COL_OFSTED_RATING)),
        last_inspection_date=_clean(row.get(COL_OFSTED_DATE)),
        inspectorate=_clean(row.get(COL_INSPECTORATE)),
        pupil_count=_safe_int(row.get(COL_PUPILS)),
        school_capacity=_safe_int(row.get(COL_CAPACITY)),
        boarders=_clean(row.get(COL_BOARDERS)),
        town=_clean(row.get(COL_TOWN)),
        county=_clean(row.get(COL_COUNTY)),
        postcode=_clean(row.get(COL_POSTCODE)),
        headteacher=head if any(head.values()) else None,
    )


# Fields the register owns; everything else on School belongs to the assessment.
_REGISTER_FIELDS = (
    "name",
    "type",
    "la_name",
    "group_name",
    "ofsted_rating",
    "last_inspection_date",
    "inspectorate",
    "pupil_count",
    "school_capacity",
    "boarders",
    "town",
    "county",
    "postcode",
    "headteacher",
)


# ---------------------------------------------------------------------------
# GIASService
# ---------------------------------------------------------------------------


class GIASService(BaseGovDataService):
    """Fetch and import register data from the GIAS daily CSV.

    Usage::

        service = GIASService()
        stats = service.import_independent_schools(la_name="Kent")
    """

    def __init__(
        self,
        cache_dir: Path | str | None = None,
        cache_ttl_hours: int | None = None,
        **kwargs,
    ) -> None:
        settings = get_settings()
        super().__init__(
            cache_dir=cache_dir or settings.GIAS_CACHE_DIR,
            cache_ttl_hours=cache_ttl_hours or settings.GIAS_CACHE_TTL_HOURS,
            **kwargs,
        )
        self._url_template = settings.GIAS_CSV_URL_TEMPLATE

    def _build_csv_urls(self, today: date | None = None) -> list[str]:
        """Build download URLs for today and yesterday (fallback)."""
        today = today or date.today()
        yesterday = today - timedelta(days=1)
        return [
            self._url_template.format(date=today.strftime("%Y%m%d")),
            self._url_template.format(date=yesterday.strftime("%Y%m%d")),
        ]

    def download_csv(self, force: bool = False) -> Path:
        """Download the latest GIAS CSV (today's extract, else yesterday's)."""
        filename = f"edubasealldata{date.today().strftime('%Y%m%d')}.csv"
        return self.download_with_fallback(self._build_csv_urls(), filename=filename, force=force)

    def load_rows(self, force_download: bool = False) -> list[dict[str, str]]:
        csv_path = self.download_csv(force=force_download)
        self._logger.info("Reading GIAS CSV: %s", csv_path)
        rows = _rows(read_gias_csv(csv_path))
        self._logger.info("Total rows in CSV: %d", len(rows))
        return rows

    def import_independent_schools(
        self,
        la_name: str | None = None,
        force_download: bool = False,
        db_path: str | None = None,
    ) -> dict[str, int]:
        """Download the GIAS CSV and upsert open independent schools.

        Parameters
        ----------
        la_name:
            Restrict the import to one local authority (case-insensitive).
        force_download:
            If True, bypass cache and re-download.
        db_path:
            Override database path. Uses config default if None.

        Returns
        -------
        dict
            Statistics: {inserted, updated, total, skipped}.
        """
        db = db_path or get_settings().SQLITE_PATH
        rows = [r for r in self.load_rows(force_download) if _is_independent(r)]
        if la_name:
            wanted = la_name.lower()
            rows = [r for r in rows if r.get(COL_LA, "").strip().lower() == wanted]
            if not rows:
                raise ValueError(f"No independent schools found for local authority '{la_name}'.")

        schools: list[School] = []
        skipped = 0
        for row in rows:
            school = _row_to_school(row)
            if school is None:
                skipped += 1
            else:
                schools.append(school)

        self._logger.info("Mapped %d schools (%d skipped as closed/invalid)", len(schools), skipped)
        inserted, updated = self._upsert_schools(db, schools)
        return {"inserted": inserted, "updated": updated, "total": inserted + updated, "skipped": skipped}

    def _upsert_schools(self, db_path: str, schools: list[School]) -> tuple[int, int]:
        """Upsert schools by URN, overwriting register fields only."""
        engine = create_engine(f"sqlite:///{db_path}")
        Base.metadata.create_all(engine)

        inserted = 0
        updated = 0
        with Session(engine) as session:
            for school in schools:
                existing = session.scalars(select(School).where(School.urn == school.urn)).first()
                if existing is None:
                    session.add(school)
                    inserted += 1
                    continue
                for attr in _REGISTER_FIELDS:
                    value = getattr(school, attr)
                    if value is not None:
                        setattr(existing, attr, value)
                updated += 1
            session.commit()

        engine.dispose()
        self._logger.info("Inserted %d, updated %d schools", inserted, updated)
        return inserted, updated


# ---------------------------------------------------------------------------
# Rating lookup
# ---------------------------------------------------------------------------


# A failed register download is not retried until this many seconds have passed.
RATING_RETRY_COOLDOWN_SECONDS = 600.0


class GIASRatingLookup:
    """URN -> latest inspection outcome, indexed from the GIAS CSV on first use.

    The download happens lazily, on the first call, from a worker thread
    (the assessment orchestrator runs synchronous collaborators via
    ``asyncio.to_thread``).  If it fails, calls within the cooldown raise
    straight away instead of downloading again.
    """

    def __init__(
        self,
        service: GIASService | None = None,
        rows: list[dict[str, str]] | None = None,
        retry_cooldown: float = RATING_RETRY_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._index: dict[str, ExternalRating] | None = None
        self._retry_cooldown = retry_cooldown
        self._clock = clock
        self._failed_at: float | None = None
        self._lock = threading.Lock()
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")
        if rows is not None:
            self._index = self._build_index(rows)

    @staticmethod
    def _build_index(rows: list[dict[str, str]]) -> dict[str, ExternalRating]:
        index: dict[str, ExternalRating] = {}
        for row in rows:
            urn = row.get(COL_URN, "").strip()
            rating = rating_from_row(row)
            if urn and rating is not None:
                index[urn] = rating
        return index

    def _load(self) -> dict[str, ExternalRating]:
        """Return the index, downloading it if needed.

        Raises:
            RuntimeError: If the register could not be loaded, now or within
                the cooldown after a previous failure.
        """
        with self._lock:
            if self._index is not None:
                return self._index
            if self._failed_at is not None and self._clock() - self._failed_at < self._retry_cooldown:
                raise RuntimeError("GIAS register unavailable; retry pending")
            service = self._service or GIASService()
            try:
                rows = service.load_rows()
            except (RuntimeError, OSError) as exc:
                self._failed_at = self._clock()
                self._logger.warning("GIAS register load failed: %s", exc)
                raise RuntimeError(f"GIAS register unavailable: {exc}") from exc
            self._index = self._build_index(rows)
            self._failed_at = None
            self._logger.info("Indexed %d GIAS inspection outcomes", len(self._index))
            return self._index

    def get_external_rating(self, urn: str) -> ExternalRating | None:
        return self._load().get(str(urn))
