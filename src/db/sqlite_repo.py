from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.db.base import AssessmentRepository
from src.db.models import AssessmentReport, Base, LocalAuthority, School


class SQLiteAssessmentRepository(AssessmentRepository):
    """SQLite-backed implementation of :class:`AssessmentRepository`.

    Uses *aiosqlite* via SQLAlchemy's async engine.
    """

    def __init__(self, sqlite_path: str = "./data/assess.db") -> None:
        url = f"sqlite+aiosqlite:///{sqlite_path}"
        self._engine = create_async_engine(url, echo=False)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        """Expose the underlying async engine (used by the application lifespan)."""
        return self._engine

    async def init_db(self) -> None:
        """Create all tables if they do not already exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # ------------------------------------------------------------------
    # Schools registry
    # ------------------------------------------------------------------

    async def get_school_by_urn(self, urn: str) -> School | None:
        stmt = select(School).where(School.urn == urn)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def search_schools(self, search: str, limit: int = 20) -> list[School]:
        term = search.strip()
        if not term:
            return []
        stmt = (
            select(School)
            .where(or_(School.name.ilike(f"%{term}%"), School.urn == term))
            .order_by(School.name)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Local authorities
    # ------------------------------------------------------------------

    async def get_local_authority_by_name(self, la_name: str) -> LocalAuthority | None:
        stmt = select(LocalAuthority).where(LocalAuthority.la_name == la_name)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def list_local_authorities(self) -> list[str]:
        stmt = select(LocalAuthority.la_name).order_by(LocalAuthority.la_name)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row[0] for row in result.all()]

    # ------------------------------------------------------------------
    # Saved reports
    # ------------------------------------------------------------------

    async def save_report(self, report: AssessmentReport) -> AssessmentReport:
        async with self._session_factory() as session:
            session.add(report)
            await session.commit()
            await session.refresh(report)
            return report

    async def list_reports(self, urn: str | None = None, limit: int = 50) -> list[AssessmentReport]:
        stmt = select(AssessmentReport)
        if urn is not None:
            stmt = stmt.where(AssessmentReport.urn == urn)
        stmt = stmt.order_by(AssessmentReport.created_at.desc(), AssessmentReport.id.desc()).limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_report(self, report_id: int) -> AssessmentReport | None:
        async with self._session_factory() as session:
            return await session.get(AssessmentReport, report_id)
