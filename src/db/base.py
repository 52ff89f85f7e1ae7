from __future__ import annotations

from abc import ABC, abstractmethod

from src.db.models import AssessmentReport, LocalAuthority, School


class AssessmentRepository(ABC):
    """Abstract interface for all registry and report data access."""

    # ------------------------------------------------------------------
    # Schools registry
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_school_by_urn(self, urn: str) -> School | None:
        """Return a single school by URN, or ``None`` if not found."""
        ...

    @abstractmethod
    async def search_schools(self, search: str, limit: int = 20) -> list[School]:
        """Return schools whose name contains *search* (case-insensitive) or whose URN equals it."""
        ...

    # ------------------------------------------------------------------
    # Local authorities
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_local_authority_by_name(self, la_name: str) -> LocalAuthority | None:
        """Return the local authority with exactly this name, or ``None``."""
        ...

    @abstractmethod
    async def list_local_authorities(self) -> list[str]:
        """Return a sorted list of local authority names."""
        ...

    # ------------------------------------------------------------------
    # Saved reports
    # ------------------------------------------------------------------

    @abstractmethod
    async def save_report(self, report: AssessmentReport) -> AssessmentReport:
        """Persist a report and return it with its primary key populated."""
        ...

    @abstractmethod
    async def list_reports(self, urn: str | None = None, limit: int = 50) -> list[AssessmentReport]:
        """Return saved reports, newest first, optionally for a single URN."""
        ...

    @abstractmethod
    async def get_report(self, report_id: int) -> AssessmentReport | None:
        """Return a saved report by primary key, or ``None``."""
        ...
