from __future__ import annotations

import os

from src.db.base import AssessmentRepository
from src.db.sqlite_repo import SQLiteAssessmentRepository


def get_assessment_repository() -> AssessmentRepository:
    """Return the appropriate :class:`AssessmentRepository` implementation.

    The backend is selected by the ``DB_BACKEND`` environment variable:

    * ``"sqlite"`` (default) -- uses :class:`SQLiteAssessmentRepository`
    * ``"postgres"``         -- reserved for a future hosted deployment

    Raises:
        NotImplementedError: If the requested backend is not yet implemented.
    """
    backend = os.environ.get("DB_BACKEND", "sqlite").lower()

    if backend == "sqlite":
        sqlite_path = os.environ.get("SQLITE_PATH", "./data/assess.db")
        return SQLiteAssessmentRepository(sqlite_path)

    if backend == "postgres":
        raise NotImplementedError(
            "PostgreSQL backend is not yet implemented. "
            "Set DB_BACKEND=sqlite or omit the variable to use the default SQLite backend."
        )

    raise ValueError(f"Unknown DB_BACKEND: {backend!r}. Supported values: 'sqlite', 'postgres'.")
