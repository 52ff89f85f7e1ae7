from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.assessment import router as assessment_router
from src.api.companies_house import router as companies_house_router
from src.api.forecast import router as forecast_router
from src.api.health import router as health_router
from src.api.local_authorities import router as local_authorities_router
from src.api.reports import router as reports_router
from src.api.schools import router as schools_router
from src.config import get_settings
from src.db.sqlite_repo import SQLiteAssessmentRepository


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Ensure the data directory, SQLite database, and tables exist on startup."""
    settings = get_settings()
    Path(settings.SQLITE_PATH).parent.mkdir(parents=True, exist_ok=True)

    repo = SQLiteAssessmentRepository(settings.SQLITE_PATH)
    await repo.init_db()
    await repo.engine.dispose()

    yield


app = FastAPI(
    title="School Assessment API",
    description="Go/No-Go assessment of prospective school acquisitions",
    version="0.1.0",
    lifespan=lifespan,
)

_settings = get_settings()
_cors_origins = [o.strip() for o in _settings.CORS_ORIGINS.split(",") if o.strip()] if _settings.CORS_ORIGINS else []
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health_router)
app.include_router(schools_router)
app.include_router(local_authorities_router)
app.include_router(assessment_router)
app.include_router(forecast_router)
app.include_router(reports_router)
app.include_router(companies_house_router)


if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=True)
