from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    DB_BACKEND: str = "sqlite"
    SQLITE_PATH: str = "./data/assess.db"
    CORS_ORIGINS: str = ""  # Comma-separated origins, empty = same-origin only

    # Companies House
    CH_API_BASE: str = "https://api.company-information.service.gov.uk"
    CH_API_KEY: str | None = None  # Required by the relay and the enrichment job
    CH_CACHE_PATH: str = "./data/ch-cache.json"
    CH_PROXY_MAX_REQUESTS: int = 500  # per window
    CH_PROXY_WINDOW_SECONDS: float = 60.0

    # GIAS register (external Ofsted rating lookup)
    GIAS_CSV_URL_TEMPLATE: str = (
        "https://ea-edubase-api-prod.azurewebsites.net/edubase/downloads/public/edubasealldata{date}.csv"
    )
    GIAS_CACHE_DIR: str = "./data/cache/gias"
    GIAS_CACHE_TTL_HOURS: int = 24
    GIAS_LOOKUP_ENABLED: bool = False  # Download-on-demand is slow; opt in

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
