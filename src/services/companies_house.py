"""Read-only lookup over the pre-built Companies House cache.

The cache is a JSON object keyed by school URN, written by the enrichment
job (``python -m src.services.gov_data enrich-ch``).  It is loaded once on
first use and shared by reference; a missing or unreadable file behaves as
an empty cache, since company data is always optional for an assessment.
"""

from __future__ import annotations

import json
import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any

from src.config import get_settings
from src.services.records import (
    CompanyRecord,
    OfficerList,
    company_from_cache_entry,
    officers_from_cache_entry,
)

logger = logging.getLogger(__name__)


class CompaniesHouseCache:
    """Lazily-loaded mapping of URN -> cached company profile and officers."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._entries: dict[str, dict[str, Any]] | None = None
        self._lock = threading.Lock()
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @classmethod
    def from_entries(cls, entries: dict[str, dict[str, Any]]) -> CompaniesHouseCache:
        """Build a cache over in-memory entries (no file is read)."""
        cache = cls(path="")
        cache._entries = dict(entries)
        return cache

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._entries is not None:
            return self._entries
        with self._lock:
            if self._entries is None:
                self._entries = self._read_file()
        return self._entries

    def _read_file(self) -> dict[str, dict[str, Any]]:
        if not self.path.is_file():
            self._logger.info("No Companies House cache at %s", self.path)
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self._logger.warning("Could not read Companies House cache %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            self._logger.warning("Companies House cache %s is not a JSON object", self.path)
            return {}
        entries = {str(k): v for k, v in data.items() if isinstance(v, dict)}
        self._logger.info("Companies House cache loaded: %d entries", len(entries))
        return entries

    def __len__(self) -> int:
        return len(self._load())

    def get_entry(self, urn: str) -> dict[str, Any] | None:
        return self._load().get(str(urn))

    def get_company_profile(self, urn: str) -> CompanyRecord | None:
        entry = self.get_entry(urn)
        if not entry:
            return None
        return company_from_cache_entry(entry)

    def get_officers(self, urn: str) -> OfficerList | None:
        entry = self.get_entry(urn)
        if not entry:
            return None
        return officers_from_cache_entry(entry)


@lru_cache
def get_companies_house_cache() -> CompaniesHouseCache:
    """Process-wide cache instance, used as a FastAPI dependency."""
    return CompaniesHouseCache(get_settings().CH_CACHE_PATH)
