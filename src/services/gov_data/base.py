"""Shared base class for government data services.

Provides HTTP GETs with retry and backoff, plus disk caching with a TTL for
bulk downloads.  Used by the GIAS register service and the Companies House
enrichment job.
"""

from __future__ import annotations

import hashlib
import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_CACHE_DIR = Path("./data/cache/gov_data")
_HTTP_TIMEOUT = 120.0
_MAX_RETRIES = 3
_BACKOFF_BASE = 2.0
_USER_AGENT = "SchoolAssess/0.1 (Acquisition due diligence)"


class BaseGovDataService:
    """Base class for government data fetching services.

    Parameters
    ----------
    cache_dir:
        Directory for cached downloads.
    cache_ttl_hours:
        How many hours a cached file remains valid before re-downloading.
    transport:
        Optional httpx transport, mainly for tests.
    sleep:
        Called with the backoff delay between retries.
    """

    def __init__(
        self,
        cache_dir: Path | str = _DEFAULT_CACHE_DIR,
        cache_ttl_hours: int = 24,
        transport: httpx.BaseTransport | None = None,
        sleep=time.sleep,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_ttl = timedelta(hours=cache_ttl_hours)
        self._transport = transport
        self._sleep = sleep
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def _client(self, **kwargs: Any) -> httpx.Client:
        headers = {"User-Agent": _USER_AGENT, **kwargs.pop("headers", {})}
        return httpx.Client(
            timeout=_HTTP_TIMEOUT,
            follow_redirects=True,
            headers=headers,
            transport=self._transport,
            **kwargs,
        )

    def _get_with_retry(self, client: httpx.Client, url: str, **kwargs: Any) -> httpx.Response:
        """GET *url*, retrying transport errors and 5xx responses with exponential backoff.

        4xx responses are returned to the caller without retrying.
        """
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                response = client.get(url, **kwargs)
                if response.status_code >= 500:
                    response.raise_for_status()
                return response
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                last_exc = exc
                backoff = _BACKOFF_BASE**attempt
                self._logger.warning(
                    "Request failed (attempt %d/%d): %s - retrying in %.1fs",
                    attempt + 1,
                    _MAX_RETRIES,
                    exc,
                    backoff,
                )
                self._sleep(backoff)

        msg = f"Failed to fetch {url} after {_MAX_RETRIES} attempts"
        self._logger.error(msg)
        raise RuntimeError(msg) from last_exc

    def download(
        self,
        url: str,
        filename: str | None = None,
        force: bool = False,
    ) -> Path:
        """Download a file, using the cache if available and fresh.

        Parameters
        ----------
        url:
            URL to download.
        filename:
            Optional filename for the cached file. If not provided, a hash
            of the URL is used.
        force:
            If True, bypass the cache and always re-download.

        Returns
        -------
        Path
            Path to the downloaded (or cached) file.
        """
        if filename is None:
            url_hash = hashlib.sha256(url.encode()).hexdigest()[:16]
            filename = f"{url_hash}.dat"

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        cache_path = self.cache_dir / filename

        if not force and self._is_cache_fresh(cache_path):
            self._logger.info("Using cached file: %s", cache_path)
            return cache_path

        self._logger.info("Downloading %s ...", url)
        with self._client() as client:
            response = self._get_with_retry(client, url)
            response.raise_for_status()

        cache_path.write_bytes(response.content)
        self._logger.info("Downloaded %.1f MB -> %s", len(response.content) / 1_048_576, cache_path)
        return cache_path

    def download_with_fallback(
        self,
        urls: list[str],
        filename: str | None = None,
        force: bool = False,
    ) -> Path:
        """Try downloading from multiple URLs, returning the first success.

        Raises
        ------
        RuntimeError
            If all URLs fail.
        """
        last_exc: Exception | None = None
        for url in urls:
            try:
                return self.download(url, filename=filename, force=force)
            except (RuntimeError, httpx.HTTPError) as exc:
                self._logger.warning("URL failed: %s (%s)", url, exc)
                last_exc = exc

        msg = f"All {len(urls)} download URLs failed"
        raise RuntimeError(msg) from last_exc

    def _is_cache_fresh(self, path: Path) -> bool:
        """Check if a cached file exists and is within the TTL."""
        if not path.exists():
            return False
        mtime = datetime.fromtimestamp(path.stat().st_mtime)
        return datetime.now() - mtime < self.cache_ttl
