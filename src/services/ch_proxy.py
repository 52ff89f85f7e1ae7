"""Companies House relay.

Forwards a small allow-list of read-only Companies House API paths with the
server-held API key attached, so that browsers never see the key.  Requests
are counted in fixed windows and refused once the window's quota is spent.
"""

from __future__ import annotations

import base64
import logging
import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

SAFE_PATHS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^/company/[A-Z0-9]+$", re.IGNORECASE),
    re.compile(r"^/company/[A-Z0-9]+/officers$", re.IGNORECASE),
    re.compile(r"^/company/[A-Z0-9]+/filing-history$", re.IGNORECASE),
    re.compile(r"^/company/[A-Z0-9]+/charges$", re.IGNORECASE),
    re.compile(r"^/search/companies$", re.IGNORECASE),
)

CACHE_CONTROL = "public, max-age=86400"
_HTTP_TIMEOUT = 30.0


def is_allowed_path(path: str) -> bool:
    return any(p.fullmatch(path) for p in SAFE_PATHS)


def basic_auth_header(api_key: str) -> str:
    """Companies House uses the API key as the Basic-auth username with no password."""
    token = base64.b64encode(f"{api_key}:".encode()).decode("ascii")
    return f"Basic {token}"


class RequestThrottle:
    """Fixed-window request counter.

    At most *max_requests* are admitted per *window_seconds*; the count
    resets when a request arrives after the current window has ended.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._window_start = clock()
        self._count = 0

    def try_acquire(self) -> bool:
        """Count a request; ``False`` if the window's quota is already spent."""
        now = self._clock()
        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._count = 0
        if self._count >= self.max_requests:
            return False
        self._count += 1
        return True

    @property
    def count(self) -> int:
        return self._count


@dataclass(frozen=True)
class RelayResponse:
    status_code: int
    body: Any


class CompaniesHouseRelay:
    """Forward allow-listed paths to the Companies House API.

    The caller is responsible for checking :func:`is_allowed_path` and the
    throttle before calling :meth:`forward`.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    async def forward(self, path: str, params: Mapping[str, str] | None = None) -> RelayResponse:
        """GET *path* upstream and return its status and decoded JSON body.

        Raises:
            httpx.HTTPError: On transport failure.
            ValueError: If the upstream body is not JSON.
        """
        headers = {
            "Authorization": basic_auth_header(self._api_key),
            "Accept": "application/json",
        }
        async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT, transport=self._transport) as client:
            response = await client.get(f"{self._base_url}{path}", params=dict(params or {}), headers=headers)
        self._logger.debug("Companies House %s -> %d", path, response.status_code)
        return RelayResponse(status_code=response.status_code, body=response.json())
