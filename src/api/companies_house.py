"""Companies House relay endpoint.

``GET /api/ch?path=/company/00991413`` forwards to the Companies House API
with the server's key.  Only the allow-listed read-only paths are relayed.
"""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import get_ch_relay, get_ch_throttle
from src.services.ch_proxy import CACHE_CONTROL, CompaniesHouseRelay, RequestThrottle, is_allowed_path

logger = logging.getLogger(__name__)

router = APIRouter(tags=["companies-house"])


@router.get("/api/ch")
async def relay_companies_house(
    request: Request,
    relay: Annotated[CompaniesHouseRelay | None, Depends(get_ch_relay)],
    throttle: Annotated[RequestThrottle, Depends(get_ch_throttle)],
) -> JSONResponse:
    """Relay an allow-listed Companies House API path."""
    path = request.query_params.get("path")
    if not path:
        raise HTTPException(status_code=400, detail="Missing 'path' query parameter")
    if not is_allowed_path(path):
        raise HTTPException(status_code=400, detail="Path not allowed")
    if relay is None:
        raise HTTPException(status_code=503, detail="Companies House API key not configured")
    if not throttle.try_acquire():
        raise HTTPException(status_code=429, detail="Rate limit exceeded")

    params = {k: v for k, v in request.query_params.items() if k != "path"}
    try:
        upstream = await relay.forward(path, params)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.error("Companies House relay error for %s: %s", path, exc)
        raise HTTPException(status_code=502, detail="Proxy request failed") from exc

    return JSONResponse(
        status_code=upstream.status_code,
        content=upstream.body,
        headers={"Cache-Control": CACHE_CONTROL},
    )
