from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.schemas.assessment import ForecastRequest, ForecastResponse
from src.services.forecast import ForecastResult, LAInCatchment, calculate_forecast

router = APIRouter(tags=["forecast"])


def run_forecast(body: ForecastRequest) -> ForecastResult:
    """Run the forecast for a request; the total defaults to the sum of the LAs' unplaced counts.

    Raises:
        ValueError: If the capacity list is invalid.
    """
    las = [LAInCatchment(la_name=la.la_name, pool=la.pool, unplaced=la.unplaced) for la in body.las]
    total = body.total_unplaced if body.total_unplaced is not None else sum(la.unplaced for la in las)
    return calculate_forecast(total, las, body.capacities)


@router.post("/api/forecast", response_model=ForecastResponse)
async def forecast(body: ForecastRequest) -> ForecastResponse:
    """Project commissioning demand against candidate capacities."""
    try:
        result = run_forecast(body)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ForecastResponse(**result.to_dict())
