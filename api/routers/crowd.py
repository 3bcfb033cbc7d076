import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import CrowdNowResponse
from src.utils import parse_instant

router = APIRouter()


@router.get(
    "/crowd/now",
    response_model=CrowdNowResponse,
    summary="현재 혼잡도 추정",
    description="Fuses the weekday history of a route/stop with the reports of the last "
    "`win` minutes (driver reports weigh more, older reports decay, outliers are "
    "down-weighted) into a crowd level, headcount estimate, 68% interval and confidence label.",
    response_description="level, est_headcount, headcount_ci68, remaining_capacity, confidence, counts, prior",
)
async def crowd_now(
    route: str = Query(..., min_length=1, max_length=40),
    stop: str = Query(..., min_length=1, max_length=40),
    bus_id: Optional[str] = Query(None, max_length=20),
    win: Optional[float] = Query(None, gt=0, le=180, description="window in minutes"),
    at: Optional[str] = Query(None, description="ISO-8601 instant or epoch milliseconds"),
):
    estimator = registry.get_estimator()

    reference = None
    if at is not None:
        try:
            reference = parse_instant(at)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid 'at' instant: {at}")

    try:
        result = await estimator.estimate(
            route, stop, at=reference, window_min=win, bus_id=bus_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logging.error(f"Crowd estimate failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Crowd estimate failed")

    return CrowdNowResponse(**result.to_dict())
