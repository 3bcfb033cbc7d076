# -*- coding: utf-8 -*-
"""
Report Ingestion Router
=======================
Appends driver/rider occupancy reports to the report store.
The timestamp is always assigned server-side.
"""
import asyncio
import logging

from fastapi import APIRouter, HTTPException

from api.dependencies import registry
from api.schemas import ReportRequest, ReportResponse
from src.store import Report, StoreUnavailableError
from src.utils import format_instant, utcnow

router = APIRouter()


@router.post(
    "/report",
    response_model=ReportResponse,
    summary="혼잡도 리포트 제출",
    description="Stores one crowd report (level 1-4) from a driver or rider for a route/stop, "
    "optionally tagged with the bus id and an observed headcount.",
    response_description="저장 시각 (UTC)",
)
async def submit_report(req: ReportRequest):
    """Store a crowd report."""
    store = registry.get_store()
    report = Report(
        route=req.route,
        stop=req.stop,
        source=req.source,
        level=req.level,
        timestamp=utcnow(),
        bus_id=req.bus_id,
        headcount=req.headcount,
    )
    try:
        await asyncio.to_thread(store.append, report)
    except StoreUnavailableError as e:
        logging.error(f"Report write failed: {e}")
        raise HTTPException(status_code=503, detail="Report store unavailable")

    return ReportResponse(ok=True, saved_at=format_instant(report.timestamp))
