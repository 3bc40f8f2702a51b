"""
Metrics API Router - generation outcomes and fallback rate.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from nextwin.generation_tracker import get_recent, get_summary

router = APIRouter(
    prefix="/metrics",
    tags=["Metrics"],
)


@router.get("/summary")
async def metrics_summary(
    hours: int = Query(default=24, ge=1, le=168, description="Lookback period in hours"),
):
    """
    Generation summary for the specified period.

    Per endpoint: model-sourced vs fallback counts, fallback rate and
    average latency.
    """
    return get_summary(hours=hours)


@router.get("/recent")
async def recent_generations(
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum records to return"),
    endpoint: Optional[str] = Query(default=None, description="Filter by endpoint name"),
):
    """Recent generation records, newest first."""
    records = get_recent(limit=limit, endpoint=endpoint)
    return {
        "count": len(records),
        "records": [r.to_dict() for r in records],
    }
