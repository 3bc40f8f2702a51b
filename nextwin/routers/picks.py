# nextwin/routers/picks.py
"""
Daily Picks API Router.

GET /api/daily-picks always answers 200 with nine picks. Whether they came
from the model or the fallback table is not part of the response.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from nextwin.dependencies import get_picks_generator
from nextwin.picks import PicksGenerator
from nextwin.schemas import PicksResponse

router = APIRouter(prefix="/api", tags=["Daily Picks"])


@router.get("/daily-picks", response_model=PicksResponse)
async def daily_picks(generator: PicksGenerator = Depends(get_picks_generator)):
    """Nine picks for today: three football, three basketball, three tennis."""
    return await generator.generate_daily_picks()
