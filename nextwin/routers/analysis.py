# nextwin/routers/analysis.py
"""
Bet Analysis API Router.

Provides endpoints for:
- GET /api/sports - Sports and bet types accepted for analysis
- POST /api/analysis - Model analysis of one match and bet type

Unlike the daily picks, analysis surfaces upstream failures:
503 when the model is not configured, 502 when the call fails.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from nextwin.analysis import BetAnalyzer
from nextwin.dependencies import get_bet_analyzer
from nextwin.model_client import (
    ModelAPIError,
    ModelConfigurationError,
    ModelError,
    ModelUnavailableError,
)
from nextwin.schemas import AnalysisRequest, AnalysisResponse, SportSchema
from nextwin.sports_catalog import SPORTS, find_bet_type, find_sport

router = APIRouter(prefix="/api", tags=["Analysis"])


def _bad_request(detail: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"error": "Invalid analysis request", "detail": detail, "code": code},
    )


def _handle_model_error(e: ModelError) -> HTTPException:
    """Convert model exceptions to HTTP exceptions."""
    if isinstance(e, ModelConfigurationError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Analysis service misconfigured",
                "detail": str(e),
                "code": "SERVICE_MISCONFIGURED",
            },
        )
    if isinstance(e, ModelUnavailableError):
        code = "MODEL_UNAVAILABLE"
    elif isinstance(e, ModelAPIError):
        code = "MODEL_API_ERROR"
    else:
        code = "MODEL_RESPONSE_ERROR"
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "Analysis model error", "detail": str(e), "code": code},
    )


@router.get("/sports", response_model=list[SportSchema])
async def list_sports():
    """Catalog of sports and their bet types."""
    return [sport.to_dict() for sport in SPORTS]


@router.post("/analysis", response_model=AnalysisResponse)
async def analyze_bet(
    request: AnalysisRequest,
    analyzer: BetAnalyzer = Depends(get_bet_analyzer),
):
    """Analyze one bet. Sport and bet type must come from /api/sports."""
    sport = find_sport(request.sport)
    if sport is None:
        raise _bad_request(f"Unknown sport '{request.sport}'", "UNKNOWN_SPORT")
    bet_type = find_bet_type(sport, request.betType)
    if bet_type is None:
        raise _bad_request(
            f"Unknown bet type '{request.betType}' for {sport.key}", "UNKNOWN_BET_TYPE"
        )
    if " vs " not in request.match.lower():
        raise _bad_request("Match must look like 'Team A vs Team B'", "INVALID_MATCH")

    normalized = AnalysisRequest(sport=sport.label, match=request.match, betType=bet_type.label)
    try:
        return await analyzer.analyze(normalized)
    except ModelError as e:
        raise _handle_model_error(e)
