# nextwin/schemas.py
"""
Pydantic schemas for the picks and analysis API.

Field names are camelCase to match what the front end already reads.
"""
from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

from nextwin.fixtures import PICKS_TOTAL, Sport

RiskLevel = Literal["Low", "Medium", "High"]


# =============================================================================
# Daily Picks
# =============================================================================


class Pick(BaseModel):
    """One betting suggestion."""
    sport: Sport
    match: str
    betType: str
    probability: str  # percentage string, e.g. "72%"
    matchDate: str
    matchTime: str


class PicksResponse(BaseModel):
    """Daily picks envelope. Always exactly PICKS_TOTAL picks."""
    generatedAt: str
    picks: List[Pick] = Field(min_length=PICKS_TOTAL, max_length=PICKS_TOTAL)


# =============================================================================
# Bet Analysis
# =============================================================================


class AnalysisRequest(BaseModel):
    """Request for an analysis of one match and bet type."""
    sport: str = Field(..., min_length=1, max_length=32)
    match: str = Field(..., min_length=3, max_length=200, description="'Team A vs Team B'")
    betType: str = Field(..., min_length=1, max_length=64)

    @field_validator("sport", "match", "betType")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class GroundingSource(BaseModel):
    """A web page the model cited."""
    title: str
    uri: str


class AnalysisResponse(BaseModel):
    """Structured analysis report."""
    detailedAnalysis: str
    successProbability: str
    riskAssessment: RiskLevel
    aiOpinion: str
    matchDate: str
    matchTime: str
    sources: List[GroundingSource] = Field(default_factory=list)


# =============================================================================
# Sport Catalog
# =============================================================================


class BetTypeSchema(BaseModel):
    key: str
    label: str


class SportSchema(BaseModel):
    key: str
    label: str
    betTypes: List[BetTypeSchema]
