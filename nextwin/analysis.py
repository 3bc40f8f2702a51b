# nextwin/analysis.py
"""
Single-match bet analysis.

Asks the model (with web search grounding when enabled) for a report on
one match and bet type. A reply that is not JSON, or lacks fields, is
filled in with defaults. Errors reaching the model service propagate as
ModelError so the router can answer 503/502.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from nextwin import generation_tracker
from nextwin.localtime import DisplayZone, format_date
from nextwin.model_client import ModelError, extract_json
from nextwin.schemas import AnalysisRequest, AnalysisResponse, GroundingSource

logger = logging.getLogger(__name__)

TRACKER_ENDPOINT = "analysis"

DEFAULT_ANALYSIS = "Analysis unavailable for now."
DEFAULT_PROBABILITY = "0%"
DEFAULT_RISK = "High"
DEFAULT_OPINION = "The AI could not give a precise opinion."
DEFAULT_TIME = "--:--"
DEFAULT_SOURCE_TITLE = "Web source"
RISK_LEVELS = ("Low", "Medium", "High")

SYSTEM_INSTRUCTION = (
    "You are a professional sports analyst. Your reports rely on facts checked "
    "by web search. Use the requested local time. Answer in pure JSON."
)


def _text_field(data: dict, name: str, default: str) -> str:
    value = data.get(name)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _normalize_risk(value: Any) -> str:
    if isinstance(value, str):
        for level in RISK_LEVELS:
            if value.strip().lower() == level.lower():
                return level
    return DEFAULT_RISK


class BetAnalyzer:
    """Builds the analysis prompt and shapes the model reply."""

    def __init__(
        self,
        client,
        zone: Optional[DisplayZone] = None,
        use_search: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.zone = zone or DisplayZone()
        self.use_search = use_search
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_prompt(self, request: AnalysisRequest) -> str:
        today = format_date(self._clock(), self.zone)
        return (
            f"Research the match {request.match} ({request.sport}) for the bet "
            f"'{request.betType}'. Check probable line-ups, late injuries and "
            f"conditions for {today}.\n"
            f"Give the match date and time in {self.zone.timezone} local time.\n\n"
            "Answer ONLY with this JSON object:\n"
            "{\n"
            '  "detailedAnalysis": "In-depth technical analysis...",\n'
            '  "successProbability": "72%",\n'
            '  "riskAssessment": "Low | Medium | High",\n'
            '  "aiOpinion": "Strategic summary for the bettor...",\n'
            '  "matchDate": "match date",\n'
            '  "matchTime": "HH:MM"\n'
            "}"
        )

    def shape_response(self, text: str, sources=()) -> AnalysisResponse:
        """Fill an AnalysisResponse from a reply, defaulting each missing field."""
        try:
            data = extract_json(text, expect=dict)
        except ValueError:
            logger.warning("Analysis: model reply is not JSON, using defaults")
            data = {}
        if not isinstance(data, dict):
            data = {}

        return AnalysisResponse(
            detailedAnalysis=_text_field(data, "detailedAnalysis", DEFAULT_ANALYSIS),
            successProbability=_text_field(data, "successProbability", DEFAULT_PROBABILITY),
            riskAssessment=_normalize_risk(data.get("riskAssessment")),
            aiOpinion=_text_field(data, "aiOpinion", DEFAULT_OPINION),
            matchDate=_text_field(data, "matchDate", format_date(self._clock(), self.zone)),
            matchTime=_text_field(data, "matchTime", DEFAULT_TIME),
            sources=[
                GroundingSource(title=title or DEFAULT_SOURCE_TITLE, uri=uri)
                for title, uri in sources
                if uri
            ],
        )

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        """
        Analyze one bet.

        Raises:
            ModelError: If the model service is unconfigured or fails
        """
        started = time.perf_counter()
        try:
            completion = await self.client.generate(
                self.build_prompt(request),
                system_instruction=SYSTEM_INSTRUCTION,
                use_search=self.use_search,
            )
        except ModelError as e:
            generation_tracker.record_generation(
                endpoint=TRACKER_ENDPOINT,
                outcome=generation_tracker.OUTCOME_ERROR,
                model=getattr(self.client, "model", None),
                latency_ms=(time.perf_counter() - started) * 1000,
                reason=type(e).__name__,
            )
            logger.error(f"Analysis failed for '{request.match}': {e}")
            raise

        response = self.shape_response(completion.text, completion.sources)
        generation_tracker.record_generation(
            endpoint=TRACKER_ENDPOINT,
            outcome=generation_tracker.OUTCOME_MODEL,
            model=getattr(self.client, "model", None),
            latency_ms=(time.perf_counter() - started) * 1000,
            metadata={"sources": len(response.sources)},
        )
        return response
