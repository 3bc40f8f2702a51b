# nextwin/picks.py
"""
Daily Picks Generator.

Asks the model for nine picks (three per sport) grounded in the fixture
table and validates the reply. Any failure, from a refused connection to
a reply with seven entries, yields the fallback list built from the same
table. Callers always get a complete PicksResponse; the outcome kind is
only visible internally, in logs and in the generation tracker.
"""
from __future__ import annotations

import logging
import re
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from nextwin import generation_tracker
from nextwin.fixtures import (
    DEFAULT_FIXTURES,
    PICKS_PER_SPORT,
    PICKS_TOTAL,
    MatchFixture,
    Sport,
    validate_fixture_table,
)
from nextwin.localtime import DisplayZone, format_date, format_timestamp, to_display
from nextwin.model_client import (
    ModelAPIError,
    ModelConfigurationError,
    ModelError,
    ModelUnavailableError,
    extract_json,
)
from nextwin.schemas import Pick, PicksResponse

logger = logging.getLogger(__name__)

TRACKER_ENDPOINT = "daily-picks"

PICK_FIELDS = ("sport", "match", "betType", "probability", "matchDate", "matchTime")
SAFE_MARKETS = ("match winner", "double chance", "over/under on points")
RISKY_MARKETS = ("exact score", "first or anytime scorer", "handicap", "combo / accumulator")

_PROBABILITY_RE = re.compile(r"^\s*(\d{1,3}(?:[.,]\d+)?)\s*%\s*$")

SYSTEM_INSTRUCTION = (
    "You are the NextWin sports analyst. You only suggest bets on the matches "
    "you are given and you answer with pure JSON, no text before or after."
)


# =============================================================================
# Errors
# =============================================================================


class PicksGenerationError(Exception):
    """Base exception for a rejected model reply."""
    pass


class MalformedOutputError(PicksGenerationError):
    """The model reply is not valid JSON."""
    pass


class ContractViolationError(PicksGenerationError):
    """The model reply is JSON but not nine conforming picks."""
    pass


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class ModelSourced:
    """Picks produced by the model and accepted by validation."""
    picks: Tuple[Pick, ...]
    kind: str = field(default=generation_tracker.OUTCOME_MODEL, init=False)


@dataclass(frozen=True)
class Fallback:
    """Picks computed from the fixture table."""
    picks: Tuple[Pick, ...]
    reason: str
    kind: str = field(default=generation_tracker.OUTCOME_FALLBACK, init=False)


PicksOutcome = Union[ModelSourced, Fallback]


# =============================================================================
# Settings
# =============================================================================


def parse_probability(value: Any) -> Optional[float]:
    """'72%' -> 72.0. Returns None for anything that is not a percentage string."""
    if not isinstance(value, str):
        return None
    match = _PROBABILITY_RE.match(value)
    if not match:
        return None
    number = float(match.group(1).replace(",", "."))
    if number > 100:
        return None
    return number


@dataclass(frozen=True)
class PicksSettings:
    """Everything the generator needs besides the model client."""

    fixtures: Tuple[MatchFixture, ...] = DEFAULT_FIXTURES
    zone: DisplayZone = field(default_factory=DisplayZone)
    fallback_bet_type: str = "match winner"
    fallback_probability: str = "72%"
    min_probability: float = 70.0

    def __post_init__(self):
        object.__setattr__(self, "fixtures", validate_fixture_table(self.fixtures))
        self.zone.tzinfo  # unknown timezone names fail here, not mid-request
        probability = parse_probability(self.fallback_probability)
        if probability is None or probability < self.min_probability:
            raise ValueError(
                f"fallback probability {self.fallback_probability!r} must be a "
                f"percentage >= {self.min_probability:g}%"
            )


# =============================================================================
# Generator
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PicksGenerator:
    """
    Produces the daily picks.

    Args:
        client: object with `async generate(prompt, system_instruction=None,
                use_search=False)` returning a completion with `.text`
        settings: fixture table, display zone and fallback values
        clock: returns the current aware instant (for generatedAt)
    """

    def __init__(
        self,
        client,
        settings: Optional[PicksSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.settings = settings or PicksSettings()
        self._clock = clock or _utcnow

    # -------------------------------------------------------------------------
    # Prompt
    # -------------------------------------------------------------------------

    def build_prompt(self, fixtures: Optional[Iterable[MatchFixture]] = None) -> str:
        fixtures = tuple(fixtures) if fixtures is not None else self.settings.fixtures
        zone = self.settings.zone
        today = format_date(self._clock(), zone)

        lines = []
        for fixture in fixtures:
            match_date, match_time = to_display(fixture.kickoff_utc, zone)
            lines.append(f"- {fixture.sport.value} | {fixture.match} | {match_date} {match_time}")
        fixture_block = "\n".join(lines)

        return (
            f"Today is {today}. Using ONLY the upcoming matches listed below, give exactly "
            f"{PICKS_TOTAL} betting picks: {PICKS_PER_SPORT} football, "
            f"{PICKS_PER_SPORT} basketball and {PICKS_PER_SPORT} tennis.\n"
            f"Allowed markets (safe bets only): {', '.join(SAFE_MARKETS)}.\n"
            f"Forbidden markets: {', '.join(RISKY_MARKETS)}.\n"
            f"Every pick must have an estimated probability of at least "
            f"{self.settings.min_probability:g}%.\n"
            f"Dates and times are local to {zone.timezone}; copy them from the list.\n\n"
            f"Matches (sport | match | date time):\n{fixture_block}\n\n"
            "Answer with a strictly valid JSON array and nothing else. Each element:\n"
            '{"sport": "football|basketball|tennis", "match": "Team A vs Team B", '
            '"betType": "match winner", "probability": "74%", '
            '"matchDate": "' + today + '", "matchTime": "21:00"}'
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def parse_model_picks(self, text: str) -> Tuple[Pick, ...]:
        """
        Validate a model reply into exactly PICKS_TOTAL picks.

        Raises:
            MalformedOutputError: reply is not JSON
            ContractViolationError: wrong shape, count, field, sport or probability
        """
        try:
            data = extract_json(text)
        except ValueError as e:
            raise MalformedOutputError(str(e)) from e

        if isinstance(data, dict) and isinstance(data.get("picks"), list):
            data = data["picks"]
        if not isinstance(data, list):
            raise ContractViolationError(f"expected a JSON array, got {type(data).__name__}")
        if len(data) != PICKS_TOTAL:
            raise ContractViolationError(f"expected {PICKS_TOTAL} picks, got {len(data)}")

        picks: List[Pick] = []
        for index, item in enumerate(data):
            picks.append(self._parse_pick(index, item))

        counts = Counter(pick.sport for pick in picks)
        for sport in Sport:
            if counts.get(sport, 0) != PICKS_PER_SPORT:
                raise ContractViolationError(
                    f"expected {PICKS_PER_SPORT} {sport.value} picks, got {counts.get(sport, 0)}"
                )
        return tuple(picks)

    def _parse_pick(self, index: int, item: Any) -> Pick:
        if not isinstance(item, dict):
            raise ContractViolationError(f"pick {index} is not an object")

        values = {}
        for name in PICK_FIELDS:
            value = item.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ContractViolationError(f"pick {index} is missing '{name}'")
            values[name] = value.strip()

        try:
            sport = Sport(values["sport"].lower())
        except ValueError:
            raise ContractViolationError(f"pick {index} has unknown sport {values['sport']!r}")

        probability = parse_probability(values["probability"])
        if probability is None or probability < self.settings.min_probability:
            raise ContractViolationError(
                f"pick {index} probability {values['probability']!r} is below "
                f"{self.settings.min_probability:g}%"
            )

        values["sport"] = sport
        return Pick(**values)

    # -------------------------------------------------------------------------
    # Fallback
    # -------------------------------------------------------------------------

    def fallback_picks(self) -> Tuple[Pick, ...]:
        """One fixed pick per fixture. Exactly PICKS_TOTAL by table validation."""
        settings = self.settings
        picks = []
        for fixture in settings.fixtures:
            match_date, match_time = to_display(fixture.kickoff_utc, settings.zone)
            picks.append(
                Pick(
                    sport=fixture.sport,
                    match=fixture.match,
                    betType=settings.fallback_bet_type,
                    probability=settings.fallback_probability,
                    matchDate=match_date,
                    matchTime=match_time,
                )
            )
        return tuple(picks[:PICKS_TOTAL])

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    async def _generate_from_model(self) -> Tuple[Pick, ...]:
        completion = await self.client.generate(
            self.build_prompt(),
            system_instruction=SYSTEM_INSTRUCTION,
            use_search=False,
        )
        return self.parse_model_picks(completion.text)

    async def generate(self) -> PicksOutcome:
        """Single model attempt, then fallback. Never raises."""
        started = time.perf_counter()
        reason = None
        try:
            outcome: PicksOutcome = ModelSourced(await self._generate_from_model())
        except ModelConfigurationError as e:
            reason = "unconfigured"
            logger.warning(f"Daily picks: model not configured ({e})")
        except ModelUnavailableError as e:
            reason = "unavailable"
            logger.warning(f"Daily picks: model unavailable ({e})")
        except ModelAPIError as e:
            reason = "upstream_error"
            logger.warning(f"Daily picks: model API error status={e.status_code} ({e})")
        except ModelError as e:
            reason = "empty_output"
            logger.warning(f"Daily picks: unusable model response ({e})")
        except MalformedOutputError as e:
            reason = "malformed_output"
            logger.warning(f"Daily picks: malformed model output ({e})")
        except ContractViolationError as e:
            reason = "contract_violation"
            logger.warning(f"Daily picks: contract violation ({e})")
        except Exception:
            reason = "unexpected_error"
            logger.exception("Daily picks: unexpected error during generation")

        if reason is not None:
            outcome = Fallback(self.fallback_picks(), reason=reason)

        latency_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"picks.outcome={outcome.kind} reason={reason or '-'} latency_ms={latency_ms:.0f}"
        )
        generation_tracker.record_generation(
            endpoint=TRACKER_ENDPOINT,
            outcome=outcome.kind,
            model=getattr(self.client, "model", None),
            latency_ms=latency_ms,
            reason=reason,
        )
        return outcome

    async def generate_daily_picks(self) -> PicksResponse:
        """The boundary operation: always a conformant response."""
        outcome = await self.generate()
        return PicksResponse(
            generatedAt=format_timestamp(self._clock(), self.settings.zone),
            picks=list(outcome.picks),
        )
