# nextwin/fixtures.py
"""
Static fixture table used to ground the model prompt and to build the
fallback picks. Stand-in for a real fixtures feed.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Tuple

PICKS_PER_SPORT = 3


class Sport(str, Enum):
    """Sports covered by the daily picks."""

    FOOTBALL = "football"
    BASKETBALL = "basketball"
    TENNIS = "tennis"


PICKS_TOTAL = PICKS_PER_SPORT * len(Sport)


@dataclass(frozen=True)
class MatchFixture:
    """A scheduled match: sport, "home vs away" label and UTC kickoff."""

    sport: Sport
    match: str
    kickoff_utc: datetime


def _utc(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


DEFAULT_FIXTURES: Tuple[MatchFixture, ...] = (
    MatchFixture(Sport.FOOTBALL, "Paris Saint-Germain vs Olympique de Marseille", _utc(2026, 1, 9, 20, 0)),
    MatchFixture(Sport.FOOTBALL, "Arsenal vs Liverpool", _utc(2026, 1, 10, 17, 30)),
    MatchFixture(Sport.FOOTBALL, "Real Madrid vs FC Barcelona", _utc(2026, 1, 11, 20, 0)),
    MatchFixture(Sport.BASKETBALL, "Boston Celtics vs Los Angeles Lakers", _utc(2026, 1, 10, 0, 30)),
    MatchFixture(Sport.BASKETBALL, "Denver Nuggets vs Golden State Warriors", _utc(2026, 1, 10, 3, 0)),
    MatchFixture(Sport.BASKETBALL, "Real Madrid Baloncesto vs Olympiacos", _utc(2026, 1, 9, 19, 45)),
    MatchFixture(Sport.TENNIS, "Jannik Sinner vs Alexander Zverev", _utc(2026, 1, 9, 8, 0)),
    MatchFixture(Sport.TENNIS, "Carlos Alcaraz vs Daniil Medvedev", _utc(2026, 1, 9, 10, 30)),
    MatchFixture(Sport.TENNIS, "Iga Swiatek vs Coco Gauff", _utc(2026, 1, 9, 6, 0)),
)


def validate_fixture_table(fixtures: Iterable[MatchFixture]) -> Tuple[MatchFixture, ...]:
    """
    Check that a fixture table can produce a complete fallback.

    Returns the table as a tuple.

    Raises:
        ValueError: unless there are exactly PICKS_PER_SPORT fixtures per
                    sport, each with a timezone-aware kickoff.
    """
    table = tuple(fixtures)
    counts = Counter(fixture.sport for fixture in table)
    for sport in Sport:
        if counts.get(sport, 0) != PICKS_PER_SPORT:
            raise ValueError(
                f"fixture table needs {PICKS_PER_SPORT} {sport.value} fixtures, "
                f"got {counts.get(sport, 0)}"
            )
    for fixture in table:
        if fixture.kickoff_utc.tzinfo is None:
            raise ValueError(f"kickoff for '{fixture.match}' has no timezone")
    return table
