# nextwin/sports_catalog.py
"""Sports and bet types accepted by the analysis endpoint."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class BetType:
    key: str
    label: str


@dataclass(frozen=True)
class SportEntry:
    key: str
    label: str
    bet_types: Tuple[BetType, ...]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "betTypes": [{"key": b.key, "label": b.label} for b in self.bet_types],
        }


SPORTS: Tuple[SportEntry, ...] = (
    SportEntry(
        "football",
        "Football",
        (
            BetType("match_result", "Match result (1X2)"),
            BetType("double_chance", "Double chance"),
            BetType("both_teams_score", "Both teams to score"),
            BetType("total_goals", "Total goals (over/under)"),
            BetType("scorer", "Goalscorer"),
            BetType("exact_score", "Exact score"),
            BetType("handicap", "Handicap"),
            BetType("half_time_full_time", "Half time / full time"),
            BetType("cards", "Cards"),
            BetType("corners", "Corners"),
        ),
    ),
    SportEntry(
        "basketball",
        "Basketball",
        (
            BetType("winner", "Winner"),
            BetType("total_points", "Total points"),
            BetType("points_per_team", "Points per team"),
            BetType("over_under", "Over/under points"),
            BetType("handicap", "Handicap"),
            BetType("player_points", "Player points"),
            BetType("rebounds_assists", "Rebounds / assists"),
            BetType("half_time_score", "Half time score"),
        ),
    ),
    SportEntry(
        "tennis",
        "Tennis",
        (
            BetType("winner", "Winner"),
            BetType("number_of_sets", "Number of sets"),
            BetType("total_games", "Total games"),
            BetType("over_under_games", "Over/under games"),
            BetType("handicap_games", "Games handicap"),
            BetType("exact_score", "Exact score (sets)"),
            BetType("number_of_points", "Number of points"),
            BetType("service_breaks", "Service breaks"),
        ),
    ),
)


def find_sport(key: str) -> Optional[SportEntry]:
    """Look up a sport by key or label, case-insensitive."""
    wanted = (key or "").strip().lower()
    for sport in SPORTS:
        if wanted in (sport.key, sport.label.lower()):
            return sport
    return None


def find_bet_type(sport: SportEntry, key: str) -> Optional[BetType]:
    """Look up one of the sport's bet types by key or label, case-insensitive."""
    wanted = (key or "").strip().lower()
    for bet_type in sport.bet_types:
        if wanted in (bet_type.key, bet_type.label.lower()):
            return bet_type
    return None
