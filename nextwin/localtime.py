# nextwin/localtime.py
"""
UTC instant -> localized display strings.

Pure functions over (instant, zone). The host timezone is never consulted.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple
from zoneinfo import ZoneInfo

# Locale -> strftime date pattern
DATE_PATTERNS = {
    "fr-FR": "%d/%m/%Y",
    "en-GB": "%d/%m/%Y",
    "en-US": "%m/%d/%Y",
}
ISO_DATE_PATTERN = "%Y-%m-%d"
TIME_PATTERN = "%H:%M"
TIMESTAMP_TIME_PATTERN = "%H:%M:%S"


@dataclass(frozen=True)
class DisplayZone:
    """Target locale and IANA timezone for displayed dates and times."""

    locale: str = "fr-FR"
    timezone: str = "Europe/Paris"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def date_pattern(self) -> str:
        return DATE_PATTERNS.get(self.locale, ISO_DATE_PATTERN)


def _localize(instant: datetime, zone: DisplayZone) -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError("instant must be timezone-aware")
    return instant.astimezone(zone.tzinfo)


def to_display(instant: datetime, zone: DisplayZone) -> Tuple[str, str]:
    """
    Convert an aware instant to (date, time) strings for the zone.

    2026-01-09T20:00Z in fr-FR / Europe/Paris -> ("09/01/2026", "21:00").
    """
    local = _localize(instant, zone)
    return local.strftime(zone.date_pattern), local.strftime(TIME_PATTERN)


def format_date(instant: datetime, zone: DisplayZone) -> str:
    return to_display(instant, zone)[0]


def format_timestamp(instant: datetime, zone: DisplayZone) -> str:
    """Full "<date> <HH:MM:SS>" timestamp in the zone."""
    local = _localize(instant, zone)
    return f"{local.strftime(zone.date_pattern)} {local.strftime(TIMESTAMP_TIME_PATTERN)}"
