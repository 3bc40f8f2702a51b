# nextwin/dependencies.py
"""FastAPI dependencies that build the services from the app config."""
from __future__ import annotations

from functools import lru_cache

from nextwin.analysis import BetAnalyzer
from nextwin.config import AppConfig, load_config
from nextwin.localtime import DisplayZone
from nextwin.model_client import GeminiClient
from nextwin.picks import PicksGenerator, PicksSettings


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return load_config()


def get_model_client() -> GeminiClient:
    config = get_config()
    return GeminiClient(
        api_key=config.model_api_key,
        model=config.model_name,
        timeout_seconds=config.model_timeout_seconds,
    )


def get_display_zone() -> DisplayZone:
    config = get_config()
    return DisplayZone(locale=config.locale, timezone=config.timezone)


def get_picks_generator() -> PicksGenerator:
    return PicksGenerator(get_model_client(), PicksSettings(zone=get_display_zone()))


def get_bet_analyzer() -> BetAnalyzer:
    return BetAnalyzer(
        get_model_client(),
        zone=get_display_zone(),
        use_search=get_config().search_enabled,
    )
