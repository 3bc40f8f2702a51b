"""Configure pytest for the NextWin picks service."""
import json
import os
import sys
from pathlib import Path

import httpx
import pytest

# Set environment for tests BEFORE any app imports.
# No real credential: anything that reaches for the model uses a mock transport.
os.environ.setdefault("ENV", "test")
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("API_KEY", None)

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def gemini_body(text, sources=()):
    """A generateContent response body carrying `text`."""
    candidate = {"content": {"role": "model", "parts": [{"text": text}]}}
    if sources:
        candidate["groundingMetadata"] = {
            "groundingChunks": [{"web": {"title": title, "uri": uri}} for title, uri in sources]
        }
    return {"candidates": [candidate]}


def make_transport(text=None, status_code=200, body=None, exc=None, calls=None):
    """
    httpx.MockTransport answering every request the same way.

    `exc` is raised instead of answering; `calls` collects the requests.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if exc is not None:
            raise exc
        payload = body if body is not None else gemini_body(text or "")
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def transport_factory():
    return make_transport


@pytest.fixture
def reply_body():
    return gemini_body


@pytest.fixture(autouse=True)
def clear_generation_records():
    from nextwin.generation_tracker import clear_records

    clear_records()
    yield
    clear_records()


@pytest.fixture
def model_picks():
    """Nine valid model picks as dicts, three per sport."""
    rows = [
        ("football", "Paris Saint-Germain vs Olympique de Marseille", "double chance", "81%"),
        ("football", "Arsenal vs Liverpool", "over/under on points", "74%"),
        ("football", "Real Madrid vs FC Barcelona", "match winner", "70%"),
        ("basketball", "Boston Celtics vs Los Angeles Lakers", "match winner", "77%"),
        ("basketball", "Denver Nuggets vs Golden State Warriors", "over/under on points", "73%"),
        ("basketball", "Real Madrid Baloncesto vs Olympiacos", "match winner", "71%"),
        ("tennis", "Jannik Sinner vs Alexander Zverev", "match winner", "79%"),
        ("tennis", "Carlos Alcaraz vs Daniil Medvedev", "match winner", "76%"),
        ("tennis", "Iga Swiatek vs Coco Gauff", "match winner", "72%"),
    ]
    return [
        {
            "sport": sport,
            "match": match,
            "betType": bet_type,
            "probability": probability,
            "matchDate": "09/01/2026",
            "matchTime": "21:00",
        }
        for sport, match, bet_type, probability in rows
    ]


@pytest.fixture
def model_picks_text(model_picks):
    return json.dumps(model_picks)
