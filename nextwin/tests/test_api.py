# nextwin/tests/test_api.py
"""
Tests for the HTTP surface.

Covers:
- GET /api/daily-picks always 200 with nine picks
- POST /api/analysis validation and error mapping
- GET /api/sports, /health, /metrics/*
- X-Request-Id handling
"""
from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from nextwin.analysis import BetAnalyzer
from nextwin.dependencies import get_bet_analyzer, get_picks_generator
from nextwin.fixtures import DEFAULT_FIXTURES
from nextwin.main import app
from nextwin.model_client import GeminiClient
from nextwin.picks import PicksGenerator

FIXED_NOW = datetime(2026, 1, 9, 7, 30, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client():
    """Test client for the FastAPI app."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_model(transport_factory):
    """Route both services through a mock transport."""

    def install(**transport_kwargs):
        model_client = GeminiClient(
            api_key="test-key", model="gemini-test", transport=transport_factory(**transport_kwargs)
        )
        app.dependency_overrides[get_picks_generator] = lambda: PicksGenerator(
            model_client, clock=lambda: FIXED_NOW
        )
        app.dependency_overrides[get_bet_analyzer] = lambda: BetAnalyzer(
            model_client, clock=lambda: FIXED_NOW
        )

    return install


def _assert_picks_body(data):
    assert set(data) == {"generatedAt", "picks"}
    assert len(data["picks"]) == 9
    assert Counter(p["sport"] for p in data["picks"]) == {
        "football": 3,
        "basketball": 3,
        "tennis": 3,
    }
    for pick in data["picks"]:
        assert set(pick) == {"sport", "match", "betType", "probability", "matchDate", "matchTime"}
        assert float(pick["probability"].rstrip("%")) >= 70


# =============================================================================
# Daily Picks
# =============================================================================


class TestDailyPicks:
    """Tests for GET /api/daily-picks."""

    def test_without_api_key_serves_fallback(self, client):
        response = client.get("/api/daily-picks")

        assert response.status_code == 200
        data = response.json()
        _assert_picks_body(data)
        assert [p["match"] for p in data["picks"]] == [f.match for f in DEFAULT_FIXTURES]

    def test_model_picks(self, client, use_model, model_picks_text):
        use_model(text=model_picks_text)
        response = client.get("/api/daily-picks")

        assert response.status_code == 200
        data = response.json()
        _assert_picks_body(data)
        assert data["picks"][0]["betType"] == "double chance"
        assert data["generatedAt"] == "09/01/2026 08:30:00"

    def test_connection_refused_still_200(self, client, use_model):
        use_model(exc=httpx.ConnectError("Connection refused"))
        response = client.get("/api/daily-picks")

        assert response.status_code == 200
        _assert_picks_body(response.json())

    def test_non_json_still_200(self, client, use_model):
        use_model(text="The model is taking a day off.")
        response = client.get("/api/daily-picks")

        assert response.status_code == 200
        data = response.json()
        _assert_picks_body(data)
        assert {p["probability"] for p in data["picks"]} == {"72%"}

    def test_seven_entries_not_returned(self, client, use_model, model_picks):
        use_model(text=json.dumps(model_picks[:7]))
        response = client.get("/api/daily-picks")

        assert response.status_code == 200
        data = response.json()
        _assert_picks_body(data)
        assert {p["betType"] for p in data["picks"]} == {"match winner"}

    def test_outcome_visible_in_metrics_only(self, client, use_model):
        use_model(text="nope")
        client.get("/api/daily-picks")

        summary = client.get("/metrics/summary").json()
        assert summary["endpoints"]["daily-picks"]["fallback"] == 1
        assert summary["endpoints"]["daily-picks"]["fallbackRate"] == 100.0


# =============================================================================
# Analysis
# =============================================================================


class TestAnalysis:
    """Tests for POST /api/analysis."""

    def test_analysis_ok(self, client, use_model):
        use_model(text=json.dumps({"successProbability": "74%", "riskAssessment": "Medium"}))
        response = client.post(
            "/api/analysis",
            json={"sport": "football", "match": "Lyon vs Lille", "betType": "double_chance"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["successProbability"] == "74%"
        assert data["riskAssessment"] == "Medium"
        assert data["sources"] == []

    def test_bet_type_label_accepted(self, client, use_model):
        use_model(text="{}")
        response = client.post(
            "/api/analysis",
            json={"sport": "Tennis", "match": "Sinner vs Zverev", "betType": "number of sets"},
        )
        assert response.status_code == 200

    def test_unknown_sport(self, client):
        response = client.post(
            "/api/analysis",
            json={"sport": "curling", "match": "A vs B", "betType": "winner"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "UNKNOWN_SPORT"

    def test_unknown_bet_type(self, client):
        response = client.post(
            "/api/analysis",
            json={"sport": "tennis", "match": "A vs B", "betType": "corners"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "UNKNOWN_BET_TYPE"

    def test_match_without_vs(self, client):
        response = client.post(
            "/api/analysis",
            json={"sport": "tennis", "match": "Sinner", "betType": "winner"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_MATCH"

    def test_blank_field(self, client):
        response = client.post(
            "/api/analysis",
            json={"sport": "tennis", "match": "A vs B", "betType": "   "},
        )
        assert response.status_code == 422

    def test_without_api_key_returns_503(self, client):
        response = client.post(
            "/api/analysis",
            json={"sport": "football", "match": "Lyon vs Lille", "betType": "match_result"},
        )
        assert response.status_code == 503
        assert response.json()["detail"]["code"] == "SERVICE_MISCONFIGURED"

    def test_upstream_failure_returns_502(self, client, use_model):
        use_model(exc=httpx.ConnectError("refused"))
        response = client.post(
            "/api/analysis",
            json={"sport": "football", "match": "Lyon vs Lille", "betType": "match_result"},
        )
        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "MODEL_UNAVAILABLE"

    def test_malformed_body_returns_502(self, client, use_model):
        use_model(body={"candidates": ["oops"]})
        response = client.post(
            "/api/analysis",
            json={"sport": "football", "match": "Lyon vs Lille", "betType": "match_result"},
        )
        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "MODEL_RESPONSE_ERROR"


# =============================================================================
# Catalog, health, metrics
# =============================================================================


class TestSports:

    def test_catalog(self, client):
        data = client.get("/api/sports").json()
        assert [s["key"] for s in data] == ["football", "basketball", "tennis"]
        football_keys = [b["key"] for b in data[0]["betTypes"]]
        assert "double_chance" in football_keys


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "nextwin-picks"
        assert data["model_api_key_present"] is False

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"


class TestRequestId:

    def test_generated(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-Id"]) == 36

    def test_client_value_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "abc-123"})
        assert response.headers["X-Request-Id"] == "abc-123"

    def test_unsafe_value_replaced(self, client):
        response = client.get("/health", headers={"X-Request-Id": "bad id; drop"})
        assert response.headers["X-Request-Id"] != "bad id; drop"


class TestMetrics:

    def test_recent(self, client):
        client.get("/api/daily-picks")
        data = client.get("/metrics/recent?endpoint=daily-picks").json()
        assert data["count"] == 1
        assert data["records"][0]["reason"] == "unconfigured"

    def test_hours_bounds(self, client):
        assert client.get("/metrics/summary?hours=0").status_code == 422
