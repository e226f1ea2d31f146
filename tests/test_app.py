"""Tests for the FastAPI app (ui/app.py) routes."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from ui.app import _pct, app

from helpers import NOW, daily_habit, habit_payload


@pytest.fixture
def client(workspace, monkeypatch):
    # Pin the clock to the last day of the fixture history.
    monkeypatch.setattr("ui.app.now_local", lambda root=None: NOW)
    return TestClient(app)


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": "true"}


def test_dashboard(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "HabitLens" in response.text
    assert "Overall score:" in response.text
    assert "Run" in response.text
    assert "Read ↔ Stretch" in response.text
    assert "1.000" in response.text


def test_dashboard_invalid_timeframe(client):
    assert client.get("/?timeframe=decade").status_code == 400


def test_correlations(client):
    data = client.get("/api/correlations?days=30").json()
    assert data["days"] == 30
    assert len(data["correlations"]) == 3
    for c in data["correlations"]:
        assert -1 <= c["correlationCoefficient"] <= 1
    top = data["correlations"][0]
    assert (top["habit1Id"], top["habit2Id"]) == ("read", "stretch")
    assert top["correlationCoefficient"] == 1.0
    assert top["significance"] == "high"


def test_default_lookback_from_profile(client):
    assert client.get("/api/patterns").json()["days"] == 90
    insights = client.get("/api/insights").json()["insights"]
    assert insights
    assert any(
        i["habitId"] == "run" and i["insight"] == "Run appears to be easy for you (100% completion rate)"
        for i in insights
    )


def test_patterns(client, workspace):
    habits = [daily_habit(h, "2024-02-01", "2024-03-01") for h in ("run", "read", "write")]
    (workspace / "habits.json").write_text(json.dumps(habit_payload(habits)), encoding="utf-8")
    patterns = client.get("/api/patterns?days=30").json()["patterns"]
    assert len(patterns) == 10
    assert patterns[0]["description"] == "High completion rate on Sundays (100%)"


def test_invalid_lookback(client):
    assert client.get("/api/correlations?days=0").status_code == 400


def test_comparative(client):
    data = client.get("/api/comparative?timeframe=week").json()
    assert data["timeframe"] == "week"
    assert [h["habitId"] for h in data["habits"]] == ["run", "read", "stretch"]
    assert client.get("/api/comparative?timeframe=decade").status_code == 400

    month = client.get("/api/comparative?timeframe=month").json()
    assert month["topPerformer"] == "run"
    assert month["habits"][0]["score"] == 95


def test_refresh(client, workspace):
    data = client.post("/api/analytics/refresh").json()
    assert data["lookbackDays"] == 90
    assert data["generatedAt"] == "2024-03-01T12:00:00+00:00"
    assert data["comparative"]["topPerformer"] == "run"
    assert data["correlations"]
    assert (workspace / "analytics.json").exists()


def test_report_formats(client):
    assert client.get("/api/report?kind=weekly").json()["title"] == "Weekly Habit Report"
    monthly = client.get("/api/report?kind=monthly").json()
    assert monthly["sections"]["correlations"]
    assert "Read and Stretch" in monthly["recommendations"][0]
    md = client.get("/api/report?kind=monthly&format=md")
    assert md.status_code == 200
    assert md.text.startswith("# Monthly Habit Report")
    assert client.get("/api/report?format=pdf").status_code == 400
    assert client.get("/api/report?kind=hourly").status_code == 400


def test_save_and_fetch_report(client, workspace):
    saved = client.post("/api/reports", json={"kind": "quarterly"}).json()
    assert saved["ok"] is True
    assert (workspace / "reports" / f"{saved['id']}.json").exists()

    listing = client.get("/api/reports").json()
    assert listing["count"] == 1
    assert listing["reports"][0]["title"] == "Quarterly Habit Report"

    txt = client.get(f"/api/reports/{saved['id']}?format=txt")
    assert txt.text.startswith("Quarterly Habit Report")
    assert client.get("/api/reports/report_0_missing").status_code == 404


def test_habit_specific_report(client):
    saved = client.post("/api/reports", json={"habit_ids": ["run"], "days": 14}).json()
    report = client.get(f"/api/reports/{saved['id']}").json()
    assert report["habits"] == ["run"]


def test_basic_auth(client, monkeypatch):
    monkeypatch.setenv("HABITLENS_USERNAME", "me")
    monkeypatch.setenv("HABITLENS_PASSWORD", "secret")
    assert client.get("/api/reports").status_code == 401
    assert client.get("/api/reports", auth=("me", "wrong")).status_code == 401
    assert client.get("/api/reports", auth=("me", "secret")).status_code == 200


def test_percent_rounds_half_up():
    assert _pct(0.125) == "13%"
    assert _pct(0.8) == "80%"
