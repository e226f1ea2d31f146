from __future__ import annotations

import logging
import os
import secrets
from typing import Any

from habitlens import (
    workspace_root as _workspace_root,
    now_local,
    load_profile,
    load_habits,
    calculate_habit_correlations,
    detect_productivity_patterns,
    generate_habit_insights,
    generate_comparative_analytics,
    generate_report_of_kind,
    generate_habit_specific_report,
    export_report,
    save_report,
    load_saved_report,
    list_saved_reports,
    refresh_analytics,
    ComparativeAnalytics,
    HabitCorrelation,
    HabitInsight,
    ProductivityPattern,
)
from habitlens.report import EXPORT_FORMATS
from habitlens.stats import round_half_up

ASSET_V = "20241001-01"
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi import Body
from fastapi.security import HTTPBasic, HTTPBasicCredentials

logging.basicConfig(level=os.environ.get("HABITLENS_LOG_LEVEL", "WARNING").upper())


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _pct(x: float) -> str:
    return f"{int(round_half_up(x * 100))}%"


def _table(headers: list[str], rows: list[list[str]], empty: str) -> str:
    if not rows:
        return f'<div class="muted small">{_escape(empty)}</div>'
    head = "".join(f"<th>{_escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{_escape(c)}</td>" for c in row) + "</tr>" for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _comparative_rows(comparative: ComparativeAnalytics) -> list[list[str]]:
    return [
        [h.habit_name, f"{h.score}/100", _pct(h.completion_rate), f"{h.streak_average:g}", _pct(h.consistency), h.trend]
        for h in comparative.habits
    ]


def _correlation_rows(correlations: list[HabitCorrelation]) -> list[list[str]]:
    return [
        [f"{c.habit1_name} ↔ {c.habit2_name}", f"{c.correlation_coefficient:.3f}", c.significance, c.relationship, str(c.sample_size)]
        for c in correlations
    ]


def _pattern_rows(patterns: list[ProductivityPattern]) -> list[list[str]]:
    return [[p.description, p.impact, _pct(p.strength), p.recommendation] for p in patterns]


def _insight_rows(insights: list[HabitInsight]) -> list[list[str]]:
    return [[i.habit_name, i.insight, _pct(i.confidence), i.recommendation or ""] for i in insights]


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="HabitLens UI", version="0.1.0")

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("HABITLENS_USERNAME", "")
    expected_password = os.environ.get("HABITLENS_PASSWORD", "")

    if credentials is None:
        if not expected_username or not expected_password:
            return "guest"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not expected_username or not expected_password:
        return "guest"

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def _lookback(days: int | None) -> int:
    if days is None:
        return load_profile(_workspace_root()).lookback_days
    if days <= 0:
        raise HTTPException(status_code=400, detail=f"Invalid lookback: {days} days")
    return days


# ── Pages ─────────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(timeframe: str | None = None, username: str = Depends(get_current_user)) -> HTMLResponse:
    root = _workspace_root()
    profile = load_profile(root)
    habits = load_habits(root)
    now = now_local(root)
    timeframe = (timeframe or profile.default_timeframe).strip().lower()

    try:
        comparative = generate_comparative_analytics(habits, timeframe, now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    days = profile.lookback_days
    correlations = calculate_habit_correlations(habits, days, now)[: profile.max_correlations]
    patterns = detect_productivity_patterns(habits, days, now)[: profile.max_patterns]
    insights = generate_habit_insights(habits, days, now)[: profile.max_insights]

    tabs = "".join(
        f'<a class="pill{" active" if t == timeframe else ""}" href="/?timeframe={t}">{t.title()}</a>'
        for t in ("week", "month", "quarter", "year")
    )
    summary = "".join(f"<li>{_escape(line)}</li>" for line in comparative.insights)

    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>HabitLens</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 0; background: #111; color: #eee; }}
    .container {{ max-width: 1100px; margin: 0 auto; padding: 16px; }}
    .card {{ background: #1b1b1b; border-radius: 8px; padding: 12px 16px; margin: 12px 0; }}
    .muted {{ color: #999; }} .small {{ font-size: 13px; }}
    .pill {{ display: inline-block; padding: 2px 10px; border-radius: 12px; background: #222; color: #ccc; margin-right: 6px; text-decoration: none; }}
    .pill.active {{ background: #3a6; color: #fff; }}
    table {{ width: 100%; border-collapse: collapse; }} th, td {{ text-align: left; padding: 4px 6px; border-bottom: 1px solid #333; }}
  </style>
</head>
<body>
  <div class="container">
    <header>
      <h1>HabitLens</h1>
      <div>{tabs}</div>
      <div class="muted small">{len(habits)} habits &middot; data root <code>{_escape(str(root))}</code> &middot; lookback {days} days</div>
    </header>

    <section class="card">
      <h2>Overall score: {comparative.overall_score}/100</h2>
      <ul>{summary}</ul>
      {_table(["Habit", "Score", "Completion", "Avg streak", "Consistency", "Trend"], _comparative_rows(comparative), "No habits yet.")}
    </section>

    <section class="card">
      <h2>Correlations</h2>
      {_table(["Habits", "r", "Significance", "Relationship", "Days"], _correlation_rows(correlations), "Not enough shared history for correlations.")}
    </section>

    <section class="card">
      <h2>Patterns</h2>
      {_table(["Pattern", "Impact", "Strength", "Recommendation"], _pattern_rows(patterns), "No patterns detected yet.")}
    </section>

    <section class="card">
      <h2>Insights</h2>
      {_table(["Habit", "Insight", "Confidence", "Recommendation"], _insight_rows(insights), "No insights yet.")}
    </section>
    <footer class="muted small">v0.1 &middot; asset {ASSET_V}</footer>
  </div>
</body>
</html>"""
    return HTMLResponse(html)


# ── Analytics API ─────────────────────────────────────────────

@app.get("/api/correlations")
def api_correlations(days: int | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Pairwise habit correlations, strongest first."""
    days = _lookback(days)
    root = _workspace_root()
    habits = load_habits(root)
    correlations = calculate_habit_correlations(habits, days, now_local(root))
    return {"days": days, "correlations": [c.to_dict() for c in correlations]}


@app.get("/api/patterns")
def api_patterns(days: int | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Productivity patterns, strongest first."""
    days = _lookback(days)
    root = _workspace_root()
    habits = load_habits(root)
    patterns = detect_productivity_patterns(habits, days, now_local(root))
    return {"days": days, "patterns": [p.to_dict() for p in patterns]}


@app.get("/api/insights")
def api_insights(days: int | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Per-habit insights, most confident first."""
    days = _lookback(days)
    root = _workspace_root()
    habits = load_habits(root)
    insights = generate_habit_insights(habits, days, now_local(root))
    return {"days": days, "insights": [i.to_dict() for i in insights]}


@app.get("/api/comparative")
def api_comparative(timeframe: str | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Comparative scores for a timeframe (week, month, quarter, year)."""
    root = _workspace_root()
    timeframe = timeframe or load_profile(root).default_timeframe
    try:
        comparative = generate_comparative_analytics(load_habits(root), timeframe, now_local(root))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return comparative.to_dict()


@app.post("/api/analytics/refresh")
def api_refresh_analytics(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Recompute analytics.json from habits.json."""
    root = _workspace_root()
    return refresh_analytics(root, now=now_local(root)).to_dict()


# ── Reports ───────────────────────────────────────────────────

@app.get("/api/report")
def api_report(kind: str = "monthly", format: str = "json", username: str = Depends(get_current_user)) -> Any:
    """Generate a report on the fly; json returns the object, md/txt plain text."""
    if format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Invalid export format: {format!r}")
    root = _workspace_root()
    try:
        report = generate_report_of_kind(kind, load_habits(root), now=now_local(root), profile=load_profile(root))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if format == "json":
        return report.to_dict()
    return PlainTextResponse(export_report(report, format))


@app.post("/api/reports")
def api_save_report(payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Generate and save a report under reports/."""
    root = _workspace_root()
    habits = load_habits(root)
    profile = load_profile(root)
    now = now_local(root)
    habit_ids = payload.get("habit_ids")

    try:
        if habit_ids:
            report = generate_habit_specific_report(
                habits, [str(h) for h in habit_ids], int(payload.get("days", 30)), now=now, profile=profile
            )
        else:
            report = generate_report_of_kind(str(payload.get("kind", "monthly")), habits, now=now, profile=profile)
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    path = save_report(report, root)
    return {"ok": True, "id": report.id, "path": str(path)}


@app.get("/api/reports")
def api_list_reports(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Saved reports, newest first (headers only)."""
    reports = list_saved_reports(_workspace_root())
    return {
        "count": len(reports),
        "reports": [
            {"id": r.id, "title": r.title, "generatedAt": r.generated_at, "overallScore": r.comparative.overall_score}
            for r in reports
        ],
    }


@app.get("/api/reports/{report_id}")
def api_get_report(report_id: str, format: str = "json", username: str = Depends(get_current_user)) -> Any:
    if format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Invalid export format: {format!r}")
    report = load_saved_report(report_id, _workspace_root())
    if report is None:
        raise HTTPException(status_code=404, detail=f"Report not found: {report_id}")
    if format == "json":
        return report.to_dict()
    return PlainTextResponse(export_report(report, format))
