"""Analytics reports: generation, export, persistence and snapshot refresh.

A report bundles the four analyses for one period with a templated
summary paragraph and up to six recommendations.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from habitlens.comparative import generate_comparative_analytics
from habitlens.correlation import calculate_habit_correlations
from habitlens.insights import generate_habit_insights
from habitlens.models import (
    AnalyticsReport,
    AnalyticsSnapshot,
    ComparativeAnalytics,
    Habit,
    HabitCorrelation,
    HabitInsight,
    Profile,
    ProductivityPattern,
)
from habitlens.patterns import detect_productivity_patterns
from habitlens.series import epoch_ms, reference_time
from habitlens.stats import round_half_up
from habitlens.storage import load_habits, read_json, write_json_atomic
from habitlens.workspace import (
    analytics_path,
    get_user_timezone,
    load_profile,
    reports_dir,
    workspace_root,
)

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 6
EXPORT_FORMATS = ("json", "md", "txt")
_REPORT_ID = re.compile(r"^[A-Za-z0-9_]+$")


# ── Generation ────────────────────────────────────────────────


def _report_id(habits: list[Habit], now: datetime) -> str:
    digest = hashlib.sha1(",".join(h.id for h in habits).encode("utf-8")).hexdigest()[:9]
    return f"report_{epoch_ms(now)}_{digest}"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n > 1 else ''}"


def build_summary(
    habit_count: int,
    correlations: list[HabitCorrelation],
    patterns: list[ProductivityPattern],
    insights: list[HabitInsight],
    comparative: ComparativeAnalytics,
    days: int,
) -> str:
    strong = sum(1 for c in correlations if c.significance == "high")
    actionable = sum(1 for i in insights if i.actionable)
    high_impact = sum(1 for p in patterns if p.impact == "high")

    summary = f"Over the past {days} days, analysis of your {habit_count} habits reveals "
    if comparative.overall_score >= 80:
        summary += "excellent progress with strong consistency across most habits. "
    elif comparative.overall_score >= 60:
        summary += "good progress with room for improvement in some areas. "
    else:
        summary += "opportunities for significant improvement in habit consistency. "

    if strong:
        summary += f"{_plural(strong, 'strong habit correlation')} were identified, "
    if high_impact:
        summary += f"{_plural(high_impact, 'high-impact productivity pattern')} were detected, "
    if actionable:
        summary += (
            f"and {_plural(actionable, 'actionable insight')} were generated "
            "to help optimize your routine."
        )
    return summary.strip()


def build_recommendations(
    correlations: list[HabitCorrelation],
    patterns: list[ProductivityPattern],
    insights: list[HabitInsight],
    comparative: ComparativeAnalytics,
) -> list[str]:
    recs: list[str] = []

    positive = [
        c for c in correlations
        if c.relationship == "positive" and c.significance == "high"
    ]
    if positive:
        top = positive[0]
        recs.append(
            f"Consider creating a routine that combines {top.habit1_name} and {top.habit2_name}, "
            f"as they show strong positive correlation ({top.correlation_coefficient:.2f})."
        )

    daily = [p for p in patterns if p.type == "daily" and p.impact == "high"]
    if daily:
        recs.append(daily[0].recommendation)

    if comparative.needs_attention:
        struggling = comparative.habit(comparative.needs_attention[0])
        if struggling:
            recs.append(
                f'Focus on improving "{struggling.habit_name}" - consider breaking it down '
                "into smaller steps or adjusting the schedule."
            )

    if comparative.top_performer:
        best = comparative.habit(comparative.top_performer)
        if best and best.score >= 85:
            recs.append(
                f'Your success with "{best.habit_name}" shows you can build strong habits - '
                "apply the same approach to struggling habits."
            )

    trend = [i for i in insights if i.type == "completion_trend" and i.actionable]
    if trend and trend[0].recommendation:
        recs.append(trend[0].recommendation)

    if comparative.overall_score < 60:
        recs.append(
            "Consider reducing the number of active habits and focusing on consistency "
            "with 2-3 core habits before expanding."
        )
    elif comparative.overall_score >= 85:
        recs.append(
            "Your habit consistency is excellent - consider adding more challenging "
            "or transformative habits to your routine."
        )

    return recs[:MAX_RECOMMENDATIONS]


def generate_report(
    habits: list[Habit],
    start: datetime,
    end: datetime,
    *,
    now: datetime | None = None,
    include_correlations: bool = True,
    include_patterns: bool = True,
    include_insights: bool = True,
    include_comparative: bool = True,
    title: str = "Habit Analytics Report",
    profile: Profile | None = None,
) -> AnalyticsReport:
    """Run every requested analysis over [start, end] and bundle the results."""
    start = reference_time(start)
    end = reference_time(end)
    now = reference_time(now if now is not None else end)
    profile = profile or Profile()
    days = (end - start) // timedelta(days=1)
    if days <= 0:
        raise ValueError(f"Invalid report period: {start.isoformat()} to {end.isoformat()}")

    correlations = (
        calculate_habit_correlations(habits, days, now)[: profile.max_correlations]
        if include_correlations else []
    )
    patterns = (
        detect_productivity_patterns(habits, days, now)[: profile.max_patterns]
        if include_patterns else []
    )
    insights = (
        generate_habit_insights(habits, days, now)[: profile.max_insights]
        if include_insights else []
    )
    comparative = (
        generate_comparative_analytics(habits, "month", now)
        if include_comparative else ComparativeAnalytics(timeframe="month")
    )

    return AnalyticsReport(
        id=_report_id(habits, now),
        title=title,
        generated_at=epoch_ms(now),
        start=epoch_ms(start),
        end=epoch_ms(end),
        habits=tuple(h.id for h in habits),
        correlations=tuple(correlations),
        patterns=tuple(patterns),
        insights=tuple(insights),
        comparative=comparative,
        summary=build_summary(len(habits), correlations, patterns, insights, comparative, days),
        recommendations=tuple(build_recommendations(correlations, patterns, insights, comparative)),
    )


def _period_report(habits: list[Habit], days: int, title: str, now: datetime | None, profile: Profile | None, **options: Any) -> AnalyticsReport:
    end = reference_time(now)
    return generate_report(
        habits, end - timedelta(days=days), end,
        now=end, title=title, profile=profile, **options,
    )


def generate_weekly_report(habits: list[Habit], now: datetime | None = None, profile: Profile | None = None) -> AnalyticsReport:
    # A week is too short for meaningful correlations.
    return _period_report(
        habits, 7, "Weekly Habit Report", now, profile, include_correlations=False
    )


def generate_monthly_report(habits: list[Habit], now: datetime | None = None, profile: Profile | None = None) -> AnalyticsReport:
    return _period_report(habits, 30, "Monthly Habit Report", now, profile)


def generate_quarterly_report(habits: list[Habit], now: datetime | None = None, profile: Profile | None = None) -> AnalyticsReport:
    return _period_report(habits, 90, "Quarterly Habit Report", now, profile)


def generate_habit_specific_report(
    habits: list[Habit],
    habit_ids: list[str],
    days: int = 30,
    now: datetime | None = None,
    profile: Profile | None = None,
) -> AnalyticsReport:
    selected = [h for h in habits if h.id in habit_ids]
    names = ", ".join(h.name for h in selected)
    return _period_report(selected, days, f"Habit-Specific Report: {names}", now, profile)


REPORT_KINDS = {
    "weekly": generate_weekly_report,
    "monthly": generate_monthly_report,
    "quarterly": generate_quarterly_report,
}


def generate_report_of_kind(kind: str, habits: list[Habit], now: datetime | None = None, profile: Profile | None = None) -> AnalyticsReport:
    try:
        builder = REPORT_KINDS[kind]
    except KeyError:
        raise ValueError(f"Invalid report kind: {kind!r}") from None
    return builder(habits, now=now, profile=profile)


# ── Export ────────────────────────────────────────────────────


def _fmt_datetime(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _fmt_date(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def _pct(value: float) -> int:
    return int(round_half_up(value * 100))


def export_json(report: AnalyticsReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def export_markdown(report: AnalyticsReport) -> str:
    comparative = report.comparative
    lines = [
        f"# {report.title}",
        "",
        f"**Generated:** {_fmt_datetime(report.generated_at)}",
        f"**Timeframe:** {_fmt_date(report.start)} - {_fmt_date(report.end)}",
        "",
        "## Executive Summary",
        "",
        report.summary,
        "",
    ]

    if comparative.overall_score > 0:
        lines += ["## Overall Performance Score", "", f"**{comparative.overall_score}/100**", ""]
        lines += [f"- {line}" for line in comparative.insights]
        lines.append("")

    if report.insights:
        lines += ["## Key Insights", ""]
        for n, insight in enumerate(report.insights[:5], 1):
            lines += [
                f"### {n}. {insight.habit_name}",
                f"**Confidence:** {_pct(insight.confidence)}%",
                "",
                insight.insight,
                "",
            ]
            if insight.recommendation:
                lines += [f"**Recommendation:** {insight.recommendation}", ""]

    if report.correlations:
        lines += ["## Habit Correlations", ""]
        for n, c in enumerate(report.correlations[:5], 1):
            lines += [
                f"### {n}. {c.habit1_name} <-> {c.habit2_name}",
                f"- **Correlation:** {c.correlation_coefficient:.3f}",
                f"- **Significance:** {c.significance}",
                f"- **Relationship:** {c.relationship}",
                f"- **Sample Size:** {c.sample_size} days",
                "",
            ]

    if report.patterns:
        lines += ["## Productivity Patterns", ""]
        for n, p in enumerate(report.patterns[:5], 1):
            lines += [
                f"### {n}. {p.description}",
                f"- **Type:** {p.type}",
                f"- **Impact:** {p.impact}",
                f"- **Strength:** {_pct(p.strength)}%",
                f"- **Recommendation:** {p.recommendation}",
                "",
            ]

    if report.recommendations:
        lines += ["## Recommendations", ""]
        lines += [f"{n}. {rec}" for n, rec in enumerate(report.recommendations, 1)]
        lines.append("")

    if comparative.habits:
        lines += [
            "## Habit Performance Summary",
            "",
            "| Habit | Score | Completion Rate | Trend |",
            "|-------|-------|-----------------|-------|",
        ]
        for h in comparative.habits:
            lines.append(f"| {h.habit_name} | {h.score}/100 | {_pct(h.completion_rate)}% | {h.trend} |")

    lines += ["", "---", "*Report generated by HabitLens*"]
    return "\n".join(lines) + "\n"


def _heading(text: str, underline: str = "-") -> list[str]:
    return [text, underline * len(text)]


def export_text(report: AnalyticsReport) -> str:
    lines = _heading(report.title, "=") + [
        "",
        f"Generated: {_fmt_datetime(report.generated_at)}",
        f"Timeframe: {_fmt_date(report.start)} - {_fmt_date(report.end)}",
        "",
    ]
    lines += _heading("EXECUTIVE SUMMARY") + [report.summary, ""]

    if report.comparative.overall_score > 0:
        lines += [f"OVERALL PERFORMANCE SCORE: {report.comparative.overall_score}/100", ""]

    if report.insights:
        lines += _heading("KEY INSIGHTS")
        for n, insight in enumerate(report.insights[:5], 1):
            lines.append(f"{n}. {insight.habit_name}: {insight.insight}")
            if insight.recommendation:
                lines.append(f"   Recommendation: {insight.recommendation}")
            lines += [f"   Confidence: {_pct(insight.confidence)}%", ""]

    if report.recommendations:
        lines += _heading("RECOMMENDATIONS")
        lines += [f"{n}. {rec}" for n, rec in enumerate(report.recommendations, 1)]
        lines.append("")

    if report.correlations:
        lines += _heading("HABIT CORRELATIONS")
        for n, c in enumerate(report.correlations[:3], 1):
            lines += [
                f"{n}. {c.habit1_name} <-> {c.habit2_name}",
                f"   Correlation: {c.correlation_coefficient:.3f} ({c.significance})",
                "",
            ]

    lines += ["", "Report generated by HabitLens"]
    return "\n".join(lines) + "\n"


def export_report(report: AnalyticsReport, fmt: str = "md") -> str:
    if fmt == "json":
        return export_json(report)
    if fmt == "md":
        return export_markdown(report)
    if fmt == "txt":
        return export_text(report)
    raise ValueError(f"Invalid export format: {fmt!r}")


# ── Storage & Refresh ─────────────────────────────────────────


def save_report(report: AnalyticsReport, root: Path | None = None) -> Path:
    """Write a report to reports/<id>.json and return the path."""
    if root is None:
        root = workspace_root()
    path = reports_dir(root) / f"{report.id}.json"
    write_json_atomic(path, report.to_dict())
    return path


def load_saved_report(report_id: str, root: Path | None = None) -> AnalyticsReport | None:
    if not _REPORT_ID.match(report_id):
        return None
    if root is None:
        root = workspace_root()
    data = read_json(reports_dir(root) / f"{report_id}.json")
    if not data:
        return None
    return AnalyticsReport.from_dict(data)


def list_saved_reports(root: Path | None = None) -> list[AnalyticsReport]:
    """All saved reports, newest first. Unreadable files are skipped."""
    if root is None:
        root = workspace_root()
    directory = reports_dir(root)
    if not directory.exists():
        return []

    reports = []
    for path in directory.glob("*.json"):
        try:
            reports.append(AnalyticsReport.from_dict(read_json(path)))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping unreadable report %s: %s", path.name, e)
    reports.sort(key=lambda r: r.generated_at, reverse=True)
    return reports


def refresh_analytics(root: Path | None = None, now: datetime | None = None) -> AnalyticsSnapshot:
    """Recompute all analyses from habits.json and save to analytics.json."""
    if root is None:
        root = workspace_root()
    profile = load_profile(root)
    habits = load_habits(root)
    now = reference_time(now) if now is not None else datetime.now(timezone.utc)
    days = profile.lookback_days

    snapshot = AnalyticsSnapshot(
        generated_at=now.astimezone(get_user_timezone(root)).isoformat(timespec="seconds"),
        lookback_days=days,
        correlations=calculate_habit_correlations(habits, days, now),
        patterns=detect_productivity_patterns(habits, days, now),
        insights=generate_habit_insights(habits, days, now),
        comparative=generate_comparative_analytics(habits, profile.default_timeframe, now),
    )
    write_json_atomic(analytics_path(root), snapshot.to_dict())
    logger.info("Analytics refreshed for %d habits", len(habits))
    return snapshot


def load_analytics(root: Path | None = None) -> dict[str, Any] | None:
    """Load cached analytics from analytics.json."""
    if root is None:
        root = workspace_root()
    data = read_json(analytics_path(root))
    return data or None
