"""Typed dataclasses for the HabitLens data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.

Analysis outputs are frozen: they are produced fresh on every call
and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


TIMEFRAME_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}


def timeframe_days(timeframe: str) -> int:
    """Map a timeframe name to its lookback window in days."""
    try:
        return TIMEFRAME_DAYS[timeframe]
    except KeyError:
        raise ValueError(f"Invalid timeframe: {timeframe!r}") from None


# ── Input (from the storage export) ───────────────────────────


@dataclass(frozen=True)
class Completion:
    date: str  # YYYY-MM-DD
    completed: bool = False
    timestamp: int | None = None  # epoch ms when the record was written

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Completion:
        ts = d.get("timestamp")
        return cls(
            date=str(d.get("date", "")),
            completed=bool(d.get("completed", False)),
            timestamp=int(ts) if ts is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"date": self.date, "completed": self.completed}
        if self.timestamp is not None:
            d["timestamp"] = self.timestamp
        return d


@dataclass(frozen=True)
class Habit:
    id: str
    name: str = ""
    completions: tuple[Completion, ...] = ()
    category: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            completions=tuple(
                Completion.from_dict(c)
                for c in (d.get("completions") or [])
                if isinstance(c, dict)
            ),
            category=str(d.get("category", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "completions": [c.to_dict() for c in self.completions],
        }
        if self.category:
            d["category"] = self.category
        return d


# ── Profile ───────────────────────────────────────────────────


@dataclass
class Profile:
    timezone: str = "UTC"
    default_timeframe: str = "month"
    lookback_days: int = 90
    max_correlations: int = 10
    max_patterns: int = 10
    max_insights: int = 15

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Profile:
        if not d or not isinstance(d, dict):
            return cls()
        timeframe = str(d.get("default_timeframe", "month")).strip().lower()
        if timeframe not in TIMEFRAME_DAYS:
            timeframe = "month"
        limits = d.get("report_limits") or {}
        if not isinstance(limits, dict):
            limits = {}
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            default_timeframe=timeframe,
            lookback_days=max(1, int(d.get("lookback_days", 90))),
            max_correlations=max(0, int(limits.get("correlations", 10))),
            max_patterns=max(0, int(limits.get("patterns", 10))),
            max_insights=max(0, int(limits.get("insights", 15))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "default_timeframe": self.default_timeframe,
            "lookback_days": self.lookback_days,
            "report_limits": {
                "correlations": self.max_correlations,
                "patterns": self.max_patterns,
                "insights": self.max_insights,
            },
        }


# ── Derived series ────────────────────────────────────────────


@dataclass(frozen=True)
class SeriesPoint:
    date: str
    completed: bool


@dataclass(frozen=True)
class Streak:
    start: str
    end: str
    length: int

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end, "length": self.length}


@dataclass(frozen=True)
class WeekBucket:
    week: str  # ISO date of the Sunday starting the week
    completed: int
    total: int

    @property
    def completion_rate(self) -> float:
        return self.completed / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "completed": self.completed,
            "total": self.total,
            "completionRate": self.completion_rate,
        }


# ── Analysis outputs ──────────────────────────────────────────


@dataclass(frozen=True)
class HabitCorrelation:
    habit1_id: str
    habit1_name: str
    habit2_id: str
    habit2_name: str
    correlation_coefficient: float  # -1 to 1
    significance: str  # high, moderate, low, none
    relationship: str  # positive, negative, neutral
    sample_size: int
    confidence_level: float

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitCorrelation:
        return cls(
            habit1_id=str(d.get("habit1Id", "")),
            habit1_name=str(d.get("habit1Name", "")),
            habit2_id=str(d.get("habit2Id", "")),
            habit2_name=str(d.get("habit2Name", "")),
            correlation_coefficient=float(d.get("correlationCoefficient", 0.0)),
            significance=str(d.get("significance", "none")),
            relationship=str(d.get("relationship", "neutral")),
            sample_size=int(d.get("sampleSize", 0)),
            confidence_level=float(d.get("confidenceLevel", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habit1Id": self.habit1_id,
            "habit1Name": self.habit1_name,
            "habit2Id": self.habit2_id,
            "habit2Name": self.habit2_name,
            "correlationCoefficient": self.correlation_coefficient,
            "significance": self.significance,
            "relationship": self.relationship,
            "sampleSize": self.sample_size,
            "confidenceLevel": self.confidence_level,
        }


@dataclass(frozen=True)
class ProductivityPattern:
    id: str
    type: str  # daily, weekly, monthly, seasonal
    pattern: str
    description: str
    habits: tuple[str, ...]
    strength: float  # 0-1
    frequency: int
    impact: str  # high, medium, low
    recommendation: str
    detected_at: int  # epoch ms

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ProductivityPattern:
        return cls(
            id=str(d.get("id", "")),
            type=str(d.get("type", "")),
            pattern=str(d.get("pattern", "")),
            description=str(d.get("description", "")),
            habits=tuple(str(h) for h in (d.get("habits") or [])),
            strength=float(d.get("strength", 0.0)),
            frequency=int(d.get("frequency", 0)),
            impact=str(d.get("impact", "low")),
            recommendation=str(d.get("recommendation", "")),
            detected_at=int(d.get("detectedAt", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "pattern": self.pattern,
            "description": self.description,
            "habits": list(self.habits),
            "strength": self.strength,
            "frequency": self.frequency,
            "impact": self.impact,
            "recommendation": self.recommendation,
            "detectedAt": self.detected_at,
        }


@dataclass(frozen=True)
class HabitInsight:
    habit_id: str
    habit_name: str
    type: str  # streak_prediction, optimal_timing, completion_trend, difficulty_analysis
    insight: str
    confidence: float  # 0-1
    data_points: int
    actionable: bool = True
    recommendation: str | None = None
    chart_data: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitInsight:
        return cls(
            habit_id=str(d.get("habitId", "")),
            habit_name=str(d.get("habitName", "")),
            type=str(d.get("type", "")),
            insight=str(d.get("insight", "")),
            confidence=float(d.get("confidence", 0.0)),
            data_points=int(d.get("dataPoints", 0)),
            actionable=bool(d.get("actionable", True)),
            recommendation=d.get("recommendation"),
            chart_data=tuple(d.get("chartData") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "type": self.type,
            "insight": self.insight,
            "confidence": self.confidence,
            "dataPoints": self.data_points,
            "actionable": self.actionable,
        }
        if self.recommendation is not None:
            d["recommendation"] = self.recommendation
        if self.chart_data:
            d["chartData"] = [dict(p) for p in self.chart_data]
        return d


@dataclass(frozen=True)
class HabitScore:
    habit_id: str
    habit_name: str
    completion_rate: float
    streak_average: float
    consistency: float
    trend: str  # improving, declining, stable
    trend_slope: float
    score: int  # 0-100

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitScore:
        return cls(
            habit_id=str(d.get("habitId", "")),
            habit_name=str(d.get("habitName", "")),
            completion_rate=float(d.get("completionRate", 0.0)),
            streak_average=float(d.get("streakAverage", 0.0)),
            consistency=float(d.get("consistency", 0.0)),
            trend=str(d.get("trend", "stable")),
            trend_slope=float(d.get("trendSlope", 0.0)),
            score=int(d.get("score", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "completionRate": self.completion_rate,
            "streakAverage": self.streak_average,
            "consistency": self.consistency,
            "trend": self.trend,
            "trendSlope": self.trend_slope,
            "score": self.score,
        }


@dataclass(frozen=True)
class ComparativeAnalytics:
    timeframe: str
    habits: tuple[HabitScore, ...] = ()
    top_performer: str = ""
    needs_attention: tuple[str, ...] = ()
    overall_score: int = 0
    insights: tuple[str, ...] = ()

    def habit(self, habit_id: str) -> HabitScore | None:
        return next((h for h in self.habits if h.habit_id == habit_id), None)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ComparativeAnalytics:
        return cls(
            timeframe=str(d.get("timeframe", "month")),
            habits=tuple(HabitScore.from_dict(h) for h in (d.get("habits") or [])),
            top_performer=str(d.get("topPerformer", "")),
            needs_attention=tuple(str(h) for h in (d.get("needsAttention") or [])),
            overall_score=int(d.get("overallScore", 0)),
            insights=tuple(str(i) for i in (d.get("insights") or [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "habits": [h.to_dict() for h in self.habits],
            "topPerformer": self.top_performer,
            "needsAttention": list(self.needs_attention),
            "overallScore": self.overall_score,
            "insights": list(self.insights),
        }


# ── Reports ───────────────────────────────────────────────────


@dataclass(frozen=True)
class AnalyticsReport:
    id: str
    title: str
    generated_at: int  # epoch ms
    start: int  # epoch ms
    end: int  # epoch ms
    habits: tuple[str, ...]
    correlations: tuple[HabitCorrelation, ...]
    patterns: tuple[ProductivityPattern, ...]
    insights: tuple[HabitInsight, ...]
    comparative: ComparativeAnalytics
    summary: str
    recommendations: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AnalyticsReport:
        timeframe = d.get("timeframe") or {}
        sections = d.get("sections") or {}
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            generated_at=int(d.get("generatedAt", 0)),
            start=int(timeframe.get("start", 0)),
            end=int(timeframe.get("end", 0)),
            habits=tuple(str(h) for h in (d.get("habits") or [])),
            correlations=tuple(
                HabitCorrelation.from_dict(c) for c in (sections.get("correlations") or [])
            ),
            patterns=tuple(
                ProductivityPattern.from_dict(p) for p in (sections.get("patterns") or [])
            ),
            insights=tuple(
                HabitInsight.from_dict(i) for i in (sections.get("insights") or [])
            ),
            comparative=ComparativeAnalytics.from_dict(sections.get("comparative") or {}),
            summary=str(d.get("summary", "")),
            recommendations=tuple(str(r) for r in (d.get("recommendations") or [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "generatedAt": self.generated_at,
            "timeframe": {"start": self.start, "end": self.end},
            "habits": list(self.habits),
            "sections": {
                "correlations": [c.to_dict() for c in self.correlations],
                "patterns": [p.to_dict() for p in self.patterns],
                "insights": [i.to_dict() for i in self.insights],
                "comparative": self.comparative.to_dict(),
            },
            "summary": self.summary,
            "recommendations": list(self.recommendations),
        }


@dataclass
class AnalyticsSnapshot:
    """Cached result of a full analytics refresh (analytics.json)."""

    generated_at: str = ""
    lookback_days: int = 90
    correlations: list[HabitCorrelation] = field(default_factory=list)
    patterns: list[ProductivityPattern] = field(default_factory=list)
    insights: list[HabitInsight] = field(default_factory=list)
    comparative: ComparativeAnalytics | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "lookbackDays": self.lookback_days,
            "correlations": [c.to_dict() for c in self.correlations],
            "patterns": [p.to_dict() for p in self.patterns],
            "insights": [i.to_dict() for i in self.insights],
            "comparative": self.comparative.to_dict() if self.comparative else None,
        }
