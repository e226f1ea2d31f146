"""Tests for habitlens/models.py: from_dict / to_dict round-trips."""

import pytest

from habitlens.models import (
    ComparativeAnalytics,
    Completion,
    Habit,
    HabitCorrelation,
    HabitInsight,
    HabitScore,
    Profile,
    timeframe_days,
)


def test_habit_from_dict():
    h = Habit.from_dict({
        "id": "run",
        "name": "Morning run",
        "category": "health",
        "completions": [
            {"date": "2024-01-01", "completed": True, "timestamp": 1704100000000},
            {"date": "2024-01-02"},
            "garbage",
        ],
    })
    assert h.id == "run"
    assert h.category == "health"
    assert h.completions == (
        Completion("2024-01-01", True, 1704100000000),
        Completion("2024-01-02", False, None),
    )


def test_habit_to_dict_roundtrip():
    h = Habit(id="read", name="Read", completions=(Completion("2024-01-01", True),))
    d = h.to_dict()
    assert d == {"id": "read", "name": "Read", "completions": [{"date": "2024-01-01", "completed": True}]}
    assert Habit.from_dict(d) == h


def test_habit_defaults():
    h = Habit.from_dict({"id": "x"})
    assert h.name == ""
    assert h.completions == ()


def test_timeframe_days():
    assert timeframe_days("week") == 7
    assert timeframe_days("year") == 365
    with pytest.raises(ValueError):
        timeframe_days("fortnight")


def test_profile_from_dict():
    p = Profile.from_dict({
        "timezone": "Europe/Berlin",
        "default_timeframe": "Quarter",
        "lookback_days": 60,
        "report_limits": {"correlations": 3},
    })
    assert p.timezone == "Europe/Berlin"
    assert p.default_timeframe == "quarter"
    assert p.lookback_days == 60
    assert p.max_correlations == 3
    assert p.max_patterns == 10
    assert p.max_insights == 15
    assert Profile.from_dict(p.to_dict()) == p


def test_profile_bad_values_fall_back():
    p = Profile.from_dict({"default_timeframe": "decade", "lookback_days": 0, "report_limits": "none"})
    assert p.default_timeframe == "month"
    assert p.lookback_days == 1
    assert p.max_insights == 15
    assert Profile.from_dict(None) == Profile()


def test_correlation_camel_case():
    c = HabitCorrelation("a", "A", "b", "B", 0.5, "moderate", "positive", 12, 0.9)
    d = c.to_dict()
    assert d["habit1Id"] == "a"
    assert d["correlationCoefficient"] == 0.5
    assert d["sampleSize"] == 12
    assert HabitCorrelation.from_dict(d) == c


def test_insight_optional_fields():
    i = HabitInsight("a", "A", "difficulty_analysis", "text", 0.8, 20)
    d = i.to_dict()
    assert "recommendation" not in d
    assert "chartData" not in d
    assert HabitInsight.from_dict(d) == i


def test_comparative_lookup():
    score = HabitScore("a", "A", 1.0, 5.0, 1.0, "stable", 0.0, 87)
    comparative = ComparativeAnalytics(timeframe="week", habits=(score,), top_performer="a", overall_score=87)
    assert comparative.habit("a") is score
    assert comparative.habit("missing") is None
    assert ComparativeAnalytics.from_dict(comparative.to_dict()) == comparative


def test_profile_negative_limits_clamp_to_zero():
    p = Profile.from_dict({"report_limits": {"correlations": -1, "patterns": -5, "insights": 3}})
    assert p.max_correlations == 0
    assert p.max_patterns == 0
    assert p.max_insights == 3
