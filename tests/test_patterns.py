"""Tests for habitlens/patterns.py."""

import pytest

from habitlens.patterns import (
    detect_productivity_patterns,
    detect_streak_patterns,
    detect_weekly_patterns,
    find_habit_clusters,
)
from habitlens.series import cutoff_for

from helpers import NOW, NOW_MS, daily_habit


def _declining(habit_id: str = "floss", name: str = "Floss"):
    # Sunday weeks: Feb 4 and Feb 11 fully done, Feb 18 and Feb 25 all missed.
    return daily_habit(habit_id, "2024-02-04", "2024-03-01", lambda i, d: d <= "2024-02-17", name=name)


def test_high_performance_days_and_clusters():
    habits = [daily_habit(h, "2024-02-01", "2024-03-01") for h in ("run", "read", "write")]
    patterns = detect_productivity_patterns(habits, 30, NOW)

    daily = [p for p in patterns if p.pattern == "high_performance"]
    clusters = [p for p in patterns if p.pattern == "habit_clustering"]
    assert len(daily) == 7
    assert len(clusters) == 3
    assert len(patterns) == 10

    sunday = patterns[0]
    assert sunday.id == f"daily_0_{NOW_MS}"
    assert sunday.description == "High completion rate on Sundays (100%)"
    assert sunday.impact == "high"
    assert sunday.strength == 1.0
    assert sunday.habits == ("run", "read", "write")
    assert sunday.recommendation.startswith("Sundays are your strongest days")

    assert clusters[0].id == f"cluster_run_read_{NOW_MS}"
    assert clusters[0].type == "daily"
    assert clusters[0].description == "Run and Read are often completed together (100% of the time)"


def test_low_performance_days():
    habits = [daily_habit(h, "2024-02-01", "2024-03-01", lambda i, d: False) for h in ("a", "b", "c")]
    patterns = detect_productivity_patterns(habits, 30, NOW)
    assert len(patterns) == 7
    monday = next(p for p in patterns if p.id.startswith("daily_1_"))
    assert monday.pattern == "low_performance"
    assert monday.description == "Low completion rate on Mondays (0%)"
    assert monday.impact == "medium"
    assert monday.strength == 1.0


def test_daily_needs_ten_entries():
    habits = [daily_habit("a", "2024-02-01", "2024-03-01")]
    patterns = detect_productivity_patterns(habits, 30, NOW)
    assert [p for p in patterns if p.type == "daily"] == []


def test_declining_weekly_trend():
    [pattern] = detect_productivity_patterns([_declining()], 90, NOW)
    assert pattern.id == f"weekly_trend_floss_{NOW_MS}"
    assert pattern.type == "weekly"
    assert pattern.pattern == "declining_trend"
    assert pattern.description == "Floss shows declining weekly trend (-40% per week)"
    assert pattern.strength == pytest.approx(0.4)
    assert pattern.frequency == 4
    assert pattern.impact == "high"
    assert pattern.recommendation == "Floss needs attention - consider adjusting your approach"


def test_weekly_trend_needs_four_weeks():
    habit = daily_habit("h", "2024-02-11", "2024-03-01", lambda i, d: d <= "2024-02-17")
    assert detect_weekly_patterns([habit], cutoff_for(90, NOW), NOW_MS) == []


def test_consistent_streaks():
    # Six days on, one day off.
    habit = daily_habit("yoga", "2024-02-01", "2024-03-01", lambda i, d: i % 7 != 6, name="Yoga")
    [pattern] = detect_streak_patterns([habit], cutoff_for(30, NOW), NOW_MS)
    assert pattern.pattern == "consistent_streaks"
    assert pattern.type == "weekly"
    assert pattern.description == "Yoga shows strong streak patterns (avg: 5 days, max: 6 days)"
    assert pattern.strength == pytest.approx(0.52)
    assert pattern.frequency == 5
    assert pattern.impact == "high"


def test_short_streaks_are_not_a_pattern():
    habit = daily_habit("h", "2024-02-01", "2024-03-01", lambda i, d: i % 3 != 2)
    assert detect_streak_patterns([habit], cutoff_for(30, NOW), NOW_MS) == []


def test_clusters_below_threshold():
    a = daily_habit("a", "2024-02-01", "2024-03-01")
    b = daily_habit("b", "2024-02-01", "2024-03-01", lambda i, d: i % 2 == 0)
    [cluster] = find_habit_clusters([a, b], cutoff_for(30, NOW))
    assert cluster["co_completion_rate"] == 0.5
    assert cluster["occurrences"] == 30
    assert [p for p in detect_productivity_patterns([a, b], 30, NOW) if p.pattern == "habit_clustering"] == []


def test_sorted_by_strength():
    habits = [
        _declining(),
        daily_habit("yoga", "2024-02-01", "2024-03-01", lambda i, d: i % 7 != 6),
        daily_habit("run", "2024-02-01", "2024-03-01"),
    ]
    strengths = [p.strength for p in detect_productivity_patterns(habits, 90, NOW)]
    assert strengths == sorted(strengths, reverse=True)


def test_empty_and_invalid():
    assert detect_productivity_patterns([], 90, NOW) == []
    with pytest.raises(ValueError):
        detect_productivity_patterns([], -1, NOW)


def test_deterministic():
    habits = [_declining(), daily_habit("run", "2024-02-01", "2024-03-01")]
    first = [p.to_dict() for p in detect_productivity_patterns(habits, 90, NOW)]
    second = [p.to_dict() for p in detect_productivity_patterns(habits, 90, NOW)]
    assert first == second
