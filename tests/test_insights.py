"""Tests for habitlens/insights.py."""

from datetime import date

import pytest

from habitlens.insights import (
    analyze_optimal_timing,
    classify_difficulty,
    generate_habit_insights,
    predict_streak,
)
from habitlens.series import cutoff_for

from helpers import NOW, daily_habit


def test_consistent_habit():
    habit = daily_habit("run", "2024-02-01", "2024-03-01", name="Run")
    insights = generate_habit_insights([habit], 30, NOW)
    assert [i.type for i in insights] == ["difficulty_analysis", "streak_prediction"]

    difficulty, prediction = insights
    assert difficulty.insight == "Run appears to be easy for you (100% completion rate)"
    assert difficulty.confidence == 0.8
    assert difficulty.data_points == 30
    assert difficulty.recommendation.startswith("This habit is well-established!")

    assert prediction.insight == "You're likely to extend your 30-day streak to 33-37 days"
    assert prediction.confidence == 0.8
    assert prediction.data_points == 14
    assert prediction.recommendation == "Keep up your excellent consistency!"
    assert prediction.chart_data[0] == {"date": "2024-03-01", "completed": 1}


def test_declining_habit():
    habit = daily_habit("floss", "2024-02-04", "2024-03-01", lambda i, d: d <= "2024-02-17", name="Floss")
    insights = generate_habit_insights([habit], 90, NOW)
    assert [i.type for i in insights] == ["completion_trend", "difficulty_analysis", "streak_prediction"]

    trend, difficulty, prediction = insights
    assert trend.insight == "Your Floss completion rate is declining by 40% per week"
    assert trend.confidence == pytest.approx(0.8)
    assert trend.data_points == 4
    assert trend.recommendation == "Consider adjusting your approach or schedule for this habit"
    assert len(trend.chart_data) == 4

    assert difficulty.insight == "Floss appears to be challenging for you (52% completion rate)"

    assert prediction.insight == "Consider restarting with a simpler approach to build momentum"
    assert prediction.confidence == 0.7


def test_optimal_timing():
    habit = daily_habit(
        "gym", "2024-01-01", "2024-03-01",
        lambda i, d: date.fromisoformat(d).weekday() == 0,
        name="Gym",
    )
    insight = analyze_optimal_timing(habit, cutoff_for(90, NOW))
    assert insight is not None
    assert insight.insight == "Your best day for Gym is Monday (100% success rate)"
    assert insight.confidence == 0.9
    assert insight.data_points == 61
    assert insight.recommendation == "Consider scheduling Gym on Mondays when possible"
    assert len(insight.chart_data) == 7


def test_optimal_timing_needs_spread():
    habit = daily_habit("run", "2024-01-01", "2024-03-01")
    assert analyze_optimal_timing(habit, cutoff_for(90, NOW)) is None


def test_streak_prediction_mixed():
    habit = daily_habit("h", "2024-02-17", "2024-03-01", lambda i, d: i % 2 == 0)
    insight = predict_streak(habit, cutoff_for(30, NOW), NOW)
    assert insight.insight == "Mixed recent performance - focus on consistency to build momentum"
    assert insight.confidence == 0.6
    assert insight.recommendation == "Focus on completing this habit for the next 3 days to build momentum"


def test_streak_prediction_at_risk():
    habit = daily_habit("h", "2024-02-17", "2024-03-01", lambda i, d: d == "2024-03-01")
    insight = predict_streak(habit, cutoff_for(30, NOW), NOW)
    assert insight.insight == "Your current streak may be at risk - extra focus needed"
    assert insight.confidence == 0.7


def test_streak_prediction_needs_a_week():
    habit = daily_habit("h", "2024-02-25", "2024-03-01")
    assert predict_streak(habit, cutoff_for(30, NOW), NOW) is None


def test_classify_difficulty():
    assert classify_difficulty(0.9, 8) == "easy"
    assert classify_difficulty(0.9, 5) == "moderate"
    assert classify_difficulty(0.5, 10) == "challenging"
    assert classify_difficulty(0.3, 10) == "difficult"


def test_sorted_by_confidence_and_deterministic():
    habits = [
        daily_habit("floss", "2024-02-04", "2024-03-01", lambda i, d: d <= "2024-02-17"),
        daily_habit("gym", "2024-01-01", "2024-03-01", lambda i, d: date.fromisoformat(d).weekday() == 0),
        daily_habit("run", "2024-01-01", "2024-03-01"),
    ]
    insights = generate_habit_insights(habits, 90, NOW)
    confidences = [i.confidence for i in insights]
    assert confidences == sorted(confidences, reverse=True)
    assert [i.to_dict() for i in insights] == [i.to_dict() for i in generate_habit_insights(habits, 90, NOW)]


def test_empty_and_invalid():
    assert generate_habit_insights([], 90, NOW) == []
    with pytest.raises(ValueError):
        generate_habit_insights([], 0, NOW)
