"""Per-habit insight generation.

Each habit goes through four independent analyses. An analysis that lacks
enough data returns None and contributes nothing.
"""

from __future__ import annotations

from datetime import datetime

from habitlens.models import Habit, HabitInsight
from habitlens.series import (
    DAY_NAMES,
    completion_rate,
    cutoff_for,
    group_by_week,
    reference_time,
    weekday_stats,
    window_completions,
)
from habitlens.stats import calculate_trend, round_half_up
from habitlens.streaks import average_streak_length, current_streak, find_streaks

DEFAULT_LOOKBACK_DAYS = 90

TREND_MIN_WEEKS = 4
TREND_MIN_SLOPE = 0.05
TIMING_MIN_WEEKDAYS = 3
TIMING_MIN_BEST_DAY_ENTRIES = 5
TIMING_MIN_SPREAD = 0.3
DIFFICULTY_MIN_RECORDS = 20
PREDICTION_RECENT_DAYS = 14
PREDICTION_MIN_RECORDS = 7
MAX_CONFIDENCE = 0.9

DIFFICULTY_RECOMMENDATIONS = {
    "easy": "This habit is well-established! Consider increasing the challenge or adding a related habit.",
    "moderate": "You're doing well with this habit. Focus on consistency to build longer streaks.",
    "challenging": "This habit needs attention. Consider breaking it into smaller steps or adjusting your schedule.",
    "difficult": "This habit is struggling. Consider simplifying it or examining what barriers are preventing completion.",
}


def _pct(value: float) -> int:
    return int(round_half_up(value * 100))


def analyze_trend(habit: Habit, cutoff: datetime) -> HabitInsight | None:
    weeks = group_by_week(habit, cutoff)
    if len(weeks) < TREND_MIN_WEEKS:
        return None

    trend = calculate_trend([w.completion_rate for w in weeks])
    if abs(trend) < TREND_MIN_SLOPE:
        return None

    if trend > 0:
        text = f"Your {habit.name} completion rate is improving by {_pct(trend)}% per week"
        recommendation = "Keep up the great momentum!"
    else:
        text = f"Your {habit.name} completion rate is declining by {_pct(abs(trend))}% per week"
        recommendation = "Consider adjusting your approach or schedule for this habit"

    return HabitInsight(
        habit_id=habit.id,
        habit_name=habit.name,
        type="completion_trend",
        insight=text,
        confidence=min(abs(trend) * 2, MAX_CONFIDENCE),
        data_points=len(weeks),
        recommendation=recommendation,
        chart_data=tuple(w.to_dict() for w in weeks),
    )


def analyze_optimal_timing(habit: Habit, cutoff: datetime) -> HabitInsight | None:
    stats = weekday_stats(window_completions(habit, cutoff))
    if len(stats) < TIMING_MIN_WEEKDAYS:
        return None

    day_rates = [
        {"day": day, "rate": done / total, "total": total}
        for day, (done, total) in stats.items()
    ]
    # Ties keep the earliest entry, matching a left-to-right scan.
    best = day_rates[0]
    worst = day_rates[0]
    for entry in day_rates[1:]:
        if entry["rate"] > best["rate"]:
            best = entry
        if entry["rate"] < worst["rate"]:
            worst = entry

    spread = best["rate"] - worst["rate"]
    if spread < TIMING_MIN_SPREAD or best["total"] < TIMING_MIN_BEST_DAY_ENTRIES:
        return None

    name = DAY_NAMES[best["day"]]
    return HabitInsight(
        habit_id=habit.id,
        habit_name=habit.name,
        type="optimal_timing",
        insight=f"Your best day for {habit.name} is {name} ({_pct(best['rate'])}% success rate)",
        confidence=min(spread * 1.5, MAX_CONFIDENCE),
        data_points=sum(d["total"] for d in day_rates),
        recommendation=f"Consider scheduling {habit.name} on {name}s when possible",
        chart_data=tuple({"day": DAY_NAMES[d["day"]], "rate": d["rate"]} for d in day_rates),
    )


def classify_difficulty(rate: float, avg_streak: float) -> str:
    if rate >= 0.8 and avg_streak >= 7:
        return "easy"
    if rate >= 0.6 and avg_streak >= 4:
        return "moderate"
    if rate >= 0.4:
        return "challenging"
    return "difficult"


def analyze_difficulty(habit: Habit, cutoff: datetime) -> HabitInsight | None:
    completions = window_completions(habit, cutoff)
    if len(completions) < DIFFICULTY_MIN_RECORDS:
        return None

    rate = completion_rate(completions)
    avg_streak = average_streak_length(find_streaks(habit, cutoff))
    difficulty = classify_difficulty(rate, avg_streak)

    return HabitInsight(
        habit_id=habit.id,
        habit_name=habit.name,
        type="difficulty_analysis",
        insight=f"{habit.name} appears to be {difficulty} for you ({_pct(rate)}% completion rate)",
        confidence=0.8,
        data_points=len(completions),
        recommendation=DIFFICULTY_RECOMMENDATIONS[difficulty],
        chart_data=(
            {"label": "Completion Rate", "value": rate},
            {"label": "Average Streak", "value": avg_streak},
        ),
    )


def predict_streak(habit: Habit, cutoff: datetime, now: datetime | None = None) -> HabitInsight | None:
    recent = window_completions(habit, cutoff)[::-1][:PREDICTION_RECENT_DAYS]
    if len(recent) < PREDICTION_MIN_RECORDS:
        return None

    success = completion_rate(recent)
    live = current_streak(habit, now)

    if success >= 0.8:
        if live >= 3:
            prediction = f"You're likely to extend your {live}-day streak to {live + 3}-{live + 7} days"
        else:
            prediction = "You're likely to build a 5-10 day streak soon"
        confidence = 0.8
    elif success >= 0.5:
        prediction = "Mixed recent performance - focus on consistency to build momentum"
        confidence = 0.6
    else:
        if live > 0:
            prediction = "Your current streak may be at risk - extra focus needed"
        else:
            prediction = "Consider restarting with a simpler approach to build momentum"
        confidence = 0.7

    return HabitInsight(
        habit_id=habit.id,
        habit_name=habit.name,
        type="streak_prediction",
        insight=prediction,
        confidence=confidence,
        data_points=len(recent),
        recommendation=(
            "Keep up your excellent consistency!"
            if success >= 0.8
            else "Focus on completing this habit for the next 3 days to build momentum"
        ),
        chart_data=tuple({"date": c.date, "completed": int(c.completed)} for c in recent),
    )


def generate_habit_insights(
    habits: list[Habit],
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    now: datetime | None = None,
) -> list[HabitInsight]:
    """Insights for every habit, most confident first."""
    if lookback_days <= 0:
        raise ValueError(f"Invalid lookback: {lookback_days} days")
    now = reference_time(now)
    cutoff = cutoff_for(lookback_days, now)

    insights = []
    for habit in habits:
        for insight in (
            analyze_trend(habit, cutoff),
            analyze_optimal_timing(habit, cutoff),
            analyze_difficulty(habit, cutoff),
            predict_streak(habit, cutoff, now),
        ):
            if insight is not None:
                insights.append(insight)

    insights.sort(key=lambda i: i.confidence, reverse=True)
    return insights
