"""Comparative habit scoring.

Every habit gets a 0-100 composite score for one timeframe:

    completion rate  x 40
    consistency      x 30   (1 - population variance of weekly rates)
    streak average   x 20   (capped at 10 days)
    trend            x 10   (weekly slope mapped from [-1, 1] onto [0, 1])
"""

from __future__ import annotations

from datetime import datetime

from habitlens.models import ComparativeAnalytics, Habit, HabitScore, timeframe_days
from habitlens.series import completion_rate, cutoff_for, group_by_week, window_completions
from habitlens.stats import calculate_trend, mean, population_variance, round_half_up
from habitlens.streaks import average_streak_length, find_streaks

ATTENTION_SCORE = 50
TREND_THRESHOLD = 0.05


def trend_category(slope: float) -> str:
    if slope > TREND_THRESHOLD:
        return "improving"
    if slope < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def composite_score(rate: float, consistency: float, streak_average: float, slope: float) -> int:
    raw = (
        rate * 40
        + consistency * 30
        + min(streak_average / 10, 1) * 20
        + (slope + 1) / 2 * 10
    )
    return max(0, min(100, int(round_half_up(raw))))


def score_habit(habit: Habit, cutoff: datetime) -> HabitScore:
    rate = completion_rate(window_completions(habit, cutoff))
    streak_average = average_streak_length(find_streaks(habit, cutoff))

    weekly_rates = [w.completion_rate for w in group_by_week(habit, cutoff)]
    if len(weekly_rates) > 1:
        consistency = 1 - population_variance(weekly_rates)
    else:
        consistency = rate

    slope = calculate_trend(weekly_rates)
    return HabitScore(
        habit_id=habit.id,
        habit_name=habit.name,
        completion_rate=round_half_up(rate, 2),
        streak_average=round_half_up(streak_average, 1),
        consistency=round_half_up(consistency, 2),
        trend=trend_category(slope),
        trend_slope=round_half_up(slope, 3),
        score=composite_score(rate, consistency, streak_average, slope),
    )


def _summary_lines(top: HabitScore, attention: list[str], overall: int) -> list[str]:
    if attention:
        plural = len(attention) > 1
        attention_line = f"{len(attention)} habit{'s' if plural else ''} need{'' if plural else 's'} attention"
    else:
        attention_line = "All your habits are performing well!"
    return [
        f"Your top performing habit is {top.habit_name}",
        attention_line,
        f"Your overall habit consistency score is {overall}/100",
    ]


def generate_comparative_analytics(
    habits: list[Habit],
    timeframe: str = "month",
    now: datetime | None = None,
) -> ComparativeAnalytics:
    """Score every habit for *timeframe* (week, month, quarter or year)."""
    cutoff = cutoff_for(timeframe_days(timeframe), now)

    scores = [score_habit(habit, cutoff) for habit in habits]
    if not scores:
        return ComparativeAnalytics(timeframe=timeframe)

    top = scores[0]
    for entry in scores[1:]:
        if entry.score > top.score:
            top = entry

    attention = [
        s.habit_id for s in scores
        if s.score < ATTENTION_SCORE or s.trend == "declining"
    ]
    overall = int(round_half_up(mean([s.score for s in scores])))

    return ComparativeAnalytics(
        timeframe=timeframe,
        habits=tuple(scores),
        top_performer=top.habit_id,
        needs_attention=tuple(attention),
        overall_score=overall,
        insights=tuple(_summary_lines(top, attention, overall)),
    )
