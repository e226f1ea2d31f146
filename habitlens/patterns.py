"""Productivity pattern detection.

Four independent detectors run over the same lookback window and their
results are merged, strongest first:

- daily: weekdays with notably high or low completion across all habits
- weekly: habits whose weekly completion rate trends up or down
- streak: habits that repeatedly build long streaks
- cluster: habit pairs that tend to be completed on the same days
"""

from __future__ import annotations

import logging
from datetime import datetime
from itertools import combinations

from habitlens.models import Habit, ProductivityPattern
from habitlens.series import (
    DAY_NAMES,
    cutoff_for,
    epoch_ms,
    group_by_week,
    reference_time,
    weekday_index,
    window_completions,
)
from habitlens.stats import calculate_trend, round_half_up
from habitlens.streaks import average_streak_length, find_streaks

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 90

DAILY_MIN_ENTRIES = 10
HIGH_DAY_RATE = 0.8
LOW_DAY_RATE = 0.3

WEEKLY_MIN_WEEKS = 4
WEEKLY_MIN_TREND = 0.1
WEEKLY_HIGH_IMPACT_TREND = 0.2

STREAK_MIN_COUNT = 3
STREAK_MIN_AVERAGE = 5
STREAK_MIN_MAX = 10

CLUSTER_MIN_SHARED = 10
CLUSTER_MIN_RATE = 0.7


def _pct(value: float) -> int:
    return int(round_half_up(value * 100))


# ── Detectors ─────────────────────────────────────────────────


def detect_daily_patterns(habits: list[Habit], cutoff: datetime, detected_at: int) -> list[ProductivityPattern]:
    day_stats: dict[int, dict] = {}
    for habit in habits:
        for c in window_completions(habit, cutoff):
            stats = day_stats.setdefault(
                weekday_index(c.date), {"completed": 0, "total": 0, "habits": []}
            )
            stats["total"] += 1
            if habit.id not in stats["habits"]:
                stats["habits"].append(habit.id)
            if c.completed:
                stats["completed"] += 1

    patterns = []
    for day in sorted(day_stats):
        stats = day_stats[day]
        rate = stats["completed"] / stats["total"]
        if stats["total"] < DAILY_MIN_ENTRIES:
            continue
        if LOW_DAY_RATE < rate < HIGH_DAY_RATE:
            continue

        high = rate >= HIGH_DAY_RATE
        name = DAY_NAMES[day]
        patterns.append(ProductivityPattern(
            id=f"daily_{day}_{detected_at}",
            type="daily",
            pattern="high_performance" if high else "low_performance",
            description=f"{'High' if high else 'Low'} completion rate on {name}s ({_pct(rate)}%)",
            habits=tuple(stats["habits"]),
            strength=abs(rate - 0.5) * 2,
            frequency=stats["total"],
            impact="high" if high else "medium",
            recommendation=(
                f"{name}s are your strongest days - consider adding challenging habits"
                if high
                else f"Focus extra attention on {name}s - try lighter habits or better scheduling"
            ),
            detected_at=detected_at,
        ))
    return patterns


def detect_weekly_patterns(habits: list[Habit], cutoff: datetime, detected_at: int) -> list[ProductivityPattern]:
    patterns = []
    for habit in habits:
        weeks = group_by_week(habit, cutoff)
        if len(weeks) < WEEKLY_MIN_WEEKS:
            logger.debug("Habit %s has %d weeks of data, no weekly trend", habit.id, len(weeks))
            continue
        trend = calculate_trend([w.completion_rate for w in weeks])
        if abs(trend) < WEEKLY_MIN_TREND:
            continue

        improving = trend > 0
        patterns.append(ProductivityPattern(
            id=f"weekly_trend_{habit.id}_{detected_at}",
            type="weekly",
            pattern="improving_trend" if improving else "declining_trend",
            description=(
                f"{habit.name} shows {'improving' if improving else 'declining'} weekly trend "
                f"({'+' if improving else ''}{_pct(trend)}% per week)"
            ),
            habits=(habit.id,),
            strength=min(abs(trend), 1.0),
            frequency=len(weeks),
            impact="high" if abs(trend) >= WEEKLY_HIGH_IMPACT_TREND else "medium",
            recommendation=(
                f"Keep up the momentum with {habit.name}!"
                if improving
                else f"{habit.name} needs attention - consider adjusting your approach"
            ),
            detected_at=detected_at,
        ))
    return patterns


def detect_streak_patterns(habits: list[Habit], cutoff: datetime, detected_at: int) -> list[ProductivityPattern]:
    patterns = []
    for habit in habits:
        streaks = find_streaks(habit, cutoff)
        if len(streaks) < STREAK_MIN_COUNT:
            continue
        avg_length = average_streak_length(streaks)
        max_length = max(s.length for s in streaks)
        if avg_length < STREAK_MIN_AVERAGE and max_length < STREAK_MIN_MAX:
            continue

        patterns.append(ProductivityPattern(
            id=f"streak_pattern_{habit.id}_{detected_at}",
            type="weekly",
            pattern="consistent_streaks",
            description=(
                f"{habit.name} shows strong streak patterns "
                f"(avg: {int(round_half_up(avg_length))} days, max: {max_length} days)"
            ),
            habits=(habit.id,),
            strength=min(avg_length / 10, 1.0),
            frequency=len(streaks),
            impact="high",
            recommendation=(
                f"Your streak-building skills with {habit.name} are strong - "
                "try applying this pattern to other habits"
            ),
            detected_at=detected_at,
        ))
    return patterns


def find_habit_clusters(habits: list[Habit], cutoff: datetime) -> list[dict]:
    """Co-completion stats for pairs with enough dates where both have any record."""
    clusters = []
    for habit1, habit2 in combinations(habits, 2):
        records1 = {c.date: c.completed for c in window_completions(habit1, cutoff)}
        records2 = {c.date: c.completed for c in window_completions(habit2, cutoff)}
        shared = [d for d in records1 if d in records2]
        if len(shared) < CLUSTER_MIN_SHARED:
            continue

        both = sum(1 for d in shared if records1[d] and records2[d])
        clusters.append({
            "habit1": habit1,
            "habit2": habit2,
            "co_completion_rate": both / len(shared),
            "occurrences": len(shared),
        })
    return clusters


def detect_cluster_patterns(habits: list[Habit], cutoff: datetime, detected_at: int) -> list[ProductivityPattern]:
    patterns = []
    for cluster in find_habit_clusters(habits, cutoff):
        rate = cluster["co_completion_rate"]
        if rate < CLUSTER_MIN_RATE or cluster["occurrences"] < CLUSTER_MIN_SHARED:
            continue
        h1, h2 = cluster["habit1"], cluster["habit2"]
        patterns.append(ProductivityPattern(
            id=f"cluster_{h1.id}_{h2.id}_{detected_at}",
            type="daily",
            pattern="habit_clustering",
            description=(
                f"{h1.name} and {h2.name} are often completed together "
                f"({_pct(rate)}% of the time)"
            ),
            habits=(h1.id, h2.id),
            strength=rate,
            frequency=cluster["occurrences"],
            impact="medium",
            recommendation=f"Consider stacking {h1.name} and {h2.name} as a routine",
            detected_at=detected_at,
        ))
    return patterns


# ── Entry point ───────────────────────────────────────────────


def detect_productivity_patterns(
    habits: list[Habit],
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    now: datetime | None = None,
) -> list[ProductivityPattern]:
    """Run all pattern detectors and return their findings, strongest first."""
    if lookback_days <= 0:
        raise ValueError(f"Invalid lookback: {lookback_days} days")
    now = reference_time(now)
    cutoff = cutoff_for(lookback_days, now)
    detected_at = epoch_ms(now)

    patterns: list[ProductivityPattern] = []
    patterns.extend(detect_daily_patterns(habits, cutoff, detected_at))
    patterns.extend(detect_weekly_patterns(habits, cutoff, detected_at))
    patterns.extend(detect_streak_patterns(habits, cutoff, detected_at))
    patterns.extend(detect_cluster_patterns(habits, cutoff, detected_at))

    patterns.sort(key=lambda p: p.strength, reverse=True)
    return patterns
