"""Streak detection over completion records."""

from __future__ import annotations

from datetime import date, datetime

from habitlens.models import Habit, Streak
from habitlens.series import day_diff, dedupe_by_date, reference_time, window_completions

MIN_STREAK_LENGTH = 2


def find_streaks(habit: Habit, cutoff: datetime) -> list[Streak]:
    """Maximal runs of consecutive completed days, oldest first.

    A single isolated completed day is not a streak; runs shorter than
    MIN_STREAK_LENGTH are dropped.
    """
    done = [c.date for c in window_completions(habit, cutoff) if c.completed]

    streaks: list[Streak] = []
    start = end = None
    length = 0
    for day in done:
        if end is not None and day_diff(day, end) == 1:
            end = day
            length += 1
            continue
        if length >= MIN_STREAK_LENGTH:
            streaks.append(Streak(start, end, length))
        start = end = day
        length = 1

    if length >= MIN_STREAK_LENGTH:
        streaks.append(Streak(start, end, length))
    return streaks


def average_streak_length(streaks: list[Streak]) -> float:
    if not streaks:
        return 0.0
    return sum(s.length for s in streaks) / len(streaks)


def current_streak(habit: Habit, now: datetime | None = None) -> int:
    """Consecutive completed days counting back from today (inclusive).

    Looks at the full history, not a window. The count stops at the first
    missing day, so a habit not yet done today has a live streak of 0.
    """
    today: date = reference_time(now).date()
    done = sorted(
        (c.date for c in dedupe_by_date(habit.completions) if c.completed),
        reverse=True,
    )
    streak = 0
    for day in done:
        if (today - date.fromisoformat(day)).days != streak:
            break
        streak += 1
    return streak
