"""Completion series extraction and calendar bucketing.

Every analysis starts here: a habit's raw completion records are cut down
to a lookback window, de-duplicated by date (first record wins) and sorted
ascending. Dates are ISO strings, so string order equals calendar order.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from habitlens.models import Completion, Habit, SeriesPoint, WeekBucket

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


# ── Reference time ────────────────────────────────────────────


def reference_time(now: datetime | None = None) -> datetime:
    """Normalize *now* to an aware datetime; naive values are taken as UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def cutoff_for(days: int, now: datetime | None = None) -> datetime:
    """Start of a lookback window of *days* ending at *now*."""
    return reference_time(now) - timedelta(days=days)


def epoch_ms(moment: datetime) -> int:
    return int(reference_time(moment).timestamp() * 1000)


def day_start(date_str: str) -> datetime:
    """Midnight UTC at the start of an ISO calendar date."""
    return datetime.combine(date.fromisoformat(date_str), time.min, tzinfo=timezone.utc)


def day_diff(later: str, earlier: str) -> int:
    return (date.fromisoformat(later) - date.fromisoformat(earlier)).days


def weekday_index(date_str: str) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (date.fromisoformat(date_str).weekday() + 1) % 7


def week_start(date_str: str) -> str:
    """ISO date of the Sunday that opens the week containing *date_str*."""
    d = date.fromisoformat(date_str)
    return (d - timedelta(days=weekday_index(date_str))).isoformat()


# ── Windows & series ──────────────────────────────────────────


def dedupe_by_date(completions: Iterable[Completion]) -> list[Completion]:
    """Keep the first record seen for every date, preserving input order."""
    seen: set[str] = set()
    out = []
    for c in completions:
        if c.date in seen:
            continue
        seen.add(c.date)
        out.append(c)
    return out


def window_completions(habit: Habit, cutoff: datetime) -> list[Completion]:
    """Completion records dated on or after *cutoff*, one per date, ascending."""
    kept = [c for c in dedupe_by_date(habit.completions) if day_start(c.date) >= cutoff]
    return sorted(kept, key=lambda c: c.date)


def completion_series(habit: Habit, cutoff: datetime) -> list[SeriesPoint]:
    return [SeriesPoint(c.date, c.completed) for c in window_completions(habit, cutoff)]


def completion_rate(completions: list[Completion]) -> float:
    if not completions:
        return 0.0
    return sum(1 for c in completions if c.completed) / len(completions)


def group_by_week(habit: Habit, cutoff: datetime) -> list[WeekBucket]:
    """Per-week completed/total counts inside the window, oldest week first."""
    weeks: dict[str, list[int]] = {}
    for c in window_completions(habit, cutoff):
        bucket = weeks.setdefault(week_start(c.date), [0, 0])
        bucket[1] += 1
        if c.completed:
            bucket[0] += 1
    return [
        WeekBucket(week=key, completed=done, total=total)
        for key, (done, total) in sorted(weeks.items())
    ]


def weekday_stats(completions: Iterable[Completion]) -> dict[int, list[int]]:
    """Map weekday index -> [completed, total], in order of first appearance."""
    stats: dict[int, list[int]] = {}
    for c in completions:
        bucket = stats.setdefault(weekday_index(c.date), [0, 0])
        bucket[1] += 1
        if c.completed:
            bucket[0] += 1
    return stats
