"""Shared test helpers for HabitLens tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable

from habitlens.models import Completion, Habit

# Fixed reference instant used across the suite (a Friday).
NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
NOW_MS = 1709294400000


def make_habit(habit_id: str, records: Iterable[tuple[str, bool]], name: str | None = None) -> Habit:
    """Build a Habit from (YYYY-MM-DD, completed) pairs."""
    return Habit(
        id=habit_id,
        name=name or habit_id.title(),
        completions=tuple(Completion(date=d, completed=done) for d, done in records),
    )


def date_range(start: str, end: str) -> list[str]:
    """Inclusive list of ISO dates from start to end."""
    first, last = date.fromisoformat(start), date.fromisoformat(end)
    return [(first + timedelta(days=i)).isoformat() for i in range((last - first).days + 1)]


def daily_habit(
    habit_id: str,
    start: str,
    end: str,
    done: Callable[[int, str], bool] = lambda i, d: True,
    name: str | None = None,
) -> Habit:
    """One record per day from start to end; done(index, date) decides completion."""
    return make_habit(
        habit_id,
        [(d, done(i, d)) for i, d in enumerate(date_range(start, end))],
        name=name,
    )


def habit_payload(habits: list[Habit]) -> dict:
    """Serialize habits the way the storage export stores them."""
    return {"version": "1.0.0", "habits": [h.to_dict() for h in habits]}
