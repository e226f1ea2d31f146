"""Pairwise habit correlation analysis.

For every unordered pair of habits, the binary completion indicators on
the dates both habits have a record for are correlated with Pearson's r.
Pairs sharing fewer than MIN_SAMPLE_SIZE dates are left out entirely.
"""

from __future__ import annotations

import logging
from datetime import datetime
from itertools import combinations

from habitlens.models import Habit, HabitCorrelation
from habitlens.series import completion_series, cutoff_for
from habitlens.stats import (
    confidence_level,
    pearson,
    relationship_for,
    round_half_up,
    significance_for,
)

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 10
DEFAULT_LOOKBACK_DAYS = 90


def correlate_pair(habit1: Habit, habit2: Habit, cutoff: datetime) -> HabitCorrelation | None:
    """Correlate two habits on their shared dates, or None below MIN_SAMPLE_SIZE."""
    series1 = {p.date: p.completed for p in completion_series(habit1, cutoff)}
    series2 = {p.date: p.completed for p in completion_series(habit2, cutoff)}
    shared = sorted(d for d in series1 if d in series2)

    if len(shared) < MIN_SAMPLE_SIZE:
        logger.debug(
            "Skipping %s/%s: only %d shared dates", habit1.id, habit2.id, len(shared)
        )
        return None

    pairs = [(int(series1[d]), int(series2[d])) for d in shared]
    r = pearson(pairs)
    n = len(pairs)

    return HabitCorrelation(
        habit1_id=habit1.id,
        habit1_name=habit1.name,
        habit2_id=habit2.id,
        habit2_name=habit2.name,
        correlation_coefficient=round_half_up(r, 3),
        significance=significance_for(r),
        relationship=relationship_for(r),
        sample_size=n,
        confidence_level=round_half_up(confidence_level(r, n), 2),
    )


def calculate_habit_correlations(
    habits: list[Habit],
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    now: datetime | None = None,
) -> list[HabitCorrelation]:
    """All qualifying pair correlations, strongest |r| first."""
    if lookback_days <= 0:
        raise ValueError(f"Invalid lookback: {lookback_days} days")
    cutoff = cutoff_for(lookback_days, now)

    correlations = []
    for habit1, habit2 in combinations(habits, 2):
        correlation = correlate_pair(habit1, habit2, cutoff)
        if correlation is not None:
            correlations.append(correlation)

    # Stable sort keeps pair order for equal magnitudes.
    correlations.sort(key=lambda c: abs(c.correlation_coefficient), reverse=True)
    return correlations
