"""Small statistics toolkit shared by the analytics modules."""

from __future__ import annotations

import math
from typing import Sequence


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go towards +infinity).

    Python's round() uses banker's rounding, which would shift scores and
    coefficients sitting exactly on a .5 boundary.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    """Mean of squared deviations (divides by n, not n - 1)."""
    if not values:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def calculate_trend(values: Sequence[float]) -> float:
    """Ordinary-least-squares slope of *values* against their index 0..n-1.

    Returns 0.0 for fewer than two values.
    """
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_x2 = n * (n - 1) * (2 * n - 1) / 6
    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)


def pearson(pairs: Sequence[tuple[int, int]]) -> float:
    """Pearson r over (x, y) pairs using the sum-based formula.

    A zero denominator (no variance on either side) yields exactly 0.0.
    """
    n = len(pairs)
    if n == 0:
        return 0.0
    sum_x = sum(x for x, _ in pairs)
    sum_y = sum(y for _, y in pairs)
    sum_xy = sum(x * y for x, y in pairs)
    sum_x2 = sum(x * x for x, _ in pairs)
    sum_y2 = sum(y * y for _, y in pairs)

    numerator = n * sum_xy - sum_x * sum_y
    denominator = math.sqrt((n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y))
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, numerator / denominator))


# Two-tailed critical t values and the confidence each one earns.
T_LADDER = (
    (2.576, 0.99),
    (1.96, 0.95),
    (1.645, 0.90),
    (1.282, 0.80),
)


def confidence_level(r: float, n: int) -> float:
    """Approximate confidence for r over n samples via t = r*sqrt((n-2)/(1-r^2))."""
    if n <= 2:
        return 0.5
    if abs(r) >= 1.0:
        return T_LADDER[0][1]
    t = abs(r * math.sqrt((n - 2) / (1 - r * r)))
    for critical, level in T_LADDER:
        if t >= critical:
            return level
    return 0.5


def significance_for(r: float) -> str:
    abs_r = abs(r)
    if abs_r >= 0.7:
        return "high"
    if abs_r >= 0.5:
        return "moderate"
    if abs_r >= 0.3:
        return "low"
    return "none"


def relationship_for(r: float) -> str:
    if r > 0.1:
        return "positive"
    if r < -0.1:
        return "negative"
    return "neutral"
