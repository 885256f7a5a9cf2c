"""Scoring helpers shared by the metric extractors and aggregation."""

import math
from collections.abc import Iterable, Sequence

from src.schemas.performance import Grade, MetricTrend

MAX_SCORE = 5.0

MINUTE = 60.0
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

# (minimum score, grade), best grade first
GRADE_THRESHOLDS: tuple[tuple[float, Grade], ...] = (
    (4.5, Grade.A_PLUS),
    (4.0, Grade.A),
    (3.5, Grade.B_PLUS),
    (3.0, Grade.B),
    (2.5, Grade.C_PLUS),
    (2.0, Grade.C),
)

# Relative change against the previous score that counts as movement
TREND_TOLERANCE = 0.1


def bucket(value: float, tiers: Sequence[tuple[float, float]], default: float = 0.0) -> float:
    """Map a value onto points using strict lower thresholds.

    Args:
        value: The measured value.
        tiers: (threshold, points) pairs. The highest threshold the value
            strictly exceeds wins.
        default: Points when the value exceeds no threshold.

    Example:
        >>> bucket(3, [(5, 1.5), (2, 1.0)], default=0.5)
        1.0
    """
    for threshold, points in sorted(tiers, key=lambda tier: tier[0], reverse=True):
        if value > threshold:
            return points
    return default


def clamp_score(value: float) -> float:
    """Clamp a score to the 0-5 scale."""
    return max(0.0, min(MAX_SCORE, value))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for an empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def percentage(part: int, whole: int, default: float = 0.0) -> float:
    """part / whole * 100, or the default when whole is 0."""
    if whole == 0:
        return default
    return part / whole * 100


def round1(value: float) -> float:
    return round(value, 1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def performance_grade(score: float) -> Grade:
    """Get the letter grade for an overall score."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return Grade.D


def calculate_trend(score: float, previous_score: float | None) -> MetricTrend:
    """Compare a score with the previous period's score.

    Without a previous score there is nothing to compare, so the trend is
    stable.
    """
    if previous_score is None:
        return MetricTrend.STABLE

    if previous_score == 0:
        return MetricTrend.UP if score > 0 else MetricTrend.STABLE

    variance = (score - previous_score) / previous_score
    if variance > TREND_TOLERANCE:
        return MetricTrend.UP
    if variance < -TREND_TOLERANCE:
        return MetricTrend.DOWN
    return MetricTrend.STABLE


def _compact(value: float) -> str:
    # 2.0 -> "2", 2.5 -> "2.5"
    return f"{value:.1f}".rstrip("0").rstrip(".")


def format_duration(seconds: float | None) -> str:
    """Format a duration in seconds as a short human-readable string."""
    if not seconds or seconds <= 0:
        return "0h"

    if seconds < HOUR:
        return f"{round(seconds / MINUTE)}m"
    if seconds < DAY:
        return f"{_compact(seconds / HOUR)}h"
    return f"{_compact(seconds / DAY)}d"
