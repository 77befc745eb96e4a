"""
Interval lookup for both scheduling policies.

Every function here is pure and total: out-of-range levels are clamped or
fall back, never raise.
"""

from kioku.domain.constants import (
    COARSE_FALLBACK_HOURS,
    COARSE_INTERVAL_HOURS,
    COARSE_MAX_LEVEL,
    DAY_MS,
    FINE_INTERVALS_MS,
    FINE_MAX_LEVEL,
    HOUR_MS,
    MIN_LEVEL,
)
from kioku.domain.progress.models import SchedulingPolicy


def fine_interval_ms(level: int) -> int:
    """
    Interval for the fine-grained table, indexed by level - 1.

    Levels <= 0 use the first entry; levels past the table use the last.
    """
    index = max(0, level - 1)
    if index >= len(FINE_INTERVALS_MS):
        return FINE_INTERVALS_MS[-1]
    return FINE_INTERVALS_MS[index]


def coarse_interval_ms(level: int) -> int:
    """
    Interval for the coarse hour table, indexed directly by level.

    Outside the table, and on the zero placeholder, falls back to 4 hours.
    """
    hours = 0
    if 0 <= level < len(COARSE_INTERVAL_HOURS):
        hours = COARSE_INTERVAL_HOURS[level]
    return (hours or COARSE_FALLBACK_HOURS) * HOUR_MS


def interval_ms(level: int, policy: SchedulingPolicy = SchedulingPolicy.FINE) -> int:
    if SchedulingPolicy(policy) is SchedulingPolicy.COARSE:
        return coarse_interval_ms(level)
    return fine_interval_ms(level)


def max_level(policy: SchedulingPolicy = SchedulingPolicy.FINE) -> int:
    if SchedulingPolicy(policy) is SchedulingPolicy.COARSE:
        return COARSE_MAX_LEVEL
    return FINE_MAX_LEVEL


def clamp_level(level: int, policy: SchedulingPolicy = SchedulingPolicy.FINE) -> int:
    return max(MIN_LEVEL, min(level, max_level(policy)))


def days_between_reviews(level: int, policy: SchedulingPolicy = SchedulingPolicy.FINE) -> int:
    """Whole days in a level's interval (0 for sub-day intervals or level <= 0)."""
    if level <= 0:
        return 0
    return interval_ms(level, policy) // DAY_MS
