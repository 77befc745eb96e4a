# Application Scheduler Package
from .engine import (
    calculate_next_review,
    draw_jitter,
    first_answer_batch,
    initialize,
    is_due,
    level_name,
    record_answer,
    record_answer_batch,
)
from .intervals import (
    clamp_level,
    coarse_interval_ms,
    days_between_reviews,
    fine_interval_ms,
    interval_ms,
    max_level,
)
from .policies import CoarseStrategy, FineGrainedStrategy, SchedulingStrategy, get_strategy

__all__ = [
    "calculate_next_review",
    "draw_jitter",
    "first_answer_batch",
    "initialize",
    "is_due",
    "level_name",
    "record_answer",
    "record_answer_batch",
    "clamp_level",
    "coarse_interval_ms",
    "days_between_reviews",
    "fine_interval_ms",
    "interval_ms",
    "max_level",
    "CoarseStrategy",
    "FineGrainedStrategy",
    "SchedulingStrategy",
    "get_strategy",
]
