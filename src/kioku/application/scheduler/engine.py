"""
Spaced-repetition scheduler core.

A stateless module of pure transition functions over ProgressRecord. No I/O,
no shared state: every call returns a new record and leaves its input alone.
The only randomness is the interval jitter of the fine-grained policy, which
is drawn from an injectable random source (or passed in pre-drawn).

Two policies coexist:

- fine: 10 levels, full reset on a wrong answer, +-10% jitter.
- coarse: 8 levels, one-level demotion on a wrong answer, fixed hours.
"""

import logging
import math
import random
from dataclasses import replace

from kioku.domain.constants import (
    COARSE_MAX_LEVEL,
    FINE_MAX_LEVEL,
    JITTER_MAX,
    JITTER_MIN,
    LEVEL_NAMES,
    MIN_LEVEL,
    PARTIAL_DEMOTION,
    QUALITY_BLACKOUT,
    QUALITY_CORRECT,
    QUALITY_PASSING,
)
from kioku.domain.progress.models import (
    ProgressRecord,
    SchedulingPolicy,
    Skill,
    StudyStats,
)

from .intervals import clamp_level, coarse_interval_ms, fine_interval_ms, interval_ms

logger = logging.getLogger(__name__)


def draw_jitter(rng: random.Random | None = None) -> float:
    """Draw a multiplier uniformly from [0.9, 1.1]."""
    source = rng if rng is not None else random
    return source.uniform(JITTER_MIN, JITTER_MAX)


def initialize(
    user_id: str,
    item_id: str,
    now: int,
    policy: SchedulingPolicy = SchedulingPolicy.FINE,
) -> ProgressRecord:
    """
    Build a fresh record at level 1. The caller persists it.
    """
    return ProgressRecord(
        user_id=user_id,
        item_id=item_id,
        first_seen=now,
        last_reviewed=now,
        correct_count=0,
        incorrect_count=0,
        srs_level=MIN_LEVEL,
        next_review_date=now + interval_ms(MIN_LEVEL, policy),
        stats=StudyStats(),
    )


def calculate_next_review(
    record: ProgressRecord,
    quality: int,
    now: int,
    rng: random.Random | None = None,
    jitter: float | None = None,
) -> tuple[int, int]:
    """
    Compute the fine-grained transition for an answer of the given quality.

    Args:
        record: Current progress.
        quality: Recall quality on a 0-5 scale.
            0 - Complete blackout (reset to level 1)
            1-2 - Wrong but close (demote two levels, floored at 1)
            3-5 - Correct (advance one level, capped at 10)
        now: Answer time (ms).
        rng: Random source for the jitter; module-level random if None.
        jitter: Pre-drawn multiplier; overrides rng when given.

    Returns:
        (next_review_date, new_srs_level)
    """
    level = clamp_level(record.srs_level, SchedulingPolicy.FINE)

    if quality >= QUALITY_PASSING:
        new_level = min(level + 1, FINE_MAX_LEVEL)
    elif quality <= QUALITY_BLACKOUT:
        new_level = MIN_LEVEL
    else:
        new_level = max(MIN_LEVEL, level - PARTIAL_DEMOTION)

    factor = _resolve_jitter(rng, jitter)
    interval = math.floor(fine_interval_ms(new_level) * factor)
    return now + interval, new_level


def record_answer(
    record: ProgressRecord,
    correct: bool,
    skill: Skill,
    now: int,
    policy: SchedulingPolicy = SchedulingPolicy.FINE,
    rng: random.Random | None = None,
    jitter: float | None = None,
) -> ProgressRecord:
    """
    Apply one answer and return the updated record.

    The fine policy maps correct/incorrect onto quality 4/0, so a wrong
    answer always resets to level 1. Accuracy for the answered skill is a
    cumulative average over all answers recorded for the item.

    With policy=COARSE the call is routed to record_answer_batch and the
    skill is ignored.
    """
    if SchedulingPolicy(policy) is SchedulingPolicy.COARSE:
        return record_answer_batch(record, correct, now)

    _check_record(record, SchedulingPolicy.FINE)

    quality = QUALITY_CORRECT if correct else QUALITY_BLACKOUT
    next_review_date, new_level = calculate_next_review(record, quality, now, rng, jitter)

    correct_count, incorrect_count = _counted(record, correct)
    n = correct_count + incorrect_count

    old_avg = record.stats.accuracy_for(skill)
    new_avg = (old_avg * (n - 1) + (1 if correct else 0)) / n

    return replace(
        record,
        last_reviewed=now,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        srs_level=new_level,
        next_review_date=next_review_date,
        stats=record.stats.with_accuracy(skill, new_avg),
    )


def record_answer_batch(record: ProgressRecord, correct: bool, now: int) -> ProgressRecord:
    """
    Coarse update applied once per item at session completion.

    A wrong answer demotes by one level (not a reset). No jitter.
    Only meaning_accuracy is recomputed, as a plain correct/total ratio.
    """
    _check_record(record, SchedulingPolicy.COARSE)

    level = clamp_level(record.srs_level, SchedulingPolicy.COARSE)
    if correct:
        new_level = min(level + 1, COARSE_MAX_LEVEL)
    else:
        new_level = max(level - 1, MIN_LEVEL)

    correct_count, incorrect_count = _counted(record, correct)
    total = correct_count + incorrect_count

    return replace(
        record,
        last_reviewed=now,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        srs_level=new_level,
        next_review_date=now + coarse_interval_ms(new_level),
        stats=replace(record.stats, meaning_accuracy=correct_count / total),
    )


def first_answer_batch(user_id: str, item_id: str, correct: bool, now: int) -> ProgressRecord:
    """
    Create a record from its first answer on the coarse path.

    Seeds level 2 for a correct answer and level 1 otherwise.
    """
    level = 2 if correct else MIN_LEVEL
    return ProgressRecord(
        user_id=user_id,
        item_id=item_id,
        first_seen=now,
        last_reviewed=now,
        correct_count=1 if correct else 0,
        incorrect_count=0 if correct else 1,
        srs_level=level,
        next_review_date=now + coarse_interval_ms(level),
        stats=StudyStats(meaning_accuracy=1.0 if correct else 0.0),
    )


def is_due(record: ProgressRecord, now: int) -> bool:
    return now >= record.next_review_date


def level_name(srs_level: int) -> str:
    index = max(0, min(srs_level - 1, len(LEVEL_NAMES) - 1))
    return LEVEL_NAMES[index]


def _resolve_jitter(rng: random.Random | None, jitter: float | None) -> float:
    if jitter is None:
        return draw_jitter(rng)
    if not JITTER_MIN <= jitter <= JITTER_MAX:
        logger.warning(f"Jitter {jitter} outside [{JITTER_MIN}, {JITTER_MAX}], clamping")
        return max(JITTER_MIN, min(jitter, JITTER_MAX))
    return jitter


def _check_record(record: ProgressRecord, policy: SchedulingPolicy) -> None:
    """
    Log caller contract violations. Scheduling never raises on bad input;
    levels are clamped by the transitions themselves.
    """
    if record.correct_count < 0 or record.incorrect_count < 0:
        logger.warning(
            f"Negative answer counters for {record.key}: "
            f"{record.correct_count}/{record.incorrect_count}, treating as 0"
        )
    if clamp_level(record.srs_level, policy) != record.srs_level:
        logger.warning(
            f"srs_level {record.srs_level} out of range for {policy.value} policy "
            f"on {record.key}, clamping"
        )


def _counted(record: ProgressRecord, correct: bool) -> tuple[int, int]:
    """Counters after one more answer. Negative stored counters count as 0."""
    correct_count = max(0, record.correct_count) + (1 if correct else 0)
    incorrect_count = max(0, record.incorrect_count) + (0 if correct else 1)
    return correct_count, incorrect_count
