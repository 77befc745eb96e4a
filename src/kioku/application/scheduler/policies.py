"""
Named scheduling strategies.

The per-answer updater and the session-completion updater schedule the same
record with different rules. Both stay available; callers pick one.
"""

import random
from abc import ABC, abstractmethod

from kioku.domain.progress.models import ProgressRecord, SchedulingPolicy, Skill

from . import engine
from .intervals import interval_ms, max_level


class SchedulingStrategy(ABC):
    """
    A scheduling policy bound to its interval table and transitions.
    """

    policy: SchedulingPolicy

    @property
    def max_level(self) -> int:
        return max_level(self.policy)

    def interval_ms(self, level: int) -> int:
        return interval_ms(level, self.policy)

    @abstractmethod
    def first_answer(
        self, user_id: str, item_id: str, correct: bool, skill: Skill, now: int
    ) -> ProgressRecord:
        """Create the record for an item answered for the first time."""
        pass

    @abstractmethod
    def apply(self, record: ProgressRecord, correct: bool, skill: Skill, now: int) -> ProgressRecord:
        """Apply one answer to an existing record."""
        pass


class FineGrainedStrategy(SchedulingStrategy):
    """
    10-level policy with jittered intervals and full reset on a wrong answer.

    Used by the per-answer updater.
    """

    policy = SchedulingPolicy.FINE

    def __init__(self, rng: random.Random | None = None, jitter: float | None = None):
        """
        Args:
            rng: Random source for the jitter.
            jitter: Fixed multiplier; overrides rng (tests pin it to 1.0).
        """
        self._rng = rng
        self._jitter = jitter

    def first_answer(
        self, user_id: str, item_id: str, correct: bool, skill: Skill, now: int
    ) -> ProgressRecord:
        record = engine.initialize(user_id, item_id, now, self.policy)
        return self.apply(record, correct, skill, now)

    def apply(self, record: ProgressRecord, correct: bool, skill: Skill, now: int) -> ProgressRecord:
        return engine.record_answer(
            record, correct, skill, now, self.policy, rng=self._rng, jitter=self._jitter
        )


class CoarseStrategy(SchedulingStrategy):
    """
    8-level policy with fixed hour intervals and one-level demotion.

    Used by the session-completion updater. Only meaning accuracy is tracked.
    """

    policy = SchedulingPolicy.COARSE

    def first_answer(
        self, user_id: str, item_id: str, correct: bool, skill: Skill, now: int
    ) -> ProgressRecord:
        return engine.first_answer_batch(user_id, item_id, correct, now)

    def apply(self, record: ProgressRecord, correct: bool, skill: Skill, now: int) -> ProgressRecord:
        return engine.record_answer_batch(record, correct, now)


def get_strategy(
    policy: SchedulingPolicy | str, rng: random.Random | None = None
) -> SchedulingStrategy:
    """
    Returns the strategy implementing the named policy.
    """
    if SchedulingPolicy(policy) is SchedulingPolicy.COARSE:
        return CoarseStrategy()
    return FineGrainedStrategy(rng=rng)
