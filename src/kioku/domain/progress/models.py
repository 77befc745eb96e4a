"""
Domain models for learning progress.

These are pure data structures with no I/O or external dependencies.
All timestamps are integer milliseconds since the epoch.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class Skill(str, Enum):
    """The skill exercised by a single answer."""

    MEANING = "meaning"
    READING = "reading"
    WRITING = "writing"


class SchedulingPolicy(str, Enum):
    """
    Named scheduling variants.

    FINE: 10 levels, minute-to-month intervals with jitter (per-answer updater).
    COARSE: 8 levels, fixed hour-based intervals (session-completion updater).
    """

    FINE = "fine"
    COARSE = "coarse"


@dataclass(frozen=True)
class StudyStats:
    """
    Per-skill running accuracy, each in [0.0, 1.0].

    The batch path only ever populates meaning_accuracy.
    """

    meaning_accuracy: float = 0.0
    reading_accuracy: float = 0.0
    writing_accuracy: float = 0.0

    def accuracy_for(self, skill: Skill) -> float:
        return getattr(self, f"{Skill(skill).value}_accuracy")

    def with_accuracy(self, skill: Skill, value: float) -> "StudyStats":
        return replace(self, **{f"{Skill(skill).value}_accuracy": value})


@dataclass(frozen=True)
class ProgressRecord:
    """
    Progress of one user on one learnable item.

    Attributes:
        user_id: Owner of the record.
        item_id: The kanji/vocabulary item. (user_id, item_id) is the unique key.
        first_seen: Creation time; never changes afterwards.
        last_reviewed: Time of the most recent answer.
        correct_count: Number of correct answers so far.
        incorrect_count: Number of incorrect answers so far.
        srs_level: Mastery level (1-10 fine, 1-8 coarse).
        next_review_date: The item is due once now >= next_review_date.
        stats: Per-skill accuracy breakdown.
    """

    user_id: str
    item_id: str
    first_seen: int
    last_reviewed: int
    correct_count: int = 0
    incorrect_count: int = 0
    srs_level: int = 1
    next_review_date: int = 0
    stats: StudyStats = field(default_factory=StudyStats)

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.item_id)

    @property
    def total_answers(self) -> int:
        return self.correct_count + self.incorrect_count


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of one card within a study session."""

    item_id: str
    correct: bool


@dataclass(frozen=True)
class ReviewItem:
    """
    An entry of the due-items queue.

    Attributes:
        item_id: The item to review.
        due_date: When it became due (ms).
        srs_level: Current level, for display.
        review_type: Skill to quiz; the queue always asks for meaning.
    """

    item_id: str
    due_date: int
    srs_level: int
    review_type: Skill = Skill.MEANING


@dataclass(frozen=True)
class StudySession:
    """A completed study session over one collection."""

    id: str
    user_id: str
    collection_id: str
    start_time: int
    end_time: int
    reviewed_count: int
    correct_count: int
    incorrect_count: int

    @property
    def study_time_seconds(self) -> int:
        return max(0, (self.end_time - self.start_time) // 1000)


@dataclass
class UserStats:
    """
    Aggregate study statistics of a user, updated once per completed session.
    """

    user_id: str
    study_streak: int = 0
    reviews_today: int = 0
    reviews_completed_today: int = 0
    total_reviews: int = 0
    total_study_time: int = 0  # seconds
    characters_learned: int = 0
    level: int = 1
    last_study_date: str | None = None  # ISO date


@dataclass
class SessionSummary:
    """Result of the session-completion updater."""

    saved: bool
    session: StudySession | None = None
    updated: list[ProgressRecord] = field(default_factory=list)
    reason: str | None = None
