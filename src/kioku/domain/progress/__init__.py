# Domain Progress Package
from .models import (
    AnswerResult,
    ProgressRecord,
    ReviewItem,
    SchedulingPolicy,
    SessionSummary,
    Skill,
    StudySession,
    StudyStats,
    UserStats,
)
from .ports import ProgressRepository, SessionRepository

__all__ = [
    "AnswerResult",
    "ProgressRecord",
    "ReviewItem",
    "SchedulingPolicy",
    "SessionSummary",
    "Skill",
    "StudySession",
    "StudyStats",
    "UserStats",
    "ProgressRepository",
    "SessionRepository",
]
