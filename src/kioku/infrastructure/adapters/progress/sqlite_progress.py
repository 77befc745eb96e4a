"""
SQLite Progress Repository: infrastructure adapter for a local database.

Implements ProgressRepository and SessionRepository on top of one
sqlite3 connection. Storage errors propagate as sqlite3.Error.
"""

import logging
import sqlite3

from kioku.domain.progress.models import (
    ProgressRecord,
    StudySession,
    StudyStats,
    UserStats,
)
from kioku.domain.progress.ports import ProgressRepository, SessionRepository

logger = logging.getLogger(__name__)

# first_seen is only written on insert.
UPSERT_PROGRESS_SQL = """
INSERT INTO learning_progress (
    user_id, item_id, first_seen, last_reviewed, correct_count, incorrect_count,
    srs_level, next_review_date, meaning_accuracy, reading_accuracy, writing_accuracy
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(user_id, item_id) DO UPDATE SET
    last_reviewed = excluded.last_reviewed,
    correct_count = excluded.correct_count,
    incorrect_count = excluded.incorrect_count,
    srs_level = excluded.srs_level,
    next_review_date = excluded.next_review_date,
    meaning_accuracy = excluded.meaning_accuracy,
    reading_accuracy = excluded.reading_accuracy,
    writing_accuracy = excluded.writing_accuracy
"""


def _row_to_record(row: sqlite3.Row) -> ProgressRecord:
    return ProgressRecord(
        user_id=row["user_id"],
        item_id=row["item_id"],
        first_seen=row["first_seen"],
        last_reviewed=row["last_reviewed"],
        correct_count=row["correct_count"],
        incorrect_count=row["incorrect_count"],
        srs_level=row["srs_level"],
        next_review_date=row["next_review_date"],
        stats=StudyStats(
            meaning_accuracy=row["meaning_accuracy"],
            reading_accuracy=row["reading_accuracy"],
            writing_accuracy=row["writing_accuracy"],
        ),
    )


class SqliteProgressRepository(ProgressRepository):
    """Repository for learning_progress rows."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    async def get(self, user_id: str, item_id: str) -> ProgressRecord | None:
        row = self.conn.execute(
            "SELECT * FROM learning_progress WHERE user_id = ? AND item_id = ?",
            (user_id, item_id),
        ).fetchone()
        if row:
            return _row_to_record(row)
        return None

    async def upsert(self, record: ProgressRecord) -> None:
        self.conn.execute(
            UPSERT_PROGRESS_SQL,
            (
                record.user_id,
                record.item_id,
                record.first_seen,
                record.last_reviewed,
                record.correct_count,
                record.incorrect_count,
                record.srs_level,
                record.next_review_date,
                record.stats.meaning_accuracy,
                record.stats.reading_accuracy,
                record.stats.writing_accuracy,
            ),
        )
        self.conn.commit()

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        rows = self.conn.execute(
            "SELECT * FROM learning_progress WHERE user_id = ? ORDER BY item_id",
            (user_id,),
        ).fetchall()
        return [_row_to_record(row) for row in rows]


class SqliteSessionRepository(SessionRepository):
    """Repository for study_sessions and user_stats rows."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    async def add_session(self, session: StudySession) -> None:
        self.conn.execute(
            """
            INSERT INTO study_sessions (
                id, user_id, collection_id, start_time, end_time,
                reviewed_count, correct_count, incorrect_count
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.user_id,
                session.collection_id,
                session.start_time,
                session.end_time,
                session.reviewed_count,
                session.correct_count,
                session.incorrect_count,
            ),
        )
        self.conn.commit()

    async def list_sessions(self, user_id: str, limit: int) -> list[StudySession]:
        rows = self.conn.execute(
            """
            SELECT * FROM study_sessions WHERE user_id = ?
            ORDER BY end_time DESC, id DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
        return [StudySession(**dict(row)) for row in rows]

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        row = self.conn.execute(
            "SELECT * FROM user_stats WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row:
            return UserStats(**dict(row))
        return None

    async def save_user_stats(self, stats: UserStats) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO user_stats (
                user_id, study_streak, reviews_today, reviews_completed_today,
                total_reviews, total_study_time, characters_learned, level, last_study_date
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                stats.user_id,
                stats.study_streak,
                stats.reviews_today,
                stats.reviews_completed_today,
                stats.total_reviews,
                stats.total_study_time,
                stats.characters_learned,
                stats.level,
                stats.last_study_date,
            ),
        )
        self.conn.commit()
