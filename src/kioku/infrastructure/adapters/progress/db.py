import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS learning_progress (
    user_id TEXT NOT NULL,
    item_id TEXT NOT NULL,
    first_seen INTEGER NOT NULL,
    last_reviewed INTEGER NOT NULL,
    correct_count INTEGER NOT NULL DEFAULT 0,
    incorrect_count INTEGER NOT NULL DEFAULT 0,
    srs_level INTEGER NOT NULL DEFAULT 1,
    next_review_date INTEGER NOT NULL,
    meaning_accuracy REAL NOT NULL DEFAULT 0,
    reading_accuracy REAL NOT NULL DEFAULT 0,
    writing_accuracy REAL NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, item_id)
);
CREATE TABLE IF NOT EXISTS study_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    collection_id TEXT NOT NULL,
    start_time INTEGER NOT NULL,
    end_time INTEGER NOT NULL,
    reviewed_count INTEGER NOT NULL DEFAULT 0,
    correct_count INTEGER NOT NULL DEFAULT 0,
    incorrect_count INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS user_stats (
    user_id TEXT PRIMARY KEY,
    study_streak INTEGER NOT NULL DEFAULT 0,
    reviews_today INTEGER NOT NULL DEFAULT 0,
    reviews_completed_today INTEGER NOT NULL DEFAULT 0,
    total_reviews INTEGER NOT NULL DEFAULT 0,
    total_study_time INTEGER NOT NULL DEFAULT 0,
    characters_learned INTEGER NOT NULL DEFAULT 0,
    level INTEGER NOT NULL DEFAULT 1,
    last_study_date TEXT
);
CREATE INDEX IF NOT EXISTS idx_progress_next_review
    ON learning_progress(user_id, next_review_date);
CREATE INDEX IF NOT EXISTS idx_sessions_user ON study_sessions(user_id);
"""


def connect(db_path: Path) -> sqlite3.Connection:
    """Connect to the SQLite database and create the schema if missing."""
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    logger.debug(f"Opened progress database at {db_path}")
    return conn
