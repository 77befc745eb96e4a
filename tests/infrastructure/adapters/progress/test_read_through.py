"""Tests for the read-through repositories backing dry runs."""

import pytest

from kioku.domain.progress.models import ProgressRecord, StudySession, UserStats
from kioku.infrastructure.adapters.progress import (
    ReadThroughProgressRepository,
    ReadThroughSessionRepository,
    SqliteProgressRepository,
    SqliteSessionRepository,
    connect,
)


@pytest.fixture
def conn(tmp_path):
    conn = connect(tmp_path / "kioku.db")
    yield conn
    conn.close()


def make_record(item_id: str = "k1", level: int = 5, **kw) -> ProgressRecord:
    defaults = dict(
        user_id="u1",
        item_id=item_id,
        first_seen=1000,
        last_reviewed=1000,
        correct_count=4,
        srs_level=level,
        next_review_date=2000,
    )
    defaults.update(kw)
    return ProgressRecord(**defaults)


@pytest.mark.asyncio
async def test_progress_reads_stored_and_keeps_writes_in_memory(conn):
    backing = SqliteProgressRepository(conn)
    await backing.upsert(make_record("k1", 5))
    repo = ReadThroughProgressRepository(backing)

    assert (await repo.get("u1", "k1")).srs_level == 5

    await repo.upsert(make_record("k1", 6, first_seen=9999))
    await repo.upsert(make_record("k2", 2))

    assert (await repo.get("u1", "k1")).srs_level == 6
    assert (await repo.get("u1", "k1")).first_seen == 1000
    assert [r.srs_level for r in await repo.list_for_user("u1")] == [6, 2]

    assert (await backing.get("u1", "k1")).srs_level == 5
    assert await backing.get("u1", "k2") is None


@pytest.mark.asyncio
async def test_sessions_read_stored_and_keep_writes_in_memory(conn):
    backing = SqliteSessionRepository(conn)
    await backing.save_user_stats(UserStats(user_id="u1", study_streak=3))
    old = StudySession("session_01", "u1", "c1", 0, 1000, 1, 1, 0)
    await backing.add_session(old)
    repo = ReadThroughSessionRepository(backing)

    assert (await repo.get_user_stats("u1")).study_streak == 3

    new = StudySession("session_02", "u1", "c1", 2000, 3000, 1, 0, 1)
    await repo.add_session(new)
    await repo.save_user_stats(UserStats(user_id="u1", study_streak=4))

    assert await repo.list_sessions("u1", 50) == [new, old]
    assert (await repo.get_user_stats("u1")).study_streak == 4
    assert await backing.list_sessions("u1", 50) == [old]
    assert (await backing.get_user_stats("u1")).study_streak == 3
