from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from kioku.application.scheduler.engine import first_answer_batch
from kioku.application.session.service import ProgressNotSavedError, StudyService
from kioku.domain.constants import HOUR_MS, MINUTE_MS
from kioku.domain.progress.models import (
    AnswerResult,
    ProgressRecord,
    Skill,
    UserStats,
)
from kioku.domain.progress.ports import ProgressRepository


def stored(level: int, item_id: str = "k2", first_seen: int = 0) -> ProgressRecord:
    return ProgressRecord(
        user_id="u1",
        item_id=item_id,
        first_seen=first_seen,
        last_reviewed=first_seen,
        correct_count=4,
        incorrect_count=0,
        srs_level=level,
        next_review_date=first_seen + HOUR_MS,
    )


# --- per-answer updater ---


@pytest.mark.asyncio
async def test_answer_card_creates_record_lazily(service, progress_repo, now):
    record = await service.answer_card("u1", "k1", True, Skill.MEANING)

    assert record.srs_level == 2
    assert record.first_seen == now
    assert record.next_review_date == now + 10 * MINUTE_MS
    assert record.stats.meaning_accuracy == 1.0
    assert await progress_repo.get("u1", "k1") == record


@pytest.mark.asyncio
async def test_answer_card_updates_existing(service, progress_repo, now):
    await service.answer_card("u1", "k1", True, now=now)
    await service.answer_card("u1", "k1", True, now=now + 1000)
    record = await service.answer_card("u1", "k1", False, Skill.READING, now=now + 2000)

    assert record.srs_level == 1
    assert record.first_seen == now
    assert record.last_reviewed == now + 2000
    assert record.correct_count == 2
    assert record.incorrect_count == 1
    assert (await progress_repo.get("u1", "k1")).srs_level == 1


@pytest.mark.asyncio
async def test_answer_card_retries_failed_write(now):
    repo = AsyncMock(spec=ProgressRepository)
    repo.get.return_value = None
    repo.upsert.side_effect = [RuntimeError("database is locked"), None]
    service = StudyService(repo, AsyncMock(), save_retries=1, clock=lambda: now)

    record = await service.answer_card("u1", "k1", True)

    assert record.correct_count == 1
    assert repo.upsert.await_count == 2


@pytest.mark.asyncio
async def test_answer_card_surfaces_unsaved_progress(now):
    repo = AsyncMock(spec=ProgressRepository)
    repo.get.return_value = None
    repo.upsert.side_effect = RuntimeError("disk I/O error")
    service = StudyService(repo, AsyncMock(), save_retries=2, clock=lambda: now)

    with pytest.raises(ProgressNotSavedError) as exc_info:
        await service.answer_card("u1", "k1", False)

    assert repo.upsert.await_count == 3
    assert "disk I/O error" in str(exc_info.value)
    # The computed record survives for the caller to retry
    assert exc_info.value.records[0].incorrect_count == 1


# --- session-completion updater ---


@pytest.mark.asyncio
async def test_incomplete_session_saves_nothing(service, progress_repo, session_repo):
    summary = await service.complete_session(
        "u1", "c1", [AnswerResult("k1", True)], total_items=3, start_time=0, end_time=1000
    )

    assert summary.saved is False
    assert "not complete" in summary.reason
    assert await progress_repo.list_for_user("u1") == []
    assert session_repo.sessions == []
    assert await session_repo.get_user_stats("u1") is None


@pytest.mark.asyncio
async def test_complete_session_reschedules_items(service, progress_repo, session_repo, now):
    await progress_repo.upsert(stored(5))
    results = [AnswerResult("k1", True), AnswerResult("k2", False)]

    summary = await service.complete_session(
        "u1", "c1", results, total_items=2, start_time=now - 90_000, end_time=now
    )

    assert summary.saved is True
    new = await progress_repo.get("u1", "k1")
    old = await progress_repo.get("u1", "k2")

    assert new.srs_level == 2
    assert new.next_review_date == now + 8 * HOUR_MS
    assert new.first_seen == now

    assert old.srs_level == 4
    assert old.next_review_date == now + 48 * HOUR_MS
    assert old.first_seen == 0
    assert old.stats.meaning_accuracy == pytest.approx(4 / 5)

    assert [r.item_id for r in summary.updated] == ["k1", "k2"]


@pytest.mark.asyncio
async def test_complete_session_records_aggregates(service, session_repo, now):
    results = [AnswerResult("k1", True), AnswerResult("k2", True), AnswerResult("k3", False)]

    summary = await service.complete_session(
        "u1", "c1", results, total_items=3, start_time=now - 125_000, end_time=now
    )

    session = summary.session
    assert session.id.startswith("session_")
    assert (session.reviewed_count, session.correct_count, session.incorrect_count) == (3, 2, 1)
    assert session_repo.sessions == [session]

    stats = await session_repo.get_user_stats("u1")
    assert stats.study_streak == 1
    assert stats.total_reviews == 3
    assert stats.reviews_completed_today == 2
    assert stats.total_study_time == 125
    assert stats.last_study_date == "2023-11-14"


@pytest.mark.asyncio
async def test_streak_grows_per_completed_session(service, session_repo, now):
    await session_repo.save_user_stats(UserStats(user_id="u1", study_streak=4, total_reviews=10))

    await service.complete_session(
        "u1", "c1", [AnswerResult("k1", True)], total_items=1, start_time=now, end_time=now
    )

    stats = await session_repo.get_user_stats("u1")
    assert stats.study_streak == 5
    assert stats.total_reviews == 11


@pytest.mark.asyncio
async def test_repeated_item_in_session_builds_on_itself(service, progress_repo, now):
    results = [AnswerResult("k1", True), AnswerResult("k1", True)]

    await service.complete_session("u1", "c1", results, total_items=2, start_time=0, end_time=0)

    record = await progress_repo.get("u1", "k1")
    assert record.srs_level == 3
    assert record.correct_count == 2


@pytest.mark.asyncio
async def test_complete_session_surfaces_unsaved_progress(session_repo, now):
    repo = AsyncMock(spec=ProgressRepository)
    repo.get.return_value = None
    repo.upsert.side_effect = RuntimeError("constraint failed")
    service = StudyService(repo, session_repo, clock=lambda: now)

    with pytest.raises(ProgressNotSavedError) as exc_info:
        await service.complete_session(
            "u1", "c1", [AnswerResult("k1", False)], total_items=1, start_time=0, end_time=0
        )

    assert exc_info.value.records == [first_answer_batch("u1", "k1", False, now)]


@pytest.mark.asyncio
async def test_failed_record_write_leaves_no_session_behind(session_repo, now):
    repo = AsyncMock(spec=ProgressRepository)
    repo.get.return_value = None
    repo.upsert.side_effect = RuntimeError("database is locked")
    service = StudyService(repo, session_repo, save_retries=1, clock=lambda: now)
    results = [AnswerResult("k1", True)]

    for _ in range(2):
        with pytest.raises(ProgressNotSavedError):
            await service.complete_session(
                "u1", "c1", results, total_items=1, start_time=0, end_time=0
            )

    assert session_repo.sessions == []
    assert await session_repo.get_user_stats("u1") is None


@pytest.mark.asyncio
async def test_unsaved_records_exclude_already_stored_ones(session_repo, now):
    repo = AsyncMock(spec=ProgressRepository)
    repo.get.return_value = None
    repo.upsert.side_effect = [None, RuntimeError("disk full")]
    service = StudyService(repo, session_repo, clock=lambda: now)
    results = [AnswerResult("k1", True), AnswerResult("k2", False)]

    with pytest.raises(ProgressNotSavedError) as exc_info:
        await service.complete_session("u1", "c1", results, total_items=2, start_time=0, end_time=0)

    assert [r.item_id for r in exc_info.value.records] == ["k2"]
    assert session_repo.sessions == []


@pytest.mark.asyncio
async def test_retry_after_failed_save_counts_session_once(progress_repo, session_repo, now):
    flaky = AsyncMock(spec=ProgressRepository)
    flaky.get.side_effect = progress_repo.get
    flaky.upsert.side_effect = RuntimeError("database is locked")
    results = [AnswerResult("k1", True)]

    with pytest.raises(ProgressNotSavedError):
        await StudyService(flaky, session_repo, clock=lambda: now).complete_session(
            "u1", "c1", results, total_items=1, start_time=0, end_time=0
        )
    await StudyService(progress_repo, session_repo, clock=lambda: now).complete_session(
        "u1", "c1", results, total_items=1, start_time=0, end_time=0
    )

    assert len(session_repo.sessions) == 1
    assert (await session_repo.get_user_stats("u1")).study_streak == 1
    assert (await progress_repo.get("u1", "k1")).srs_level == 2


# --- history and stats ---


@pytest.mark.asyncio
async def test_session_history_newest_first(service, now):
    for end in (now - 2000, now, now - 1000):
        await service.complete_session(
            "u1", "c1", [AnswerResult("k1", True)], total_items=1, start_time=end - 500, end_time=end
        )

    history = await service.session_history("u1")
    assert [s.end_time for s in history] == [now, now - 1000, now - 2000]

    assert len(await service.session_history("u1", limit=2)) == 2
    assert await service.session_history("u2") == []


@pytest.mark.asyncio
async def test_user_stats_defaults_and_stored(service, now):
    fresh = await service.user_stats("u1")
    assert fresh == UserStats(user_id="u1")

    await service.complete_session(
        "u1", "c1", [AnswerResult("k1", True)], total_items=1, start_time=now, end_time=now
    )

    stats = await service.user_stats("u1")
    assert stats.study_streak == 1
    assert stats.total_reviews == 1


# --- due queue ---


@pytest.mark.asyncio
async def test_due_items(service, progress_repo, now):
    await progress_repo.upsert(replace(stored(3, "late"), next_review_date=now - 10))
    await progress_repo.upsert(replace(stored(6, "later"), next_review_date=now - 500))
    await progress_repo.upsert(replace(stored(2, "future"), next_review_date=now + 1))

    items = await service.due_items("u1")

    assert [i.item_id for i in items] == ["later", "late"]
    assert items[0].srs_level == 6
    assert items[0].review_type is Skill.MEANING
