"""
Study Service: application layer orchestrator.

Hosts the two updaters that call into the scheduler core:

- answer_card: per-answer updater, run after every card of an active session.
- complete_session: session-completion updater, run once per finished session.

Both read through the ProgressRepository port, compute with a named
SchedulingStrategy, and persist the result.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone

from kioku.application.id_service import generate_session_id
from kioku.application.review_queue import build_review_queue
from kioku.application.scheduler.policies import (
    CoarseStrategy,
    FineGrainedStrategy,
    SchedulingStrategy,
)
from kioku.domain.constants import DEFAULT_SESSION_LIMIT
from kioku.domain.progress.models import (
    AnswerResult,
    ProgressRecord,
    ReviewItem,
    SessionSummary,
    Skill,
    StudySession,
    UserStats,
)
from kioku.domain.progress.ports import ProgressRepository, SessionRepository

logger = logging.getLogger(__name__)

INCOMPLETE_SESSION_REASON = "Session not complete. Must review all cards to save."


class ProgressNotSavedError(RuntimeError):
    """
    Raised when scheduling succeeded but persisting the result failed.

    Attributes:
        records: The computed records that could not be stored, so the
            caller can keep its in-memory session state and retry later.
            Empty when every record was stored and only a session aggregate
            failed.
    """

    def __init__(self, message: str, records: Sequence[ProgressRecord] = ()):
        super().__init__(message)
        self.records = list(records)


def _now_ms() -> int:
    return int(time.time() * 1000)


class StudyService:
    """
    Application service for recording answers and completing sessions.

    Depends on the repository ports, not on concrete adapters.
    """

    def __init__(
        self,
        progress_repo: ProgressRepository,
        session_repo: SessionRepository,
        answer_strategy: SchedulingStrategy | None = None,
        batch_strategy: SchedulingStrategy | None = None,
        save_retries: int = 0,
        clock: Callable[[], int] | None = None,
    ):
        """
        Args:
            progress_repo: Port for per-item progress records.
            session_repo: Port for sessions and user stats.
            answer_strategy: Policy of the per-answer updater; fine-grained if not provided.
            batch_strategy: Policy of the session-completion updater; coarse if not provided.
            save_retries: Extra attempts after a failed write.
            clock: Returns the current time in ms.
        """
        self._progress = progress_repo
        self._sessions = session_repo
        self._answer_strategy = answer_strategy or FineGrainedStrategy()
        self._batch_strategy = batch_strategy or CoarseStrategy()
        self._save_retries = max(0, save_retries)
        self._clock = clock or _now_ms

    async def get_progress(self, user_id: str, item_id: str) -> ProgressRecord | None:
        return await self._progress.get(user_id, item_id)

    async def answer_card(
        self,
        user_id: str,
        item_id: str,
        correct: bool,
        skill: Skill = Skill.MEANING,
        now: int | None = None,
    ) -> ProgressRecord:
        """
        Record one answer immediately and persist the updated progress.

        The record is created lazily if the user never answered the item.

        Raises:
            ProgressNotSavedError: If the write still fails after retries.
        """
        now = self._clock() if now is None else now
        strategy = self._answer_strategy

        existing = await self._progress.get(user_id, item_id)
        if existing is None:
            updated = strategy.first_answer(user_id, item_id, correct, skill, now)
            logger.debug(f"Created progress for {user_id}/{item_id}")
        else:
            updated = strategy.apply(existing, correct, skill, now)

        logger.info(
            f"Answer {user_id}/{item_id} correct={correct} skill={Skill(skill).value}: "
            f"level {existing.srs_level if existing else '-'} -> {updated.srs_level}"
        )

        await self._persist(lambda: self._progress.upsert(updated), [updated])
        return updated

    async def complete_session(
        self,
        user_id: str,
        collection_id: str,
        results: Sequence[AnswerResult],
        total_items: int,
        start_time: int,
        end_time: int,
        now: int | None = None,
    ) -> SessionSummary:
        """
        Persist a finished session and reschedule every answered item.

        Only a full completion (every card reviewed) is saved. All items share
        one `now` and are updated one at a time, never concurrently.

        Returns:
            SessionSummary; saved=False with a reason for incomplete sessions.

        Raises:
            ProgressNotSavedError: If storing any record or the session fails.
                Records are written before the session row and user stats, so a
                failed session never leaves a stored session or streak bump behind.
        """
        reviewed = len(results)
        if reviewed < total_items:
            logger.info(
                f"Session for {user_id}/{collection_id} incomplete "
                f"({reviewed}/{total_items}), not saving"
            )
            return SessionSummary(saved=False, reason=INCOMPLETE_SESSION_REASON)

        now = self._clock() if now is None else now
        correct_count = sum(1 for r in results if r.correct)

        session = StudySession(
            id=generate_session_id(),
            user_id=user_id,
            collection_id=collection_id,
            start_time=start_time,
            end_time=end_time,
            reviewed_count=reviewed,
            correct_count=correct_count,
            incorrect_count=reviewed - correct_count,
        )

        # A repeated item builds on its earlier result in this session.
        pending: dict[str, ProgressRecord] = {}
        for result in results:
            existing = pending.get(result.item_id)
            if existing is None:
                existing = await self._progress.get(user_id, result.item_id)
            if existing is None:
                record = self._batch_strategy.first_answer(
                    user_id, result.item_id, result.correct, Skill.MEANING, now
                )
            else:
                record = self._batch_strategy.apply(existing, result.correct, Skill.MEANING, now)
            pending[result.item_id] = record
        updated = list(pending.values())

        # Records before the session row and user stats.
        for i, record in enumerate(updated):
            await self._persist(lambda r=record: self._progress.upsert(r), updated[i:])
        await self._persist(lambda: self._sessions.add_session(session), [])
        await self._update_user_stats(session, now)

        logger.info(
            f"Saved session {session.id}: {correct_count}/{reviewed} correct, "
            f"{len(updated)} items rescheduled"
        )
        return SessionSummary(saved=True, session=session, updated=updated)

    async def due_items(
        self, user_id: str, now: int | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        """
        Build the due-items queue for a user.
        """
        now = self._clock() if now is None else now
        records = await self._progress.list_for_user(user_id)
        return build_review_queue(records, now, limit=limit)

    async def session_history(
        self, user_id: str, limit: int = DEFAULT_SESSION_LIMIT
    ) -> list[StudySession]:
        return await self._sessions.list_sessions(user_id, limit)

    async def user_stats(self, user_id: str) -> UserStats:
        """
        Stored aggregates of a user, or zeroed stats if none were saved yet.
        """
        stats = await self._sessions.get_user_stats(user_id)
        return stats if stats is not None else UserStats(user_id=user_id)

    async def _update_user_stats(self, session: StudySession, now: int) -> UserStats:
        stats = await self._sessions.get_user_stats(session.user_id)
        if stats is None:
            stats = UserStats(user_id=session.user_id)

        stats.study_streak += 1
        stats.total_reviews += session.reviewed_count
        stats.reviews_completed_today += session.correct_count
        stats.total_study_time += session.study_time_seconds
        stats.last_study_date = datetime.fromtimestamp(now / 1000, tz=timezone.utc).date().isoformat()

        await self._persist(lambda: self._sessions.save_user_stats(stats), [])
        return stats

    async def _persist(
        self, write: Callable[[], Awaitable[None]], records: Sequence[ProgressRecord]
    ) -> None:
        """
        Run a storage write, retrying up to save_retries times.
        """
        attempts = self._save_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                await write()
                return
            except Exception as e:
                if attempt < attempts:
                    logger.warning(f"Write failed (attempt {attempt}/{attempts}): {e}")
                    continue
                logger.error(f"Progress not saved after {attempts} attempt(s): {e}")
                raise ProgressNotSavedError(f"Progress not saved: {e}", records) from e
