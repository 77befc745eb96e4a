"""
In-memory repositories, used for dry runs and tests.
"""

from dataclasses import replace

from kioku.domain.progress.models import ProgressRecord, StudySession, UserStats
from kioku.domain.progress.ports import ProgressRepository, SessionRepository


class InMemoryProgressRepository(ProgressRepository):
    def __init__(self, records: list[ProgressRecord] | None = None):
        self._records: dict[tuple[str, str], ProgressRecord] = {}
        for record in records or []:
            self._records[record.key] = record

    async def get(self, user_id: str, item_id: str) -> ProgressRecord | None:
        return self._records.get((user_id, item_id))

    async def upsert(self, record: ProgressRecord) -> None:
        existing = self._records.get(record.key)
        if existing is not None:
            record = replace(record, first_seen=existing.first_seen)
        self._records[record.key] = record

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        return sorted(
            (r for r in self._records.values() if r.user_id == user_id),
            key=lambda r: r.item_id,
        )


class InMemorySessionRepository(SessionRepository):
    def __init__(self):
        self.sessions: list[StudySession] = []
        self._stats: dict[str, UserStats] = {}

    async def add_session(self, session: StudySession) -> None:
        self.sessions.append(session)

    async def list_sessions(self, user_id: str, limit: int) -> list[StudySession]:
        mine = [s for s in self.sessions if s.user_id == user_id]
        mine.sort(key=lambda s: (s.end_time, s.id), reverse=True)
        return mine[:limit]

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        stats = self._stats.get(user_id)
        return replace(stats) if stats else None

    async def save_user_stats(self, stats: UserStats) -> None:
        self._stats[stats.user_id] = replace(stats)


class ReadThroughProgressRepository(InMemoryProgressRepository):
    """
    Reads from a backing repository, keeps writes in memory.

    Lets a dry run schedule against stored progress without touching it.
    """

    def __init__(self, backing: ProgressRepository):
        super().__init__()
        self._backing = backing

    async def get(self, user_id: str, item_id: str) -> ProgressRecord | None:
        record = await super().get(user_id, item_id)
        if record is None:
            record = await self._backing.get(user_id, item_id)
        return record

    async def upsert(self, record: ProgressRecord) -> None:
        stored = await self.get(record.user_id, record.item_id)
        if stored is not None:
            record = replace(record, first_seen=stored.first_seen)
        self._records[record.key] = record

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        merged = {r.key: r for r in await self._backing.list_for_user(user_id)}
        merged.update({r.key: r for r in await super().list_for_user(user_id)})
        return sorted(merged.values(), key=lambda r: r.item_id)


class ReadThroughSessionRepository(InMemorySessionRepository):
    """Session counterpart of ReadThroughProgressRepository."""

    def __init__(self, backing: SessionRepository):
        super().__init__()
        self._backing = backing

    async def list_sessions(self, user_id: str, limit: int) -> list[StudySession]:
        merged = await self._backing.list_sessions(user_id, limit)
        merged += [s for s in self.sessions if s.user_id == user_id]
        merged.sort(key=lambda s: (s.end_time, s.id), reverse=True)
        return merged[:limit]

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        stats = await super().get_user_stats(user_id)
        if stats is None:
            stats = await self._backing.get_user_stats(user_id)
        return stats
