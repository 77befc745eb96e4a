"""
Ports (interfaces) for progress persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import ProgressRecord, StudySession, UserStats


class ProgressRepository(ABC):
    """
    Port for storing per-user, per-item progress records.

    Implementations:
        - SqliteProgressRepository: Local SQLite database.
        - InMemoryProgressRepository: Dict-backed, for tests and dry runs.
    """

    @abstractmethod
    async def get(self, user_id: str, item_id: str) -> ProgressRecord | None:
        """
        Fetch the record for (user_id, item_id).

        Returns:
            The stored record, or None if the user never answered the item.
        """
        pass

    @abstractmethod
    async def upsert(self, record: ProgressRecord) -> None:
        """
        Create the record if absent, else overwrite it by key.

        The stored first_seen must be preserved across updates.
        """
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        """
        Fetch all records of a user, ordered by item_id.
        """
        pass


class SessionRepository(ABC):
    """
    Port for session-level aggregates (completed sessions and user stats).
    """

    @abstractmethod
    async def add_session(self, session: StudySession) -> None:
        pass

    @abstractmethod
    async def list_sessions(self, user_id: str, limit: int) -> list[StudySession]:
        """
        Fetch up to `limit` completed sessions of a user, newest first.
        """
        pass

    @abstractmethod
    async def get_user_stats(self, user_id: str) -> UserStats | None:
        pass

    @abstractmethod
    async def save_user_stats(self, stats: UserStats) -> None:
        pass
