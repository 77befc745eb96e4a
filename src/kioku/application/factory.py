"""
Study Service Factory
Centralizes the logic for selecting repositories and scheduling strategies.
"""

import logging

from kioku.application.config import AppConfig
from kioku.application.scheduler.policies import CoarseStrategy, get_strategy
from kioku.application.session.service import StudyService
from kioku.domain.progress.ports import ProgressRepository, SessionRepository
from kioku.infrastructure.adapters.progress import (
    InMemoryProgressRepository,
    InMemorySessionRepository,
    ReadThroughProgressRepository,
    ReadThroughSessionRepository,
    SqliteProgressRepository,
    SqliteSessionRepository,
    connect,
)

logger = logging.getLogger(__name__)


def get_repositories(
    config: AppConfig, dry_run: bool = False
) -> tuple[ProgressRepository, SessionRepository]:
    """
    Returns the progress and session repositories for the configured database.

    With dry_run, reads come from the database and writes stay in memory.
    A missing database is not created on a dry run.
    """
    if dry_run and not config.db_path.exists():
        logger.debug(f"No database at {config.db_path}, dry run starts empty")
        return InMemoryProgressRepository(), InMemorySessionRepository()

    conn = connect(config.db_path)
    progress_repo, session_repo = SqliteProgressRepository(conn), SqliteSessionRepository(conn)
    if dry_run:
        return ReadThroughProgressRepository(progress_repo), ReadThroughSessionRepository(
            session_repo
        )
    return progress_repo, session_repo


def get_study_service(config: AppConfig, dry_run: bool = False) -> StudyService:
    """
    Returns a StudyService wired to the configured policy and storage.

    The per-answer updater follows config.policy; session completion
    always uses the coarse policy.
    """
    progress_repo, session_repo = get_repositories(config, dry_run=dry_run)
    logger.debug(f"Per-answer policy: {config.policy}")
    return StudyService(
        progress_repo,
        session_repo,
        answer_strategy=get_strategy(config.policy),
        batch_strategy=CoarseStrategy(),
        save_retries=config.save_retries,
    )
