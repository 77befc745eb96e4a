import pytest

from kioku.application.scheduler.policies import CoarseStrategy, FineGrainedStrategy
from kioku.application.session.service import StudyService
from kioku.infrastructure.adapters.progress import (
    InMemoryProgressRepository,
    InMemorySessionRepository,
)

T0 = 1_700_000_000_000  # fixed "now" in ms


@pytest.fixture
def progress_repo():
    return InMemoryProgressRepository()


@pytest.fixture
def session_repo():
    return InMemorySessionRepository()


@pytest.fixture
def now():
    return T0


@pytest.fixture
def service(progress_repo, session_repo, now):
    """StudyService with jitter pinned to 1.0 and a frozen clock."""
    return StudyService(
        progress_repo,
        session_repo,
        answer_strategy=FineGrainedStrategy(jitter=1.0),
        batch_strategy=CoarseStrategy(),
        clock=lambda: now,
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config and the default database from the real home directory
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "KIOKU_USER_ID",
        "KIOKU_POLICY",
        "KIOKU_DB_PATH",
        "KIOKU_DUE_LIMIT",
        "KIOKU_SAVE_RETRIES",
        "KIOKU_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
