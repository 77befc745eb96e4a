# Infrastructure Progress Adapters Package
from .db import SCHEMA_SQL, connect
from .memory import (
    InMemoryProgressRepository,
    InMemorySessionRepository,
    ReadThroughProgressRepository,
    ReadThroughSessionRepository,
)
from .sqlite_progress import SqliteProgressRepository, SqliteSessionRepository

__all__ = [
    "SCHEMA_SQL",
    "connect",
    "InMemoryProgressRepository",
    "InMemorySessionRepository",
    "ReadThroughProgressRepository",
    "ReadThroughSessionRepository",
    "SqliteProgressRepository",
    "SqliteSessionRepository",
]
