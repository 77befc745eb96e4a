# Application Session Package
from .service import ProgressNotSavedError, StudyService

__all__ = ["StudyService", "ProgressNotSavedError"]
