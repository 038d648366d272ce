"""
Repositories for the collaborators the engine reads from and writes to
"""
from assessment_engine.repositories.quiz_catalog import quiz_catalog
from assessment_engine.repositories.attempt_store import attempt_store
from assessment_engine.repositories.enrollment_repository import enrollment_repository
from assessment_engine.repositories.progress_repository import progress_repository
from assessment_engine.repositories.certificate_repository import certificate_repository

__all__ = [
    "quiz_catalog",
    "attempt_store",
    "enrollment_repository",
    "progress_repository",
    "certificate_repository",
]
