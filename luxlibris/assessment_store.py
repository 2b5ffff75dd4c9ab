"""Session-scoped facades over the assessment and student result repositories."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Generator, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .assessment_models import (
    AssessmentDefinition,
    AssessmentResult,
    ModifierContent,
    StudentAssessmentRecord,
)
from .db.session import session_scope

logger = logging.getLogger(__name__)


if TYPE_CHECKING:
    from .repositories.assessments import AssessmentRepository
    from .repositories.student_results import StudentResultRepository


class AssessmentNotFoundError(LookupError):
    """Raised when an assessment id is not present in the content store."""

    def __init__(self, assessment_id: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Assessment '{assessment_id}' does not exist.")
        self.assessment_id = assessment_id


class ContentUnavailableError(RuntimeError):
    """The content store could not be reached. Callers may retry."""


class ContentConflictError(RuntimeError):
    """Raised when a write would silently replace existing content."""


def _assessments() -> "AssessmentRepository":
    from .repositories.assessments import assessments as repository

    return repository


def _results() -> "StudentResultRepository":
    from .repositories.student_results import student_results as repository

    return repository


@contextmanager
def _store_session(*, commit: bool = True) -> Generator[Session, None, None]:
    try:
        with session_scope(commit=commit) as session:
            yield session
    except SQLAlchemyError as exc:
        logger.exception("Content store operation failed")
        raise ContentUnavailableError("The content store is temporarily unavailable.") from exc


class AssessmentContentStore:
    """Assessment definitions and modifier display tables."""

    def get(self, assessment_id: str) -> AssessmentDefinition:
        with _store_session(commit=False) as session:
            definition = _assessments().get(session, assessment_id)
        if definition is None:
            raise AssessmentNotFoundError(assessment_id)
        return definition

    def find(
        self,
        *,
        kind: Optional[str] = None,
        academic_year: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[AssessmentDefinition]:
        with _store_session(commit=False) as session:
            return _assessments().find(session, kind=kind, academic_year=academic_year, status=status)

    def count(self, kind: str) -> int:
        with _store_session(commit=False) as session:
            return _assessments().count(session, kind=kind)

    def upsert(self, definition: AssessmentDefinition, *, actor: str = "system") -> AssessmentDefinition:
        with _store_session() as session:
            return _assessments().upsert(session, definition, actor=actor)

    def replace_kind(
        self,
        kind: str,
        definitions: Iterable[AssessmentDefinition],
        *,
        actor: str = "system",
    ) -> Dict[str, int]:
        with _store_session() as session:
            return _assessments().replace_kind(session, kind, definitions, actor=actor)

    def archive_year(self, kind: str, academic_year: str, *, actor: str = "system") -> List[str]:
        with _store_session() as session:
            return _assessments().archive_year(session, kind, academic_year, actor=actor)

    def stats(self, kind: str, *, current_year: str) -> Dict[str, Any]:
        with _store_session(commit=False) as session:
            return _assessments().stats(session, kind=kind, current_year=current_year)

    def next_id(self, kind: str) -> str:
        with _store_session(commit=False) as session:
            return _assessments().next_id(session, kind)

    def modifier_table(self, audience: str = "student") -> Dict[str, ModifierContent]:
        with _store_session(commit=False) as session:
            return _assessments().modifier_table(session, audience)

    def upsert_modifiers(self, entries: Iterable[ModifierContent], *, actor: str = "system") -> int:
        with _store_session() as session:
            return _assessments().upsert_modifiers(session, entries, actor=actor)


class StudentResultStore:
    """Completion records keyed by (student, assessment)."""

    def record_completion(
        self,
        student_id: str,
        assessment_id: str,
        result: AssessmentResult,
    ) -> StudentAssessmentRecord:
        with _store_session() as session:
            return _results().record_completion(session, student_id, assessment_id, result)

    def get(self, student_id: str, assessment_id: str) -> Optional[StudentAssessmentRecord]:
        with _store_session(commit=False) as session:
            return _results().get(session, student_id, assessment_id)

    def is_completed(self, student_id: str, assessment_id: str) -> bool:
        return self.get(student_id, assessment_id) is not None

    def results_for_student(self, student_id: str) -> List[StudentAssessmentRecord]:
        with _store_session(commit=False) as session:
            return _results().list_for_student(session, student_id)

    def completed_count(self, student_id: str) -> int:
        with _store_session(commit=False) as session:
            return _results().completed_count(session, student_id)

    def delete(self, student_id: str, assessment_id: str) -> bool:
        with _store_session() as session:
            return _results().delete(session, student_id, assessment_id)


content_store = AssessmentContentStore()
result_store = StudentResultStore()

__all__ = [
    "AssessmentContentStore",
    "AssessmentNotFoundError",
    "ContentConflictError",
    "ContentUnavailableError",
    "StudentResultStore",
    "content_store",
    "result_store",
]
