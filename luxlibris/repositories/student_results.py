"""Database-backed student assessment results."""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..assessment_models import AssessmentResult, StudentAssessmentRecord
from ..db.models import PersistenceAuditEventModel, StudentAssessmentResultModel


def _normalize_student_id(student_id: str) -> str:
    normalized = student_id.strip()
    if not normalized:
        raise ValueError("Student id cannot be empty.")
    return normalized


class StudentResultRepository:
    """One row per (student, assessment); retakes overwrite the outcome and bump the counter."""

    def get(self, session: Session, student_id: str, assessment_id: str) -> StudentAssessmentRecord | None:
        model = self._find(session, _normalize_student_id(student_id), assessment_id)
        if model is None:
            return None
        return self._to_domain(model)

    def record_completion(
        self,
        session: Session,
        student_id: str,
        assessment_id: str,
        result: AssessmentResult,
    ) -> StudentAssessmentRecord:
        normalized = _normalize_student_id(student_id)
        model = self._find(session, normalized, assessment_id)
        if model is None:
            model = StudentAssessmentResultModel(
                student_id=normalized,
                assessment_id=assessment_id,
                times_completed=1,
            )
            session.add(model)
        else:
            model.times_completed = (model.times_completed or 0) + 1

        model.outcome_key = result.outcome_key
        model.scores = dict(result.scores)
        model.modifier_keys = list(result.modifier_keys)
        model.completed_at = result.completed_at
        session.flush()
        self._record_audit(
            session,
            normalized,
            "assessment_completion",
            {
                "assessment_id": assessment_id,
                "outcome_key": result.outcome_key,
                "times_completed": model.times_completed,
            },
        )
        return self._to_domain(model)

    def list_for_student(self, session: Session, student_id: str) -> List[StudentAssessmentRecord]:
        stmt = (
            select(StudentAssessmentResultModel)
            .where(StudentAssessmentResultModel.student_id == _normalize_student_id(student_id))
            .order_by(StudentAssessmentResultModel.completed_at.desc())
        )
        return [self._to_domain(model) for model in session.execute(stmt).scalars()]

    def completed_count(self, session: Session, student_id: str) -> int:
        stmt = select(func.count(StudentAssessmentResultModel.id)).where(
            StudentAssessmentResultModel.student_id == _normalize_student_id(student_id)
        )
        return int(session.execute(stmt).scalar_one())

    def delete(self, session: Session, student_id: str, assessment_id: str) -> bool:
        normalized = _normalize_student_id(student_id)
        stmt = delete(StudentAssessmentResultModel).where(
            StudentAssessmentResultModel.student_id == normalized,
            StudentAssessmentResultModel.assessment_id == assessment_id,
        )
        removed = session.execute(stmt).rowcount or 0
        if removed:
            self._record_audit(session, normalized, "assessment_result_delete", {"assessment_id": assessment_id})
        return bool(removed)

    @staticmethod
    def _find(session: Session, student_id: str, assessment_id: str) -> StudentAssessmentResultModel | None:
        stmt = select(StudentAssessmentResultModel).where(
            StudentAssessmentResultModel.student_id == student_id,
            StudentAssessmentResultModel.assessment_id == assessment_id,
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _to_domain(model: StudentAssessmentResultModel) -> StudentAssessmentRecord:
        return StudentAssessmentRecord(
            student_id=model.student_id,
            assessment_id=model.assessment_id,
            outcome_key=model.outcome_key,
            scores=dict(model.scores or {}),
            modifier_keys=list(model.modifier_keys or []),
            completed_at=model.completed_at,
            times_completed=model.times_completed,
        )

    @staticmethod
    def _record_audit(session: Session, subject: str, event_type: str, payload: Dict[str, Any]) -> None:
        session.add(
            PersistenceAuditEventModel(
                subject=subject,
                event_type=event_type,
                payload=payload,
                actor="system",
            )
        )


student_results = StudentResultRepository()

__all__ = ["StudentResultRepository", "student_results"]
