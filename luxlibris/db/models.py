"""ORM models backing assessment content and student results."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class AssessmentModel(TimestampMixin, Base):
    __tablename__ = "assessments"
    __table_args__ = (
        Index("ix_assessments_kind_year", "kind", "academic_year"),
        Index("ix_assessments_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    academic_year: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)
    quiz_type: Mapped[str] = mapped_column(String(32), default="personality", nullable=False)
    target_grades: Mapped[list[int]] = mapped_column(JSONType, default=list, nullable=False)
    definition: Mapped[dict] = mapped_column(JSONType, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ModifierContentModel(TimestampMixin, Base):
    __tablename__ = "modifier_content"
    __table_args__ = (UniqueConstraint("code", "audience", name="uq_modifier_code_audience"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(8), nullable=False)
    audience: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    emoji: Mapped[str | None] = mapped_column(String(16))
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    details: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)


class StudentAssessmentResultModel(Base):
    __tablename__ = "student_assessment_results"
    __table_args__ = (
        UniqueConstraint("student_id", "assessment_id", name="uq_student_assessment_result"),
        Index("ix_student_results_student", "student_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(String(128), nullable=False)
    assessment_id: Mapped[str] = mapped_column(String(64), nullable=False)
    outcome_key: Mapped[str] = mapped_column(String(128), nullable=False)
    scores: Mapped[dict[str, int]] = mapped_column(JSONType, default=dict, nullable=False)
    modifier_keys: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    times_completed: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class PersistenceAuditEventModel(Base):
    __tablename__ = "persistence_audit_events"
    __table_args__ = (Index("ix_audit_events_type", "event_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


__all__ = [
    "AssessmentModel",
    "ModifierContentModel",
    "PersistenceAuditEventModel",
    "StudentAssessmentResultModel",
]
