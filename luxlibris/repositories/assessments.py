"""Database-backed assessment content repository."""

from __future__ import annotations

import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..assessment_models import AssessmentDefinition, ModifierContent
from ..content_loader import ID_PREFIXES
from ..db.models import AssessmentModel, ModifierContentModel, PersistenceAuditEventModel


def _grade_range(grades: Iterable[int]) -> str:
    values = sorted(grades or [])
    if not values:
        return "Unspecified"
    return f"Grades {values[0]}-{values[-1]}"


class AssessmentRepository:
    """Stores normalised assessment definitions alongside their listing columns."""

    def get(self, session: Session, assessment_id: str) -> AssessmentDefinition | None:
        model = session.get(AssessmentModel, assessment_id)
        if model is None:
            return None
        return self._to_domain(model)

    def find(
        self,
        session: Session,
        *,
        kind: Optional[str] = None,
        academic_year: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[AssessmentDefinition]:
        stmt = select(AssessmentModel)
        if kind:
            stmt = stmt.where(AssessmentModel.kind == kind)
        if academic_year:
            stmt = stmt.where(AssessmentModel.academic_year == academic_year)
        if status:
            stmt = stmt.where(AssessmentModel.status == status)
        stmt = stmt.order_by(AssessmentModel.id)
        return [self._to_domain(model) for model in session.execute(stmt).scalars()]

    def count(self, session: Session, *, kind: str) -> int:
        stmt = select(AssessmentModel.id).where(AssessmentModel.kind == kind)
        return len(session.execute(stmt).scalars().all())

    def upsert(self, session: Session, definition: AssessmentDefinition, *, actor: str = "system") -> AssessmentDefinition:
        model = session.get(AssessmentModel, definition.id)
        if model is None:
            model = AssessmentModel(id=definition.id)
            session.add(model)
        self._apply(model, definition)
        session.flush()
        self._record_audit(session, definition.id, "assessment_upsert", {"kind": definition.kind}, actor)
        return self._to_domain(model)

    def replace_kind(
        self,
        session: Session,
        kind: str,
        definitions: Iterable[AssessmentDefinition],
        *,
        actor: str = "system",
    ) -> Dict[str, int]:
        """Delete every assessment of ``kind`` and insert ``definitions`` in their place."""
        removed = session.execute(delete(AssessmentModel).where(AssessmentModel.kind == kind)).rowcount or 0
        session.flush()
        added = 0
        for definition in definitions:
            model = AssessmentModel(id=definition.id)
            self._apply(model, definition)
            session.add(model)
            added += 1
        session.flush()
        self._record_audit(session, kind, "assessments_replaced", {"removed": removed, "added": added}, actor)
        return {"removed": removed, "added": added}

    def archive_year(
        self,
        session: Session,
        kind: str,
        academic_year: str,
        *,
        actor: str = "system",
    ) -> List[str]:
        stmt = select(AssessmentModel).where(
            AssessmentModel.kind == kind,
            AssessmentModel.academic_year == academic_year,
            AssessmentModel.status != "archived",
        ).order_by(AssessmentModel.id)
        models = list(session.execute(stmt).scalars())
        archived_at = datetime.now(timezone.utc)
        for model in models:
            model.status = "archived"
            model.archived_at = archived_at
            definition = dict(model.definition or {})
            definition["status"] = "archived"
            model.definition = definition
        session.flush()
        archived = [model.id for model in models]
        if archived:
            self._record_audit(
                session,
                kind,
                "assessments_archived",
                {"academic_year": academic_year, "count": len(archived)},
                actor,
            )
        return archived

    def stats(self, session: Session, *, kind: str, current_year: str) -> Dict[str, Any]:
        stmt = select(AssessmentModel).where(AssessmentModel.kind == kind)
        models = list(session.execute(stmt).scalars())
        statuses = Counter(model.status for model in models)
        return {
            "total": len(models),
            "active": statuses.get("active", 0),
            "archived": statuses.get("archived", 0),
            "draft": statuses.get("draft", 0),
            "current_year": sum(1 for model in models if model.academic_year == current_year),
            "by_year": dict(Counter(model.academic_year for model in models)),
            "by_quiz_type": dict(Counter(model.quiz_type for model in models)),
            "by_target_grades": dict(Counter(_grade_range(model.target_grades) for model in models)),
        }

    def next_id(self, session: Session, kind: str) -> str:
        prefix = ID_PREFIXES[kind]
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        stmt = select(AssessmentModel.id).where(AssessmentModel.kind == kind)
        numbers = [
            int(match.group(1))
            for match in (pattern.match(value) for value in session.execute(stmt).scalars())
            if match
        ]
        return f"{prefix}-{max(numbers, default=0) + 1:03d}"

    def delete(self, session: Session, assessment_id: str, *, actor: str = "system") -> bool:
        model = session.get(AssessmentModel, assessment_id)
        if model is None:
            return False
        session.delete(model)
        session.flush()
        self._record_audit(session, assessment_id, "assessment_delete", {}, actor)
        return True

    # ------------------------------------------------------------------
    # Modifier content
    # ------------------------------------------------------------------

    def modifier_table(self, session: Session, audience: str) -> Dict[str, ModifierContent]:
        stmt = (
            select(ModifierContentModel)
            .where(ModifierContentModel.audience == audience, ModifierContentModel.status == "active")
            .order_by(ModifierContentModel.code)
        )
        return {model.code: self._modifier_to_domain(model) for model in session.execute(stmt).scalars()}

    def upsert_modifiers(
        self,
        session: Session,
        entries: Iterable[ModifierContent],
        *,
        actor: str = "system",
    ) -> int:
        count = 0
        for entry in entries:
            stmt = select(ModifierContentModel).where(
                ModifierContentModel.code == entry.code,
                ModifierContentModel.audience == entry.audience,
            )
            model = session.execute(stmt).scalar_one_or_none()
            if model is None:
                model = ModifierContentModel(code=entry.code, audience=entry.audience)
                session.add(model)
            model.name = entry.name
            model.emoji = entry.emoji
            model.description = entry.description
            model.status = entry.status
            model.details = {
                "insights": list(entry.insights),
                "tips": list(entry.tips),
                "research_base": entry.research_base,
            }
            count += 1
        session.flush()
        self._record_audit(session, "modifier_content", "modifiers_upsert", {"count": count}, actor)
        return count

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(model: AssessmentModel, definition: AssessmentDefinition) -> None:
        model.kind = definition.kind
        model.title = definition.title
        model.description = definition.description
        model.academic_year = definition.academic_year or ""
        model.status = definition.status
        model.quiz_type = definition.quiz_type
        model.target_grades = list(definition.target_grades)
        model.definition = definition.model_dump(mode="json")
        if definition.status != "archived":
            model.archived_at = None

    @staticmethod
    def _to_domain(model: AssessmentModel) -> AssessmentDefinition:
        return AssessmentDefinition.model_validate(model.definition)

    @staticmethod
    def _modifier_to_domain(model: ModifierContentModel) -> ModifierContent:
        details = model.details or {}
        return ModifierContent(
            code=model.code,
            audience=model.audience,
            name=model.name,
            emoji=model.emoji,
            description=model.description,
            insights=list(details.get("insights", [])),
            tips=list(details.get("tips", [])),
            research_base=details.get("research_base"),
            status=model.status,
        )

    @staticmethod
    def _record_audit(
        session: Session,
        subject: str,
        event_type: str,
        payload: Dict[str, Any],
        actor: str,
    ) -> None:
        session.add(
            PersistenceAuditEventModel(
                subject=subject,
                event_type=event_type,
                payload=payload,
                actor=actor,
            )
        )


assessments = AssessmentRepository()

__all__ = ["AssessmentRepository", "assessments"]
