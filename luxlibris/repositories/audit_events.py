"""Persistence audit trail shared by content and result writes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import PersistenceAuditEventModel


class AuditEventRepository:
    def record(
        self,
        session: Session,
        event_type: str,
        payload: Dict[str, Any],
        *,
        subject: Optional[str] = None,
        actor: str = "telemetry",
    ) -> None:
        session.add(
            PersistenceAuditEventModel(
                subject=subject,
                event_type=event_type,
                payload=payload,
                actor=actor,
            )
        )

    def recent(
        self,
        session: Session,
        *,
        event_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        stmt = select(PersistenceAuditEventModel).order_by(PersistenceAuditEventModel.created_at.desc())
        if event_type:
            stmt = stmt.where(PersistenceAuditEventModel.event_type == event_type)
        stmt = stmt.limit(limit)
        return [
            {
                "event_type": model.event_type,
                "subject": model.subject,
                "actor": model.actor,
                "payload": dict(model.payload or {}),
                "created_at": model.created_at,
            }
            for model in session.execute(stmt).scalars()
        ]


audit_events = AuditEventRepository()

__all__ = ["AuditEventRepository", "audit_events"]
