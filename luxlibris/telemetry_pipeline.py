"""Telemetry listener that persists assessment and content events to the audit trail."""

from __future__ import annotations

import logging
from typing import Optional, Set

from .db.session import session_scope
from .repositories.audit_events import audit_events
from .telemetry import TelemetryEvent, register_listener

logger = logging.getLogger(__name__)

_MONITORED_EVENTS: Set[str] = {
    "assessment_completed",
    "content_seeded",
    "content_archived",
}


def _subject(event: TelemetryEvent) -> Optional[str]:
    for key in ("student_id", "assessment_id", "kind"):
        value = event.payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _persist_event(event: TelemetryEvent) -> None:
    if event.name not in _MONITORED_EVENTS:
        return
    try:
        with session_scope() as session:
            audit_events.record(session, event.name, dict(event.payload), subject=_subject(event))
    except Exception:  # noqa: BLE001
        logger.exception("Failed to persist telemetry event %s", event.name)


def install() -> None:
    register_listener(_persist_event)


install()

__all__ = ["_MONITORED_EVENTS", "install"]
