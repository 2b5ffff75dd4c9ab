"""Yearly content administration: seeding, archiving and reporting.

Seeding a kind replaces every assessment of that kind, so it refuses to run
over existing content unless ``overwrite`` is set.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .assessment_models import AssessmentDefinition, AssessmentKind, ModifierAudience, ModifierContent
from .assessment_store import (
    AssessmentContentStore,
    AssessmentNotFoundError,
    ContentConflictError,
    content_store,
)
from .config import get_settings
from .content_loader import load_packaged_definitions, load_packaged_modifier_content
from .telemetry import emit_event

logger = logging.getLogger(__name__)


def seed_assessments(
    kind: AssessmentKind,
    definitions: Optional[Iterable[AssessmentDefinition]] = None,
    *,
    academic_year: Optional[str] = None,
    overwrite: bool = False,
    actor: str = "system",
    store: Optional[AssessmentContentStore] = None,
) -> Dict[str, Any]:
    """Replace all assessments of ``kind``. Packaged content is used when none is given."""
    store = store or content_store
    year = academic_year or get_settings().academic_year
    items = (
        list(definitions)
        if definitions is not None
        else load_packaged_definitions(kind, academic_year=year)
    )
    mismatched = [item.id for item in items if item.kind != kind]
    if mismatched:
        raise ValueError(f"Definitions {mismatched} are not {kind} assessments.")

    existing = store.count(kind)
    if existing and not overwrite:
        raise ContentConflictError(
            f"{existing} {kind} assessments already exist; pass overwrite=True to replace them."
        )

    counts = store.replace_kind(kind, items, actor=actor)
    logger.info("Seeded %d %s assessments (removed %d)", counts["added"], kind, counts["removed"])
    emit_event(
        "content_seeded",
        kind=kind,
        academic_year=year,
        added=counts["added"],
        removed=counts["removed"],
        actor=actor,
    )
    return {"kind": kind, "academic_year": year, **counts}


def add_assessment(
    definition: AssessmentDefinition,
    *,
    overwrite: bool = False,
    actor: str = "system",
    store: Optional[AssessmentContentStore] = None,
) -> AssessmentDefinition:
    store = store or content_store
    if not overwrite:
        try:
            store.get(definition.id)
        except AssessmentNotFoundError:
            pass
        else:
            raise ContentConflictError(f"Assessment '{definition.id}' already exists.")
    stored = store.upsert(definition, actor=actor)
    emit_event("content_seeded", kind=definition.kind, assessment_id=definition.id, added=1, actor=actor)
    return stored


def archive_academic_year(
    kind: AssessmentKind,
    academic_year: Optional[str] = None,
    *,
    actor: str = "system",
    store: Optional[AssessmentContentStore] = None,
) -> List[str]:
    store = store or content_store
    year = academic_year or get_settings().academic_year
    archived = store.archive_year(kind, year, actor=actor)
    if not archived:
        raise AssessmentNotFoundError(
            f"{kind}:{year}",
            f"No active {kind} assessments found for academic year {year}.",
        )
    logger.info("Archived %d %s assessments for %s", len(archived), kind, year)
    emit_event("content_archived", kind=kind, academic_year=year, count=len(archived), actor=actor)
    return archived


def content_stats(
    kind: AssessmentKind,
    *,
    current_year: Optional[str] = None,
    store: Optional[AssessmentContentStore] = None,
) -> Dict[str, Any]:
    store = store or content_store
    year = current_year or get_settings().academic_year
    stats = store.stats(kind, current_year=year)
    return {"kind": kind, "academic_year": year, **stats}


def next_assessment_id(kind: AssessmentKind, *, store: Optional[AssessmentContentStore] = None) -> str:
    return (store or content_store).next_id(kind)


def list_assessments(
    kind: Optional[AssessmentKind] = None,
    *,
    academic_year: Optional[str] = None,
    status: Optional[str] = None,
    store: Optional[AssessmentContentStore] = None,
) -> List[AssessmentDefinition]:
    return (store or content_store).find(kind=kind, academic_year=academic_year, status=status)


def active_assessments(
    kind: Optional[AssessmentKind] = None,
    *,
    store: Optional[AssessmentContentStore] = None,
) -> List[AssessmentDefinition]:
    return list_assessments(kind, status="active", store=store)


def seed_modifier_content(
    entries: Optional[Iterable[ModifierContent]] = None,
    *,
    actor: str = "system",
    store: Optional[AssessmentContentStore] = None,
) -> int:
    store = store or content_store
    items = list(entries) if entries is not None else load_packaged_modifier_content()
    count = store.upsert_modifiers(items, actor=actor)
    emit_event("content_seeded", kind="modifiers", added=count, actor=actor)
    return count


def modifier_table(
    audience: ModifierAudience = "student",
    *,
    store: Optional[AssessmentContentStore] = None,
) -> Dict[str, ModifierContent]:
    return (store or content_store).modifier_table(audience)


__all__ = [
    "active_assessments",
    "add_assessment",
    "archive_academic_year",
    "content_stats",
    "list_assessments",
    "modifier_table",
    "next_assessment_id",
    "seed_assessments",
    "seed_modifier_content",
]
