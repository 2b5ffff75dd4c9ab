"""Admin endpoints for yearly content management. Every route requires the admin token."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .assessment_models import (
    DEFAULT_MODIFIER_CODES,
    AssessmentDefinition,
    AssessmentKind,
    ModifierAudience,
    ModifierContent,
)
from .assessment_routes import translate_store_errors
from .assessment_store import ContentConflictError, content_store
from .auth import require_admin
from .content_admin import (
    add_assessment,
    archive_academic_year,
    content_stats,
    modifier_table,
    next_assessment_id,
    seed_assessments,
    seed_modifier_content,
)
from .content_loader import ContentFormatError, normalise, normalise_many
from .content_validation import validate_reading_dna_result
from .db.session import get_session_dependency
from .repositories.audit_events import audit_events

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)

_ID_FIELDS = {"saint_quiz": "quiz_id", "nominee_quiz": "id"}


class SeedRequest(BaseModel):
    academic_year: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    overwrite: bool = False
    content: Optional[Any] = Field(default=None, description="Raw authored content; packaged content when omitted")


class SeedResponse(BaseModel):
    kind: AssessmentKind
    academic_year: str
    added: int
    removed: int


class AddAssessmentRequest(BaseModel):
    content: Dict[str, Any]
    academic_year: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    overwrite: bool = False


class ArchiveRequest(BaseModel):
    academic_year: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}$")


class ArchiveResponse(BaseModel):
    kind: AssessmentKind
    archived: List[str]


class ModifierSeedRequest(BaseModel):
    entries: Optional[List[ModifierContent]] = None


class ReadingDnaResultCheck(BaseModel):
    result: Dict[str, Any]
    assessment_id: str = "reading_dna"


def _content_error(exc: ContentFormatError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": str(exc), "errors": exc.errors},
    )


def _conflict(exc: ContentConflictError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("/assessments/{kind}/seed", response_model=SeedResponse)
def seed_kind(kind: AssessmentKind, payload: SeedRequest) -> SeedResponse:
    try:
        definitions = (
            normalise_many(kind, payload.content, academic_year=payload.academic_year)
            if payload.content is not None
            else None
        )
        with translate_store_errors():
            summary = seed_assessments(
                kind,
                definitions,
                academic_year=payload.academic_year,
                overwrite=payload.overwrite,
                actor="admin",
            )
    except ContentFormatError as exc:
        raise _content_error(exc) from exc
    except ContentConflictError as exc:
        raise _conflict(exc) from exc
    return SeedResponse(**summary)


@router.post(
    "/assessments/{kind}",
    response_model=AssessmentDefinition,
    status_code=status.HTTP_201_CREATED,
)
def add_single(kind: AssessmentKind, payload: AddAssessmentRequest) -> AssessmentDefinition:
    content = dict(payload.content)
    id_field = _ID_FIELDS.get(kind)
    try:
        with translate_store_errors():
            if id_field and not content.get(id_field):
                content[id_field] = next_assessment_id(kind).rsplit("-", 1)[-1]
            definition = normalise(kind, content, academic_year=payload.academic_year)
            return add_assessment(definition, overwrite=payload.overwrite, actor="admin")
    except ContentFormatError as exc:
        raise _content_error(exc) from exc
    except ContentConflictError as exc:
        raise _conflict(exc) from exc


@router.post("/assessments/{kind}/archive", response_model=ArchiveResponse)
def archive_kind(kind: AssessmentKind, payload: ArchiveRequest) -> ArchiveResponse:
    with translate_store_errors():
        archived = archive_academic_year(kind, payload.academic_year, actor="admin")
    return ArchiveResponse(kind=kind, archived=archived)


@router.get("/assessments/{kind}/stats")
def kind_stats(
    kind: AssessmentKind,
    academic_year: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
) -> Dict[str, Any]:
    with translate_store_errors():
        return content_stats(kind, current_year=academic_year)


@router.get("/assessments/{kind}/next-id")
def kind_next_id(kind: AssessmentKind) -> Dict[str, str]:
    with translate_store_errors():
        return {"kind": kind, "next_id": next_assessment_id(kind)}


@router.post("/modifiers/seed")
def seed_modifiers(payload: ModifierSeedRequest) -> Dict[str, int]:
    with translate_store_errors():
        count = seed_modifier_content(payload.entries, actor="admin")
    return {"count": count}


@router.get("/modifiers", response_model=Dict[str, ModifierContent])
def list_modifiers(audience: ModifierAudience = Query(default="educator")) -> Dict[str, ModifierContent]:
    with translate_store_errors():
        return modifier_table(audience)


@router.post("/reading-dna/validate-result")
def check_reading_dna_result(payload: ReadingDnaResultCheck) -> Dict[str, Any]:
    with translate_store_errors():
        definition = content_store.get(payload.assessment_id)
    policy = definition.modifier_policy
    codes = policy.codes if policy else list(DEFAULT_MODIFIER_CODES)
    errors = validate_reading_dna_result(payload.result, definition.outcomes.keys(), codes)
    return {"valid": not errors, "errors": errors}


@router.get("/audit-events")
def recent_audit_events(
    event_type: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_session_dependency),
) -> List[Dict[str, Any]]:
    return audit_events.recent(session, event_type=event_type, limit=limit)


__all__ = ["router"]
