"""Student-facing assessment endpoints: browse, submit and review results."""

from __future__ import annotations

import logging
import random
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Generator, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from .assessment_models import (
    AssessmentDefinition,
    AssessmentKind,
    AssessmentResult,
    AssessmentStatus,
    DisplayRecord,
    StudentAssessmentRecord,
)
from .assessment_scoring import ResponseOutOfRangeError
from .assessment_service import submit
from .assessment_store import (
    AssessmentNotFoundError,
    ContentUnavailableError,
    content_store,
    result_store,
)

router = APIRouter(prefix="/api", tags=["assessments"])
logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"


class AssessmentSummaryPayload(BaseModel):
    id: str
    kind: AssessmentKind
    title: str
    description: str
    academic_year: Optional[str] = None
    status: AssessmentStatus
    quiz_type: str
    target_grades: List[int] = Field(default_factory=list)
    question_count: int


class SubmissionRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    responses: Dict[int, int] = Field(default_factory=dict)
    seed: Optional[int] = Field(default=None, description="Seed for reproducible tie-breaks")


class SubmissionResponse(BaseModel):
    display: DisplayRecord
    result: AssessmentResult
    times_completed: int


class StudentResultsPayload(BaseModel):
    student_id: str
    completed_count: int
    results: List[StudentAssessmentRecord] = Field(default_factory=list)
    generated_at: datetime


@contextmanager
def translate_store_errors() -> Generator[None, None, None]:
    try:
        yield
    except AssessmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ResponseOutOfRangeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except ContentUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        ) from exc


def _summary(definition: AssessmentDefinition) -> AssessmentSummaryPayload:
    return AssessmentSummaryPayload(
        id=definition.id,
        kind=definition.kind,
        title=definition.title,
        description=definition.description,
        academic_year=definition.academic_year,
        status=definition.status,
        quiz_type=definition.quiz_type,
        target_grades=list(definition.target_grades),
        question_count=len(definition.questions),
    )


@router.get("/assessments", response_model=List[AssessmentSummaryPayload])
def list_assessments(
    kind: Optional[AssessmentKind] = Query(default=None),
    academic_year: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    status_filter: Optional[AssessmentStatus] = Query(default="active", alias="status"),
) -> List[AssessmentSummaryPayload]:
    with translate_store_errors():
        definitions = content_store.find(kind=kind, academic_year=academic_year, status=status_filter)
    return [_summary(definition) for definition in definitions]


@router.get("/assessments/{assessment_id}", response_model=AssessmentDefinition)
def get_assessment(assessment_id: str) -> AssessmentDefinition:
    with translate_store_errors():
        return content_store.get(assessment_id)


@router.post(
    "/assessments/{assessment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_assessment(assessment_id: str, payload: SubmissionRequest) -> SubmissionResponse:
    student_id = payload.student_id.strip()
    if not student_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Student id cannot be empty.",
        )
    rng = random.Random(payload.seed) if payload.seed is not None else None
    with translate_store_errors():
        outcome = submit(assessment_id, student_id, payload.responses, rng=rng)
    return SubmissionResponse(
        display=outcome.display,
        result=outcome.result,
        times_completed=outcome.record.times_completed,
    )


@router.get("/students/{student_id}/results", response_model=StudentResultsPayload)
def student_results(student_id: str) -> StudentResultsPayload:
    student_id = student_id.strip()
    if not student_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Student id cannot be empty.",
        )
    with translate_store_errors():
        records = result_store.results_for_student(student_id)
    return StudentResultsPayload(
        student_id=student_id,
        completed_count=len(records),
        results=records,
        generated_at=datetime.now().astimezone(),
    )


__all__ = ["router", "translate_store_errors"]
