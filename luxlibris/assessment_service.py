"""Score a submission, record the completion and build the display record."""

from __future__ import annotations

import logging
import random
from typing import Mapping, Optional

from pydantic import BaseModel

from .assessment_models import AssessmentResult, DisplayRecord, StudentAssessmentRecord
from .assessment_presentation import present
from .assessment_scoring import score
from .assessment_store import (
    AssessmentContentStore,
    StudentResultStore,
    content_store,
    result_store,
)
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class SubmissionOutcome(BaseModel):
    result: AssessmentResult
    record: StudentAssessmentRecord
    display: DisplayRecord


def submit(
    assessment_id: str,
    student_id: str,
    responses: Mapping[int, int],
    *,
    rng: Optional[random.Random] = None,
    contents: Optional[AssessmentContentStore] = None,
    results: Optional[StudentResultStore] = None,
) -> SubmissionOutcome:
    contents = contents or content_store
    results = results or result_store

    definition = contents.get(assessment_id)
    result = score(definition, responses, rng=rng)
    # All reads happen before the completion is committed.
    modifier_content = contents.modifier_table("student") if definition.uses_modifiers else {}
    record = results.record_completion(student_id, assessment_id, result)
    result = result.model_copy(update={"times_completed": record.times_completed})

    display = present(definition, result, modifier_content)

    emit_event(
        "assessment_completed",
        student_id=record.student_id,
        assessment_id=assessment_id,
        kind=definition.kind,
        outcome_key=result.outcome_key,
        modifier_keys=list(result.modifier_keys),
        used_fallback=result.used_fallback,
        times_completed=record.times_completed,
    )
    logger.info(
        "Recorded %s for %s (completion %d)",
        assessment_id,
        record.student_id,
        record.times_completed,
    )
    return SubmissionOutcome(result=result, record=record, display=display)


__all__ = ["SubmissionOutcome", "submit"]
