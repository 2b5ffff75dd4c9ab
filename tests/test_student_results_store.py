from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from luxlibris.assessment_models import AssessmentResult
from luxlibris.assessment_service import submit
from luxlibris.assessment_store import (
    AssessmentNotFoundError,
    ContentUnavailableError,
    StudentResultStore,
    content_store,
    result_store,
)
from luxlibris.content_admin import seed_assessments, seed_modifier_content
from luxlibris.db.models import PersistenceAuditEventModel
from luxlibris.db.session import session_scope


def _result(outcome_key: str, *, minutes: int = 0, modifiers=None) -> AssessmentResult:
    return AssessmentResult(
        assessment_id="saint-001",
        outcome_key=outcome_key,
        scores={outcome_key: 3},
        modifier_keys=modifiers or [],
        completed_at=datetime(2025, 9, 1, 8, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


def test_retake_increments_counter_and_overwrites_outcome(database) -> None:
    first = result_store.record_completion("student-1", "saint-001", _result("saint_francis"))
    assert first.times_completed == 1

    second = result_store.record_completion("student-1", "saint-001", _result("saint_kateri", minutes=5))
    assert second.times_completed == 2
    assert second.outcome_key == "saint_kateri"

    stored = result_store.get("student-1", "saint-001")
    assert stored is not None
    assert stored.times_completed == 2
    assert stored.outcome_key == "saint_kateri"
    assert stored.scores == {"saint_kateri": 3}
    assert result_store.completed_count("student-1") == 1


def test_completions_are_kept_per_assessment(database) -> None:
    result_store.record_completion("student-2", "saint-001", _result("saint_francis"))
    result_store.record_completion("student-2", "nominee-001", _result("001", minutes=10))

    records = result_store.results_for_student("student-2")
    assert [record.assessment_id for record in records] == ["nominee-001", "saint-001"]
    assert result_store.is_completed("student-2", "nominee-001")
    assert not result_store.is_completed("student-3", "nominee-001")


def test_completion_writes_audit_row(database) -> None:
    result_store.record_completion(" student-4 ", "saint-001", _result("saint_therese"))
    with session_scope(commit=False) as session:
        rows = session.execute(
            select(PersistenceAuditEventModel).where(
                PersistenceAuditEventModel.event_type == "assessment_completion"
            )
        ).scalars().all()
    assert [row.subject for row in rows] == ["student-4"]
    assert rows[0].payload["times_completed"] == 1


def test_delete_result(database) -> None:
    result_store.record_completion("student-5", "saint-001", _result("saint_francis"))
    assert result_store.delete("student-5", "saint-001")
    assert not result_store.delete("student-5", "saint-001")
    assert result_store.get("student-5", "saint-001") is None


def test_blank_student_id_is_rejected(database) -> None:
    with pytest.raises(ValueError):
        result_store.record_completion("  ", "saint-001", _result("saint_francis"))


def test_missing_assessment_raises_not_found(database) -> None:
    with pytest.raises(AssessmentNotFoundError):
        content_store.get("saint-404")


def test_submit_scores_records_and_presents(database) -> None:
    seed_assessments("saint_quiz")
    outcome = submit("saint-001", "student-6", {0: 0, 1: 0, 2: 0}, rng=random.Random(0))
    assert outcome.result.outcome_key == "saint_francis"
    assert outcome.result.times_completed == 1
    assert outcome.display.name == "St. Francis of Assisi"
    assert outcome.display.image_ref == "assets/saints/saint_francis.png"

    again = submit("saint-001", "student-6", {0: 3, 1: 3, 2: 3}, rng=random.Random(0))
    assert again.record.times_completed == 2
    assert again.result.outcome_key == "saint_kateri"


def test_submit_reading_dna_includes_modifier_display(database) -> None:
    seed_assessments("reading_dna")
    seed_modifier_content()
    definition = content_store.get("reading_dna")
    responses = {index: 0 for index in range(len(definition.questions))}

    outcome = submit("reading_dna", "student-7", responses, rng=random.Random(0))
    assert outcome.display.dna_code is not None
    assert outcome.display.dna_code.endswith("".join(outcome.result.modifier_keys))
    assert [modifier.code for modifier in outcome.display.modifiers] == outcome.result.modifier_keys


def test_store_failures_surface_as_content_unavailable(database, monkeypatch) -> None:
    from sqlalchemy.exc import OperationalError

    from luxlibris.repositories.student_results import student_results

    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(student_results, "list_for_student", broken)
    with pytest.raises(ContentUnavailableError):
        StudentResultStore().results_for_student("student-8")


def test_failed_modifier_read_records_nothing(database, monkeypatch) -> None:
    seed_assessments("reading_dna")
    definition = content_store.get("reading_dna")
    responses = {index: 0 for index in range(len(definition.questions))}

    def unavailable(audience: str = "student"):
        raise ContentUnavailableError("The content store is temporarily unavailable.")

    monkeypatch.setattr(content_store, "modifier_table", unavailable)
    with pytest.raises(ContentUnavailableError):
        submit("reading_dna", "student-9", responses, rng=random.Random(0))
    assert result_store.results_for_student("student-9") == []
