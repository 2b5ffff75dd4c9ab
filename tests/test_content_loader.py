from __future__ import annotations

import random

import pytest

from luxlibris.assessment_scoring import score
from luxlibris.content_loader import (
    ContentFormatError,
    assessment_id,
    definition_from_nominee_quiz,
    definition_from_saint_quiz,
    load_packaged_definitions,
    load_packaged_modifier_content,
    normalise_many,
)


def test_numeric_ids_are_namespaced_by_kind() -> None:
    assert assessment_id("nominee_quiz", "001") == "nominee-001"
    assert assessment_id("saint_quiz", 7) == "saint-007"
    assert assessment_id("reading_dna", "reading_dna") == "reading_dna"


def test_packaged_saint_quiz_scores_to_a_saint() -> None:
    (definition,) = load_packaged_definitions("saint_quiz")
    assert definition.id == "saint-001"
    assert definition.academic_year == "2025-26"
    assert set(definition.outcomes) == {
        "saint_francis",
        "saint_therese",
        "saint_thomas_aquinas",
        "saint_kateri",
    }
    francis = definition.outcomes["saint_francis"]
    assert francis.image_ref == "assets/saints/saint_francis.png"
    assert francis.extras["series"] == "Halo Hatchlings"

    result = score(definition, {0: 0, 1: 0, 2: 0}, rng=random.Random(0))
    assert result.outcome_key == "saint_francis"
    assert result.scores["saint_francis"] == 8
    assert result.scores["saint_kateri"] == 1


def test_packaged_nominee_quizzes() -> None:
    definitions = load_packaged_definitions("nominee_quiz", academic_year="2025-26")
    assert [definition.id for definition in definitions] == ["nominee-001", "nominee-002"]
    first = definitions[0]
    assert first.result_title_prefix == "Your Lux Libris Literary Home is"
    assert first.target_grades == [4, 5, 6, 7, 8]

    result = score(first, {0: 1, 1: 0, 2: 0}, rng=random.Random(0))
    assert result.outcome_key == "001"
    assert result.scores["001"] == 9


def test_packaged_reading_dna_uses_modifier_policy() -> None:
    (definition,) = load_packaged_definitions("reading_dna")
    assert definition.id == "reading_dna"
    assert definition.uses_modifiers
    assert len(definition.outcomes) == 6
    assert len(definition.questions) == 8
    first_option = definition.questions[0].options[0]
    assert first_option.weights == {"creative_explorer": 1}
    assert first_option.option_id == "creative_expression"

    responses = {index: 0 for index in range(len(definition.questions))}
    result = score(definition, responses, rng=random.Random(0))
    assert result.outcome_key in definition.outcomes
    assert 1 <= len(result.modifier_keys) <= 3


def test_modifier_content_covers_both_audiences() -> None:
    entries = load_packaged_modifier_content()
    student = {entry.code for entry in entries if entry.audience == "student"}
    educator = [entry for entry in entries if entry.audience == "educator"]
    assert student == {"S", "A", "E", "P", "I", "F", "G", "R"}
    assert len(educator) == 8
    assert all(entry.research_base for entry in educator)


def test_saint_quiz_without_id_is_rejected() -> None:
    with pytest.raises(ContentFormatError):
        definition_from_saint_quiz({"questions": [], "results": {"a": {"name": "A"}}})


def test_nominee_quiz_validation_errors_are_attached() -> None:
    with pytest.raises(ContentFormatError) as excinfo:
        definition_from_nominee_quiz({"id": "010", "title": "Broken"})
    assert "Missing required field: questions" in excinfo.value.errors


def test_non_integer_points_are_rejected() -> None:
    payload = {
        "quiz_id": "002",
        "questions": [{"question": "Q", "answers": [{"text": "a", "points": {"x": "lots"}}]}],
        "results": {"x": {"name": "X"}},
    }
    with pytest.raises(ContentFormatError):
        definition_from_saint_quiz(payload)


def test_quiz_payloads_must_be_lists() -> None:
    with pytest.raises(ContentFormatError):
        normalise_many("nominee_quiz", {"id": "001"})
