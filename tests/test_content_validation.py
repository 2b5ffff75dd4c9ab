from __future__ import annotations

import copy

from luxlibris.content_validation import validate_quiz_payload, validate_reading_dna_result

VALID_QUIZ = {
    "id": "003",
    "title": "Which Story Setting Fits You?",
    "description": "Find your favourite book world.",
    "academic_year": "2025-26",
    "status": "active",
    "quiz_type": "personality",
    "target_grades": [4, 5, 6],
    "questions": [
        {
            "question": "Pick a snack:",
            "options": [
                {"text": "Popcorn", "points": {"001": 2}},
                {"text": "Apples", "points": {"002": 2}},
            ],
        }
    ],
    "results": [
        {"book_id": "001", "title": "Book One", "description": "First."},
        {"book_id": "002", "title": "Book Two", "description": "Second."},
    ],
}


def _quiz(**changes):
    payload = copy.deepcopy(VALID_QUIZ)
    payload.update(changes)
    return payload


def test_valid_quiz_has_no_errors() -> None:
    assert validate_quiz_payload(VALID_QUIZ) == []


def test_missing_fields_are_reported_individually() -> None:
    payload = _quiz(title="", results=[])
    del payload["description"]
    errors = validate_quiz_payload(payload)
    assert "Missing required field: title" in errors
    assert "Missing required field: description" in errors
    assert "Missing required field: results" in errors


def test_academic_year_format() -> None:
    errors = validate_quiz_payload(_quiz(academic_year="2025"))
    assert errors == ["Academic year must be in format YYYY-YY (e.g., 2025-26)"]


def test_quiz_type_and_status_are_closed_sets() -> None:
    errors = validate_quiz_payload(_quiz(quiz_type="trivia", status="published"))
    assert "Quiz type must be one of: personality, knowledge, preference, assessment" in errors
    assert "Status must be one of: active, archived, draft" in errors


def test_target_grades_must_be_a_list() -> None:
    assert "Target grades must be an array" in validate_quiz_payload(_quiz(target_grades="4-6"))


def test_question_and_option_problems_are_numbered_from_one() -> None:
    payload = _quiz(
        questions=[
            {"question": "", "options": [{"text": "ok", "points": {}}]},
            {"question": "Second", "options": []},
            {"question": "Third", "options": [{"text": "", "points": {"001": 1}}, {"text": "no points"}]},
        ]
    )
    errors = validate_quiz_payload(payload)
    assert "Question 1: Missing question text" in errors
    assert "Question 2: Missing or invalid options" in errors
    assert "Question 3, Option 1: Missing text" in errors
    assert "Question 3, Option 2: Missing points object" in errors


def test_result_fields_are_required() -> None:
    payload = _quiz(results=[{"book_id": "001", "title": "Book One"}, {"description": "orphan"}])
    errors = validate_quiz_payload(payload)
    assert "Result 1: Missing description" in errors
    assert "Result 2: Missing book_id" in errors
    assert "Result 2: Missing title" in errors


def test_reading_dna_result_checks_types_and_modifiers() -> None:
    result = {
        "type": "space_cadet",
        "details": {"name": "?"},
        "motivation_counts": {"creative_explorer": 1},
        "modifiers": ["S", "Z"],
        "full_code": "SC-SZ",
        "responses": {"q1": "a"},
    }
    errors = validate_reading_dna_result(result, {"creative_explorer"}, ["S", "I"])
    assert errors == ["Invalid DNA type: space_cadet", "Invalid modifier: Z"]


def test_reading_dna_result_requires_fields() -> None:
    errors = validate_reading_dna_result({"type": "creative_explorer", "modifiers": "S"}, {"creative_explorer"}, ["S"])
    assert "Missing required field: details" in errors
    assert "Missing required field: full_code" in errors
    assert "Modifiers must be an array" in errors
