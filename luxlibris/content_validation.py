"""Structural checks for authored quiz payloads and Reading DNA result documents."""

from __future__ import annotations

import re
from typing import Any, Collection, List, Mapping

ACADEMIC_YEAR_PATTERN = re.compile(r"^\d{4}-\d{2}$")
QUIZ_TYPES = ("personality", "knowledge", "preference", "assessment")
QUIZ_STATUSES = ("active", "archived", "draft")

_REQUIRED_QUIZ_FIELDS = (
    "id",
    "title",
    "description",
    "academic_year",
    "quiz_type",
    "target_grades",
    "questions",
    "results",
)
_REQUIRED_RESULT_FIELDS = ("book_id", "title", "description")
_REQUIRED_DNA_FIELDS = (
    "type",
    "details",
    "motivation_counts",
    "modifiers",
    "full_code",
    "responses",
)


def _missing(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def validate_quiz_payload(payload: Mapping[str, Any]) -> List[str]:
    """Return every problem found in a nominee quiz payload. An empty list means valid."""
    errors: List[str] = []

    for field in _REQUIRED_QUIZ_FIELDS:
        if _missing(payload.get(field)):
            errors.append(f"Missing required field: {field}")

    academic_year = payload.get("academic_year")
    if academic_year and not ACADEMIC_YEAR_PATTERN.match(str(academic_year)):
        errors.append("Academic year must be in format YYYY-YY (e.g., 2025-26)")

    quiz_type = payload.get("quiz_type")
    if quiz_type and quiz_type not in QUIZ_TYPES:
        errors.append(f"Quiz type must be one of: {', '.join(QUIZ_TYPES)}")

    status = payload.get("status")
    if status and status not in QUIZ_STATUSES:
        errors.append(f"Status must be one of: {', '.join(QUIZ_STATUSES)}")

    target_grades = payload.get("target_grades")
    if target_grades is not None and not isinstance(target_grades, list):
        errors.append("Target grades must be an array")

    questions = payload.get("questions")
    if isinstance(questions, list):
        for index, question in enumerate(questions, start=1):
            if not isinstance(question, Mapping):
                errors.append(f"Question {index}: must be an object")
                continue
            if _missing(question.get("question")):
                errors.append(f"Question {index}: Missing question text")
            options = question.get("options")
            if not isinstance(options, list) or not options:
                errors.append(f"Question {index}: Missing or invalid options")
                continue
            for option_index, option in enumerate(options, start=1):
                if not isinstance(option, Mapping) or _missing(option.get("text")):
                    errors.append(f"Question {index}, Option {option_index}: Missing text")
                if not isinstance(option, Mapping) or not isinstance(option.get("points"), Mapping):
                    errors.append(f"Question {index}, Option {option_index}: Missing points object")
    elif questions is not None:
        errors.append("Questions must be an array")

    results = payload.get("results")
    if isinstance(results, list):
        for index, result in enumerate(results, start=1):
            if not isinstance(result, Mapping):
                errors.append(f"Result {index}: must be an object")
                continue
            for field in _REQUIRED_RESULT_FIELDS:
                if _missing(result.get(field)):
                    errors.append(f"Result {index}: Missing {field}")
    elif results is not None:
        errors.append("Results must be an array")

    return errors


def validate_reading_dna_result(
    result: Mapping[str, Any],
    outcomes: Collection[str],
    modifier_codes: Collection[str],
) -> List[str]:
    """Check a Reading DNA result document against the known reader types and modifier codes."""
    errors: List[str] = []
    for field in _REQUIRED_DNA_FIELDS:
        if _missing(result.get(field)):
            errors.append(f"Missing required field: {field}")

    dna_type = result.get("type")
    if dna_type and dna_type not in outcomes:
        errors.append(f"Invalid DNA type: {dna_type}")

    modifiers = result.get("modifiers")
    if isinstance(modifiers, list):
        for modifier in modifiers:
            if modifier not in modifier_codes:
                errors.append(f"Invalid modifier: {modifier}")
    elif modifiers is not None:
        errors.append("Modifiers must be an array")

    return errors


__all__ = [
    "ACADEMIC_YEAR_PATTERN",
    "QUIZ_STATUSES",
    "QUIZ_TYPES",
    "validate_quiz_payload",
    "validate_reading_dna_result",
]
