"""Normalise authored quiz payloads into :class:`AssessmentDefinition` objects.

Three content shapes exist:

* saint quizzes: ``questions[].answers[].points`` keyed by saint, ``results`` a mapping.
* nominee quizzes: ``questions[].options[].points`` keyed by book id, ``results`` a list.
* Reading DNA: ``questions[].options[].motivationType`` worth one point to that
  reader type, plus ``modifierHints``.

All of them end up in the same definition model so that one scoring path serves
every assessment.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .assessment_models import (
    DEFAULT_MODIFIER_CODES,
    AssessmentDefinition,
    AssessmentKind,
    ModifierContent,
    ModifierPolicy,
    OutcomeDetails,
)
from .config import get_settings
from .content_validation import validate_quiz_payload

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

ID_PREFIXES: Dict[str, str] = {
    "saint_quiz": "saint",
    "nominee_quiz": "nominee",
    "reading_dna": "dna",
}
PACKAGED_FILES: Dict[str, str] = {
    "saint_quiz": "saint_quizzes.json",
    "nominee_quiz": "nominee_quizzes.json",
    "reading_dna": "reading_dna.json",
}
_NUMERIC_ID = re.compile(r"^\d+$")


class ContentFormatError(ValueError):
    """Raised when an authored payload cannot be turned into a definition."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def assessment_id(kind: AssessmentKind, raw_id: Any) -> str:
    """Numeric ids are namespaced per kind (``7`` -> ``nominee-007``); others are kept."""
    value = str(raw_id).strip()
    if _NUMERIC_ID.match(value):
        return f"{ID_PREFIXES[kind]}-{int(value):03d}"
    return value


def _points(raw: Any) -> Dict[str, int]:
    if not isinstance(raw, Mapping):
        return {}
    try:
        return {str(key): int(value) for key, value in raw.items()}
    except (TypeError, ValueError) as exc:
        raise ContentFormatError(f"Points must be whole numbers: {raw!r}") from exc


def _build(payload: Dict[str, Any], source: str) -> AssessmentDefinition:
    try:
        return AssessmentDefinition.model_validate(payload)
    except ValidationError as exc:
        raise ContentFormatError(f"Invalid {source} content: {exc}") from exc


def definition_from_saint_quiz(
    payload: Mapping[str, Any],
    *,
    academic_year: Optional[str] = None,
) -> AssessmentDefinition:
    raw_id = payload.get("quiz_id") or payload.get("id")
    if not raw_id:
        raise ContentFormatError("Saint quiz is missing quiz_id.")

    questions = [
        {
            "prompt": question.get("question", ""),
            "options": [
                {"text": answer.get("text", ""), "weights": _points(answer.get("points"))}
                for answer in question.get("answers", [])
            ],
        }
        for question in payload.get("questions", [])
    ]

    outcomes: Dict[str, OutcomeDetails] = {}
    for key, result in (payload.get("results") or {}).items():
        extras = {"saint_id": result.get("saint_id", key)}
        if payload.get("series"):
            extras["series"] = payload["series"]
        outcomes[key] = OutcomeDetails(
            name=result.get("name", key),
            description=result.get("description", ""),
            flavor_text=result.get("flavor_text"),
            image_ref=result.get("icon_asset"),
            extras=extras,
        )

    return _build(
        {
            "id": assessment_id("saint_quiz", raw_id),
            "kind": "saint_quiz",
            "title": payload.get("title", ""),
            "description": payload.get("description", ""),
            "academic_year": payload.get("academic_year") or academic_year or get_settings().academic_year,
            "status": payload.get("status", "active"),
            "quiz_type": payload.get("quiz_type", "personality"),
            "target_grades": payload.get("target_grades", []),
            "result_title_prefix": payload.get("result_title_prefix"),
            "questions": questions,
            "outcomes": outcomes,
        },
        "saint quiz",
    )


def definition_from_nominee_quiz(
    payload: Mapping[str, Any],
    *,
    academic_year: Optional[str] = None,
) -> AssessmentDefinition:
    candidate = dict(payload)
    if academic_year and not candidate.get("academic_year"):
        candidate["academic_year"] = academic_year
    errors = validate_quiz_payload(candidate)
    if errors:
        raise ContentFormatError(
            f"Nominee quiz {candidate.get('id')!r} failed validation: {'; '.join(errors)}",
            errors,
        )

    questions = [
        {
            "prompt": question["question"],
            "options": [
                {"text": option["text"], "weights": _points(option.get("points"))}
                for option in question["options"]
            ],
        }
        for question in candidate["questions"]
    ]
    outcomes = {
        str(result["book_id"]): OutcomeDetails(
            name=result["title"],
            description=result["description"],
            extras={"book_id": str(result["book_id"])},
        )
        for result in candidate["results"]
    }

    return _build(
        {
            "id": assessment_id("nominee_quiz", candidate["id"]),
            "kind": "nominee_quiz",
            "title": candidate["title"],
            "description": candidate["description"],
            "academic_year": candidate["academic_year"],
            "status": candidate.get("status", "active"),
            "quiz_type": candidate["quiz_type"],
            "target_grades": candidate["target_grades"],
            "result_title_prefix": candidate.get("result_title_prefix"),
            "questions": questions,
            "outcomes": outcomes,
        },
        "nominee quiz",
    )


def _default_modifier_policy() -> ModifierPolicy:
    settings = get_settings()
    return ModifierPolicy(
        codes=list(DEFAULT_MODIFIER_CODES),
        default_code=settings.default_modifier,
        max_selected=settings.max_modifiers,
    )


def definition_from_reading_dna(
    payload: Mapping[str, Any],
    *,
    academic_year: Optional[str] = None,
    modifier_policy: Optional[ModifierPolicy] = None,
) -> AssessmentDefinition:
    meta = payload.get("assessment") or {}
    types = payload.get("types") or {}
    if not types:
        raise ContentFormatError("Reading DNA content has no reader types.")

    questions: List[Dict[str, Any]] = []
    for question in payload.get("questions", []):
        options = []
        for option in question.get("options", []):
            motivation = option.get("motivationType")
            if motivation and motivation not in types:
                logger.warning(
                    "Reading DNA option %s points at unknown type %s",
                    option.get("id"),
                    motivation,
                )
            options.append(
                {
                    "text": option.get("text", ""),
                    "weights": {motivation: 1} if motivation else {},
                    "modifier_hints": list(option.get("modifierHints", [])),
                    "option_id": option.get("id"),
                }
            )
        questions.append(
            {"prompt": question.get("question", ""), "options": options, "question_id": question.get("id")}
        )

    outcomes = {
        key: OutcomeDetails(
            name=entry.get("name", key),
            description=entry.get("description", ""),
            flavor_text=entry.get("researchNote"),
            extras={
                "emoji": entry.get("emoji"),
                "color": entry.get("color"),
                "support_strategies": list(entry.get("supportStrategies", [])),
            },
        )
        for key, entry in types.items()
    }

    return _build(
        {
            "id": meta.get("id", "reading_dna"),
            "kind": "reading_dna",
            "title": meta.get("title", "Reading DNA"),
            "description": meta.get("description", ""),
            "academic_year": meta.get("academic_year") or academic_year or get_settings().academic_year,
            "status": meta.get("status", "active"),
            "quiz_type": meta.get("assessment_type", "personality"),
            "target_grades": meta.get("target_grades", []),
            "questions": questions,
            "outcomes": outcomes,
            "modifier_policy": modifier_policy or _default_modifier_policy(),
        },
        "Reading DNA",
    )


def modifier_content_from_reading_dna(payload: Mapping[str, Any]) -> List[ModifierContent]:
    """Student-facing and educator-facing modifier entries from a Reading DNA payload."""
    entries: List[ModifierContent] = []
    for code, entry in (payload.get("student_modifiers") or {}).items():
        entries.append(
            ModifierContent(
                code=code,
                audience="student",
                name=entry.get("name", code),
                emoji=entry.get("emoji"),
                description=entry.get("description", ""),
                insights=list(entry.get("studentInsights", [])),
                tips=list(entry.get("studentTips", [])),
            )
        )
    for code, entry in (payload.get("educator_modifiers") or {}).items():
        entries.append(
            ModifierContent(
                code=code,
                audience="educator",
                name=entry.get("name", code),
                emoji=entry.get("emoji"),
                description=entry.get("description", ""),
                insights=list(entry.get("indicators", [])),
                tips=list(entry.get("strategies", [])),
                research_base=entry.get("researchBase"),
            )
        )
    return entries


def normalise(
    kind: AssessmentKind,
    payload: Mapping[str, Any],
    *,
    academic_year: Optional[str] = None,
) -> AssessmentDefinition:
    if kind == "saint_quiz":
        return definition_from_saint_quiz(payload, academic_year=academic_year)
    if kind == "nominee_quiz":
        return definition_from_nominee_quiz(payload, academic_year=academic_year)
    if kind == "reading_dna":
        return definition_from_reading_dna(payload, academic_year=academic_year)
    raise ContentFormatError(f"Unknown assessment kind: {kind}")


def normalise_many(
    kind: AssessmentKind,
    payload: Any,
    *,
    academic_year: Optional[str] = None,
) -> List[AssessmentDefinition]:
    """Reading DNA payloads hold a single assessment; quiz payloads are lists."""
    if kind == "reading_dna":
        return [normalise(kind, payload, academic_year=academic_year)]
    if not isinstance(payload, list):
        raise ContentFormatError(f"Expected a list of {kind} payloads.")
    return [normalise(kind, entry, academic_year=academic_year) for entry in payload]


def _read_packaged(kind: AssessmentKind) -> Any:
    path = DATA_DIR / PACKAGED_FILES[kind]
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_packaged_definitions(
    kind: AssessmentKind,
    *,
    academic_year: Optional[str] = None,
) -> List[AssessmentDefinition]:
    return normalise_many(kind, _read_packaged(kind), academic_year=academic_year)


def load_packaged_modifier_content() -> List[ModifierContent]:
    return modifier_content_from_reading_dna(_read_packaged("reading_dna"))


__all__ = [
    "ContentFormatError",
    "ID_PREFIXES",
    "assessment_id",
    "definition_from_nominee_quiz",
    "definition_from_reading_dna",
    "definition_from_saint_quiz",
    "load_packaged_definitions",
    "load_packaged_modifier_content",
    "modifier_content_from_reading_dna",
    "normalise",
    "normalise_many",
]
