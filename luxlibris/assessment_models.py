"""Assessment definitions, scoring results and display records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, NonNegativeInt, model_validator


AssessmentKind = Literal["saint_quiz", "nominee_quiz", "reading_dna"]
AssessmentStatus = Literal["active", "archived", "draft"]
ModifierAudience = Literal["student", "educator"]

DEFAULT_MODIFIER_CODES: List[str] = ["A", "E", "S", "P", "I", "F", "G", "R"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OutcomeDetails(BaseModel):
    """Display content for a single outcome (a saint, a book, a reader type)."""

    name: str
    description: str = ""
    flavor_text: Optional[str] = None
    image_ref: Optional[str] = None
    extras: Dict[str, Any] = Field(default_factory=dict)


class AnswerOption(BaseModel):
    text: str
    weights: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    modifier_hints: List[str] = Field(default_factory=list)
    option_id: Optional[str] = None


class Question(BaseModel):
    prompt: str
    options: List[AnswerOption] = Field(min_length=1)
    question_id: Optional[str] = None


class ModifierPolicy(BaseModel):
    """Closed, ordered set of modifier codes and the selection limits applied to them.

    Code order matters: it breaks ties when modifiers share a tally.
    """

    codes: List[str] = Field(default_factory=lambda: list(DEFAULT_MODIFIER_CODES), min_length=1)
    default_code: str = "I"
    max_selected: int = Field(default=3, ge=1, le=3)

    @model_validator(mode="after")
    def _check_codes(self) -> "ModifierPolicy":
        if len(set(self.codes)) != len(self.codes):
            raise ValueError("Modifier codes must be unique.")
        return self


class AssessmentDefinition(BaseModel):
    id: str = Field(min_length=1)
    kind: AssessmentKind = "nominee_quiz"
    title: str = ""
    description: str = ""
    academic_year: Optional[str] = None
    status: AssessmentStatus = "active"
    quiz_type: str = "personality"
    target_grades: List[int] = Field(default_factory=list)
    result_title_prefix: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    outcomes: Dict[str, OutcomeDetails] = Field(min_length=1)
    modifier_policy: Optional[ModifierPolicy] = None

    @property
    def uses_modifiers(self) -> bool:
        return self.modifier_policy is not None


class AssessmentResult(BaseModel):
    """Outcome of scoring one response set.

    ``times_completed`` stays at 0 until the result has been recorded against a
    student profile.
    """

    assessment_id: str
    outcome_key: str
    scores: Dict[str, int] = Field(default_factory=dict)
    modifier_keys: List[str] = Field(default_factory=list, max_length=3)
    modifier_scores: Dict[str, int] = Field(default_factory=dict)
    used_fallback: bool = False
    completed_at: datetime = Field(default_factory=_now)
    times_completed: int = Field(default=0, ge=0)


class StudentAssessmentRecord(BaseModel):
    """Persisted completion for a (student, assessment) pair."""

    student_id: str
    assessment_id: str
    outcome_key: str
    scores: Dict[str, int] = Field(default_factory=dict)
    modifier_keys: List[str] = Field(default_factory=list)
    completed_at: datetime = Field(default_factory=_now)
    times_completed: int = Field(default=1, ge=1)


class ModifierContent(BaseModel):
    """Display text for one modifier code. Educator entries carry indicators as
    ``insights`` and classroom strategies as ``tips``."""

    code: str
    audience: ModifierAudience = "student"
    name: str
    emoji: Optional[str] = None
    description: str = ""
    insights: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    research_base: Optional[str] = None
    status: AssessmentStatus = "active"


class DisplayModifier(BaseModel):
    code: str
    name: str
    emoji: Optional[str] = None
    description: str = ""
    tips: List[str] = Field(default_factory=list)


class DisplayRecord(BaseModel):
    assessment_id: str
    outcome_key: str
    title: str
    name: str
    description: str = ""
    flavor_text: Optional[str] = None
    image_ref: Optional[str] = None
    modifiers: List[DisplayModifier] = Field(default_factory=list)
    dna_code: Optional[str] = None


__all__ = [
    "AnswerOption",
    "AssessmentDefinition",
    "AssessmentKind",
    "AssessmentResult",
    "AssessmentStatus",
    "DEFAULT_MODIFIER_CODES",
    "DisplayModifier",
    "DisplayRecord",
    "ModifierAudience",
    "ModifierContent",
    "ModifierPolicy",
    "OutcomeDetails",
    "Question",
    "StudentAssessmentRecord",
]
