"""Point tally, tie-break and Reading DNA modifier selection.

Every assessment kind (saint quizzes, nominee quizzes and the Reading DNA
personality assessment) is scored through :func:`score`. The function is pure
apart from the injected random source, which is only consulted when the top
score is shared or when no outcome received any points.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from .assessment_models import AssessmentDefinition, AssessmentResult, ModifierPolicy

logger = logging.getLogger(__name__)

ResponseSet = Mapping[int, int]


class ResponseOutOfRangeError(ValueError):
    """Raised when a response references a question or option that does not exist."""


class ResponseCollector:
    """Accumulates one answer per question, in question order."""

    def __init__(self, question_count: int) -> None:
        if question_count < 0:
            raise ValueError("question_count cannot be negative.")
        self._question_count = question_count
        self._answers: Dict[int, int] = {}
        self._frozen = False

    @property
    def current_index(self) -> int:
        return len(self._answers)

    @property
    def is_complete(self) -> bool:
        return len(self._answers) >= self._question_count

    def answer(self, option_index: int) -> int:
        """Record ``option_index`` for the current question and return that question's index."""
        if self._frozen:
            raise RuntimeError("Responses have already been submitted for scoring.")
        if self.is_complete:
            raise ResponseOutOfRangeError("Every question already has an answer.")
        if option_index < 0:
            raise ResponseOutOfRangeError(f"Option index {option_index} is negative.")
        question_index = self.current_index
        self._answers[question_index] = option_index
        return question_index

    def freeze(self) -> ResponseSet:
        """Return a read-only view of the answers. No further answers are accepted."""
        self._frozen = True
        return MappingProxyType(dict(self._answers))


def _chosen_options(definition: AssessmentDefinition, responses: ResponseSet):
    for question_index in sorted(responses):
        option_index = responses[question_index]
        if not 0 <= question_index < len(definition.questions):
            raise ResponseOutOfRangeError(
                f"Question index {question_index} is outside 0..{len(definition.questions) - 1} "
                f"for assessment '{definition.id}'."
            )
        options = definition.questions[question_index].options
        if not 0 <= option_index < len(options):
            raise ResponseOutOfRangeError(
                f"Option index {option_index} is outside 0..{len(options) - 1} "
                f"for question {question_index} of assessment '{definition.id}'."
            )
        yield options[option_index]


def tally_scores(definition: AssessmentDefinition, responses: ResponseSet) -> Dict[str, int]:
    """Sum option weights per outcome. Weights naming unknown outcomes are ignored."""
    tally = {key: 0 for key in definition.outcomes}
    for option in _chosen_options(definition, responses):
        for outcome_key, points in option.weights.items():
            if outcome_key in tally:
                tally[outcome_key] += points
            else:
                logger.debug("Ignoring weight for unknown outcome %s in %s", outcome_key, definition.id)
    return tally


def resolve_outcome(
    scores: Mapping[str, int],
    outcome_keys: Sequence[str],
    rng: random.Random,
) -> tuple[str, bool]:
    """Pick the winning outcome. Returns ``(key, used_fallback)``.

    When nothing scored, every outcome is eligible; otherwise only the outcomes
    tied at the maximum are.
    """
    if not outcome_keys:
        raise ValueError("An assessment needs at least one outcome to be scored.")
    max_score = max((scores.get(key, 0) for key in outcome_keys), default=0)
    if max_score == 0:
        return rng.choice(list(outcome_keys)), True
    winners = [key for key in outcome_keys if scores.get(key, 0) == max_score]
    if len(winners) == 1:
        return winners[0], False
    return rng.choice(winners), False


def tally_modifiers(
    definition: AssessmentDefinition,
    responses: ResponseSet,
    codes: Sequence[str],
) -> Dict[str, int]:
    tally = {code: 0 for code in codes}
    for option in _chosen_options(definition, responses):
        for hint in option.modifier_hints:
            if hint in tally:
                tally[hint] += 1
    return tally


def select_modifiers(
    tally: Mapping[str, int],
    *,
    default_code: str,
    max_selected: int = 3,
) -> List[str]:
    """Choose the modifiers to report from a tally that is ordered by code priority.

    * nothing tallied: the default code alone.
    * a clear leader: the leader plus the runner-up.
    * a shared lead: every code tied at the top, capped at ``max_selected``.
    """
    ranked = sorted(
        ((code, count) for code, count in tally.items() if count > 0),
        key=lambda entry: entry[1],
        reverse=True,
    )
    if not ranked:
        return [default_code]
    if len(ranked) == 1:
        return [ranked[0][0]]
    top_score = ranked[0][1]
    if top_score > ranked[1][1]:
        return [code for code, _ in ranked[: min(2, max_selected)]]
    tied = [code for code, count in ranked if count == top_score]
    return tied[:max_selected]


def score(
    definition: AssessmentDefinition,
    responses: ResponseSet,
    *,
    rng: Optional[random.Random] = None,
    modifier_policy: Optional[ModifierPolicy] = None,
    now: Optional[datetime] = None,
) -> AssessmentResult:
    """Score ``responses`` against ``definition``.

    ``modifier_policy`` overrides the policy carried by the definition. Modifier
    selection only runs when one of the two is present.
    """
    rng = rng or random.Random()
    scores = tally_scores(definition, responses)
    outcome_key, used_fallback = resolve_outcome(scores, list(definition.outcomes), rng)
    if used_fallback:
        logger.info("No points scored for %s; picked %s at random", definition.id, outcome_key)
    logger.debug("Scored %s: %s -> %s", definition.id, scores, outcome_key)

    modifier_keys: List[str] = []
    modifier_scores: Dict[str, int] = {}
    policy = modifier_policy or definition.modifier_policy
    if policy is not None:
        modifier_scores = tally_modifiers(definition, responses, policy.codes)
        modifier_keys = select_modifiers(
            modifier_scores,
            default_code=policy.default_code,
            max_selected=policy.max_selected,
        )

    return AssessmentResult(
        assessment_id=definition.id,
        outcome_key=outcome_key,
        scores=scores,
        modifier_keys=modifier_keys,
        modifier_scores=modifier_scores,
        used_fallback=used_fallback,
        completed_at=now or datetime.now(timezone.utc),
    )


__all__ = [
    "ResponseCollector",
    "ResponseOutOfRangeError",
    "ResponseSet",
    "resolve_outcome",
    "score",
    "select_modifiers",
    "tally_modifiers",
    "tally_scores",
]
