from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from luxlibris.assessment_models import AssessmentDefinition, ModifierPolicy
from luxlibris.assessment_scoring import (
    ResponseCollector,
    ResponseOutOfRangeError,
    resolve_outcome,
    score,
    select_modifiers,
    tally_modifiers,
    tally_scores,
)


def _definition(**overrides) -> AssessmentDefinition:
    payload = {
        "id": "nominee-001",
        "kind": "nominee_quiz",
        "title": "Sample quiz",
        "questions": [
            {
                "prompt": "Q1",
                "options": [
                    {"text": "a", "weights": {"A": 2}, "modifier_hints": ["S"]},
                    {"text": "b", "weights": {"B": 1}},
                ],
            },
            {
                "prompt": "Q2",
                "options": [
                    {"text": "a", "weights": {"B": 2}, "modifier_hints": ["P"]},
                    {"text": "b", "weights": {}},
                ],
            },
            {
                "prompt": "Q3",
                "options": [
                    {"text": "a", "weights": {"A": 1}, "modifier_hints": ["S", "E"]},
                    {"text": "b", "weights": {"ghost": 9}},
                ],
            },
        ],
        "outcomes": {"A": {"name": "Outcome A"}, "B": {"name": "Outcome B"}},
    }
    payload.update(overrides)
    return AssessmentDefinition.model_validate(payload)


def test_clear_winner_is_deterministic() -> None:
    definition = _definition()
    result = score(definition, {0: 0, 1: 0, 2: 0}, rng=random.Random(1))
    assert result.scores == {"A": 3, "B": 2}
    assert result.outcome_key == "A"
    assert result.used_fallback is False
    assert result.modifier_keys == []
    assert result.times_completed == 0


def test_weights_for_unknown_outcomes_are_ignored() -> None:
    definition = _definition()
    scores = tally_scores(definition, {0: 1, 1: 1, 2: 1})
    assert scores == {"A": 0, "B": 1}


def test_tied_outcomes_are_picked_among_the_leaders_only() -> None:
    definition = _definition(
        outcomes={"A": {"name": "A"}, "B": {"name": "B"}, "C": {"name": "C"}},
    )
    rng = random.Random(42)
    seen = {score(definition, {0: 0, 1: 0}, rng=rng).outcome_key for _ in range(200)}
    assert seen == {"A", "B"}


def test_two_way_tie_is_split_evenly() -> None:
    definition = _definition(
        questions=[
            {"prompt": "Q1", "options": [{"text": "a", "weights": {"A": 2}}]},
            {"prompt": "Q2", "options": [{"text": "a", "weights": {"B": 1}}]},
            {"prompt": "Q3", "options": [{"text": "a", "weights": {"B": 1}}]},
        ],
    )
    responses = {0: 0, 1: 0, 2: 0}
    rng = random.Random(2024)
    trials = 2000
    wins = {"A": 0, "B": 0}
    for _ in range(trials):
        result = score(definition, responses, rng=rng)
        assert result.scores == {"A": 2, "B": 2}
        assert result.used_fallback is False
        wins[result.outcome_key] += 1

    for key, count in wins.items():
        assert 0.45 <= count / trials <= 0.55, (key, count)


def test_seeded_tie_break_is_reproducible() -> None:
    definition = _definition()
    first = score(definition, {0: 0, 1: 0}, rng=random.Random(7))
    second = score(definition, {0: 0, 1: 0}, rng=random.Random(7))
    assert first.outcome_key == second.outcome_key
    assert first.used_fallback is False


def test_zero_signal_responses_fall_back_to_random_outcome() -> None:
    definition = _definition()
    result = score(definition, {1: 1}, rng=random.Random(3))
    assert result.used_fallback is True
    assert result.outcome_key in {"A", "B"}
    assert result.scores == {"A": 0, "B": 0}


def test_empty_response_set_still_produces_a_result() -> None:
    result = score(_definition(), {}, rng=random.Random(0))
    assert result.used_fallback is True
    assert result.outcome_key in {"A", "B"}


def test_resolve_outcome_requires_outcomes() -> None:
    with pytest.raises(ValueError):
        resolve_outcome({}, [], random.Random(0))


@pytest.mark.parametrize("responses", [{3: 0}, {-1: 0}, {0: 2}, {0: -1}])
def test_out_of_range_responses_are_rejected(responses) -> None:
    with pytest.raises(ResponseOutOfRangeError):
        score(_definition(), responses)


def test_completed_at_uses_supplied_clock() -> None:
    now = datetime(2025, 12, 8, 9, 30, tzinfo=timezone.utc)
    result = score(_definition(), {0: 0}, now=now)
    assert result.completed_at == now


def test_modifier_tally_counts_each_hint_once_per_answer() -> None:
    definition = _definition()
    tally = tally_modifiers(definition, {0: 0, 1: 0, 2: 0}, ["A", "E", "S", "P"])
    assert tally == {"A": 0, "E": 1, "S": 2, "P": 1}


def test_modifier_policy_on_definition_drives_selection() -> None:
    definition = _definition(modifier_policy={"codes": ["A", "E", "S", "P"], "default_code": "A"})
    result = score(definition, {0: 0, 1: 0, 2: 0}, rng=random.Random(0))
    assert result.modifier_keys == ["S", "E"]
    assert result.modifier_scores["S"] == 2


def test_explicit_modifier_policy_overrides_definition() -> None:
    definition = _definition()
    policy = ModifierPolicy(codes=["E", "S"], default_code="E")
    result = score(definition, {0: 1, 1: 1}, modifier_policy=policy)
    assert result.modifier_keys == ["E"]


def test_select_modifiers_returns_default_when_nothing_tallied() -> None:
    assert select_modifiers({"A": 0, "E": 0, "I": 0}, default_code="I") == ["I"]


def test_select_modifiers_returns_single_tallied_code() -> None:
    assert select_modifiers({"A": 0, "E": 2, "I": 0}, default_code="I") == ["E"]


def test_select_modifiers_returns_leader_and_runner_up() -> None:
    tally = {"A": 1, "E": 4, "S": 2, "P": 1}
    assert select_modifiers(tally, default_code="I") == ["E", "S"]


def test_select_modifiers_keeps_three_way_tie() -> None:
    tally = {"A": 2, "E": 2, "S": 2, "P": 1}
    assert select_modifiers(tally, default_code="I") == ["A", "E", "S"]


def test_select_modifiers_caps_wide_ties_in_code_order() -> None:
    tally = {"A": 3, "E": 3, "S": 3, "P": 3, "I": 3}
    assert select_modifiers(tally, default_code="I") == ["A", "E", "S"]


def test_select_modifiers_two_way_tie_excludes_lower_codes() -> None:
    tally = {"A": 2, "E": 1, "S": 2}
    assert select_modifiers(tally, default_code="I") == ["A", "S"]


def test_select_modifiers_respects_lower_cap() -> None:
    tally = {"A": 2, "E": 2, "S": 2}
    assert select_modifiers(tally, default_code="I", max_selected=2) == ["A", "E"]


def test_collector_records_answers_in_question_order() -> None:
    collector = ResponseCollector(3)
    assert collector.answer(1) == 0
    assert collector.answer(0) == 1
    assert not collector.is_complete
    assert collector.answer(2) == 2
    assert collector.is_complete
    responses = collector.freeze()
    assert dict(responses) == {0: 1, 1: 0, 2: 2}


def test_collector_rejects_extra_answers() -> None:
    collector = ResponseCollector(1)
    collector.answer(0)
    with pytest.raises(ResponseOutOfRangeError):
        collector.answer(0)


def test_collector_rejects_negative_options() -> None:
    with pytest.raises(ResponseOutOfRangeError):
        ResponseCollector(2).answer(-1)


def test_frozen_collector_is_read_only() -> None:
    collector = ResponseCollector(2)
    collector.answer(0)
    responses = collector.freeze()
    with pytest.raises(RuntimeError):
        collector.answer(1)
    with pytest.raises(TypeError):
        responses[1] = 0  # type: ignore[index]
