"""Turn scored results into display records for the student-facing pages."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .assessment_models import (
    AssessmentDefinition,
    AssessmentResult,
    DisplayModifier,
    DisplayRecord,
    ModifierContent,
)

logger = logging.getLogger(__name__)

UNKNOWN_OUTCOME_NAME = "Unknown"


def format_dna_code(outcome_key: Optional[str], modifier_keys: Iterable[str] = ()) -> str:
    """``curious_investigator`` with ``[S, P]`` becomes ``CI-SP``."""
    if not outcome_key:
        return UNKNOWN_OUTCOME_NAME
    initials = "".join(word[0].upper() for word in outcome_key.split("_") if word)
    modifiers = "".join(modifier_keys)
    return f"{initials}-{modifiers}" if modifiers else initials


def _display_modifiers(
    codes: Iterable[str],
    modifier_content: Mapping[str, ModifierContent],
) -> list[DisplayModifier]:
    entries: list[DisplayModifier] = []
    for code in codes:
        content = modifier_content.get(code)
        if content is None:
            logger.warning("No display content for modifier %s; omitting it", code)
            continue
        entries.append(
            DisplayModifier(
                code=code,
                name=content.name,
                emoji=content.emoji,
                description=content.description,
                tips=list(content.tips),
            )
        )
    return entries


def present(
    definition: AssessmentDefinition,
    result: AssessmentResult,
    modifier_content: Optional[Mapping[str, ModifierContent]] = None,
) -> DisplayRecord:
    outcome = definition.outcomes.get(result.outcome_key)
    if outcome is None:
        logger.warning(
            "Outcome %s is not part of assessment %s; presenting it as unknown",
            result.outcome_key,
            definition.id,
        )
        name = UNKNOWN_OUTCOME_NAME
        description = ""
        flavor_text = image_ref = None
    else:
        name = outcome.name
        description = outcome.description
        flavor_text = outcome.flavor_text
        image_ref = outcome.image_ref

    title = f"{definition.result_title_prefix} {name}" if definition.result_title_prefix else name

    modifiers: list[DisplayModifier] = []
    dna_code: Optional[str] = None
    if definition.uses_modifiers:
        modifiers = _display_modifiers(result.modifier_keys, modifier_content or {})
        dna_code = format_dna_code(result.outcome_key, result.modifier_keys)

    return DisplayRecord(
        assessment_id=definition.id,
        outcome_key=result.outcome_key,
        title=title,
        name=name,
        description=description,
        flavor_text=flavor_text,
        image_ref=image_ref,
        modifiers=modifiers,
        dna_code=dna_code,
    )


__all__ = ["UNKNOWN_OUTCOME_NAME", "format_dna_code", "present"]
