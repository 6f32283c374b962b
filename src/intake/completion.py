"""Completion Scorer.

Live 0-100 score summarizing how much of the report has been filled in.
Required fields are worth 7 points each, bonus fields 3.7 each; with the
FROI schema (9 required, 10 bonus) a fully completed report scores exactly
100. The score is advisory and never blocks navigation or submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from intake.field_registry import Choice, FieldClass, FieldDef, FieldRegistry, FieldType, get_field_registry
from intake.form_state import FormState


REQUIRED_POINTS = Decimal("7")
BONUS_POINTS = Decimal("3.7")
MIN_SCORE = 0
MAX_SCORE = 100


class PresenceMode(str, Enum):
    """How a tristate answer counts toward the score."""
    ANSWERED = "answered"   # any answer other than UNSET counts
    TRUTHY = "truthy"       # legacy: NO does not count either


@dataclass
class ScoreBreakdown:
    """Per-field view of a score, for "what's left" hints."""
    score: int
    present_required: List[str] = field(default_factory=list)
    missing_required: List[str] = field(default_factory=list)
    present_bonus: List[str] = field(default_factory=list)
    missing_bonus: List[str] = field(default_factory=list)

    @property
    def is_required_complete(self) -> bool:
        return not self.missing_required

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "present_required": self.present_required,
            "missing_required": self.missing_required,
            "present_bonus": self.present_bonus,
            "missing_bonus": self.missing_bonus,
        }


def is_present(definition: FieldDef, value: Any, mode: PresenceMode = PresenceMode.ANSWERED) -> bool:
    """Whether a field's value counts as filled in."""
    if definition.value_type is FieldType.TRISTATE:
        if not isinstance(value, Choice):
            return False
        return value.is_affirmative if mode is PresenceMode.TRUTHY else value.is_answered
    if definition.value_type in (FieldType.DATE, FieldType.TIME):
        return value is not None
    return bool(value)


class CompletionScorer:
    """
    Scores a form state against the registry's required and bonus fields.

    Stateless: the score is recomputed in full on every call and never
    stored.
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        presence_mode: PresenceMode = PresenceMode.ANSWERED,
    ):
        self._registry = registry or get_field_registry()
        self.presence_mode = PresenceMode(presence_mode)
        self._required = self._registry.fields_by_classification(FieldClass.REQUIRED)
        self._bonus = self._registry.fields_by_classification(FieldClass.BONUS)

    def score(self, state: FormState) -> int:
        """Integer score in [0, 100]."""
        return self.breakdown(state).score

    def breakdown(self, state: FormState) -> ScoreBreakdown:
        result = ScoreBreakdown(score=0)
        total = Decimal("0")

        for definition in self._required:
            if is_present(definition, state.get(definition.id), self.presence_mode):
                total += REQUIRED_POINTS
                result.present_required.append(definition.id)
            else:
                result.missing_required.append(definition.id)

        for definition in self._bonus:
            if is_present(definition, state.get(definition.id), self.presence_mode):
                total += BONUS_POINTS
                result.present_bonus.append(definition.id)
            else:
                result.missing_bonus.append(definition.id)

        rounded = int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        result.score = max(MIN_SCORE, min(MAX_SCORE, rounded))
        return result
