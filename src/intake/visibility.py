"""Visibility Resolver.

Declarative rules that reveal or hide sub-sections of the report based on
earlier answers. Rules are data: adding a condition means adding a row to
``FROI_VISIBILITY_RULES``, not nesting another branch.

Hiding never clears a stored value; the resolver only reads state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from intake.errors import RuleGraphError
from intake.field_registry import (
    REFUSAL_FORM_REMINDER,
    FieldRegistry,
    FieldType,
    TriState,
    YesNoChecking,
    YesNoMaybe,
    get_field_registry,
)
from intake.form_state import FormState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityRule:
    """Reveal ``reveals`` while ``trigger`` holds one of the ``when`` values."""
    trigger: str
    when: FrozenSet[Any]
    reveals: Tuple[str, ...]

    def holds(self, state: FormState) -> bool:
        return state.get(self.trigger) in self.when


def rule(trigger: str, when: Iterable[Any], *reveals: str) -> VisibilityRule:
    return VisibilityRule(trigger=trigger, when=frozenset(when), reveals=tuple(reveals))


FROI_VISIBILITY_RULES: Tuple[VisibilityRule, ...] = (
    rule("soughtMedicalTreatment", {TriState.YES},
         "facilityName", "facilityAddress", "facilityCity", "facilityState",
         "facilityZip", "treatmentDate"),
    rule("soughtMedicalTreatment", {TriState.NO}, "refusedTreatment"),
    rule("refusedTreatment", {TriState.YES}, REFUSAL_FORM_REMINDER),
    rule("hasVideo", {YesNoChecking.YES}, "videoLocation"),
    rule("losingTime", {TriState.YES}, "dateBeganLosingTime"),
    rule("proceduresInPlace", {TriState.YES}, "proceduresFollowed"),
    rule("proceduresFollowed", {TriState.NO}, "trainingProvided", "disciplinePolicy"),
    rule("trainingProvided", {TriState.YES}, "trainingFrequency", "lastTrainingDate"),
    rule("disciplinePolicy", {TriState.YES}, "disciplineApplied"),
    rule("validityConcerns", {TriState.YES}, "concernDetails"),
    rule("thirdPartyInvolved", {YesNoMaybe.YES, YesNoMaybe.MAYBE}, "thirdPartyDetails"),
)


class VisibilityResolver:
    """
    Computes the set of revealed fields and notices for a form state.

    The rule table is checked when the resolver is built: every trigger must
    be a registered field, every revealed id a field or notice, no id may be
    revealed by two different triggers, and the trigger graph must be
    acyclic. Rules are then evaluated in dependency order so that a single
    pass reaches the fixed point: a field whose revealing trigger is itself
    hidden stays hidden, whatever the trigger's stored value.
    """

    def __init__(
        self,
        rules: Tuple[VisibilityRule, ...] = FROI_VISIBILITY_RULES,
        registry: Optional[FieldRegistry] = None,
    ):
        self._registry = registry or get_field_registry()
        self._rules = tuple(rules)
        self._revealed_by: Dict[str, str] = {}
        self._validate()
        self._ordered = self._topological_order()
        self._conditional: FrozenSet[str] = frozenset(self._revealed_by)
        self._unconditional: FrozenSet[str] = frozenset(
            fid for fid in self._registry.field_ids if fid not in self._conditional
        )

    @property
    def rules(self) -> Tuple[VisibilityRule, ...]:
        return self._rules

    @property
    def conditional_ids(self) -> FrozenSet[str]:
        """Fields and notices that are hidden unless a rule reveals them."""
        return self._conditional

    def depth(self) -> int:
        """Number of ids on the longest trigger chain, root trigger included."""
        depths: Dict[str, int] = {}
        for r in self._ordered:
            base = depths.get(r.trigger, 1) + 1
            for target in r.reveals:
                depths[target] = max(depths.get(target, 0), base)
        return max(depths.values(), default=0)

    def visible_fields(self, state: FormState) -> FrozenSet[str]:
        """All field and notice ids currently revealed."""
        visible: Set[str] = set(self._unconditional)
        for r in self._ordered:
            if r.trigger in visible and r.holds(state):
                visible.update(r.reveals)
        return frozenset(visible)

    def is_visible(self, state: FormState, item_id: str) -> bool:
        return item_id in self.visible_fields(state)

    def hidden_fields(self, state: FormState) -> FrozenSet[str]:
        """Registered fields currently hidden (notices excluded)."""
        visible = self.visible_fields(state)
        return frozenset(fid for fid in self._registry.field_ids if fid not in visible)

    def _validate(self) -> None:
        errors: List[str] = []
        for r in self._rules:
            if r.trigger not in self._registry:
                errors.append(f"Unknown trigger field: {r.trigger}")
            elif self._registry.lookup(r.trigger).value_type is not FieldType.TRISTATE:
                errors.append(f"Trigger {r.trigger} is not a tristate field")
            if not r.reveals:
                errors.append(f"Rule on {r.trigger} reveals nothing")
            for target in r.reveals:
                if target not in self._registry and not self._registry.is_notice(target):
                    errors.append(f"Rule on {r.trigger} reveals unknown id: {target}")
                previous = self._revealed_by.get(target)
                if previous is not None and previous != r.trigger:
                    errors.append(f"{target} revealed by both {previous} and {r.trigger}")
                self._revealed_by[target] = r.trigger
        if errors:
            raise RuleGraphError("; ".join(errors))

    def _topological_order(self) -> Tuple[VisibilityRule, ...]:
        # A rule is ready once no pending rule reveals its trigger.
        pending = list(self._rules)
        ordered: List[VisibilityRule] = []
        while pending:
            ready = [r for r in pending if not any(r.trigger in p.reveals for p in pending)]
            if not ready:
                cycle = sorted({r.trigger for r in pending})
                raise RuleGraphError(f"Visibility rules form a cycle through: {cycle}")
            for r in ready:
                pending.remove(r)
                ordered.append(r)
        logger.debug(f"Visibility rules ordered: {[r.trigger for r in ordered]}")
        return tuple(ordered)


_resolver_instance: Optional[VisibilityResolver] = None


def get_visibility_resolver() -> VisibilityResolver:
    """Get the resolver for the FROI rule table."""
    global _resolver_instance
    if _resolver_instance is None:
        _resolver_instance = VisibilityResolver()
    return _resolver_instance


def visible_fields(state: FormState) -> FrozenSet[str]:
    """Revealed field and notice ids for a FROI form state."""
    return get_visibility_resolver().visible_fields(state)
