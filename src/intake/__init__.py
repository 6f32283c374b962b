"""FROI Intake Wizard Engine.

Core of the First Report of Injury wizard:
- Field registry describing every question on the report
- Per-session form state with change notifications
- Declarative visibility rules for conditional sub-sections
- Live completion score
- Step navigation across the nine wizard pages

Sessions live in ``intake.session``, which also pulls in the submission
package; import it from there.
"""

from intake.errors import (
    IntakeError,
    RuleGraphError,
    SessionClosedError,
    StepOutOfRangeError,
    TypeMismatchError,
    UnknownFieldError,
)
from intake.field_registry import (
    Choice,
    FieldClass,
    FieldDef,
    FieldRegistry,
    FieldType,
    TriState,
    YesNoChecking,
    YesNoMaybe,
    get_field_registry,
)
from intake.form_state import FormState, FormStateStore
from intake.visibility import VisibilityResolver, VisibilityRule, get_visibility_resolver, visible_fields
from intake.completion import CompletionScorer, PresenceMode, ScoreBreakdown
from intake.step_navigator import Step, StepNavigator

__all__ = [
    "IntakeError",
    "RuleGraphError",
    "SessionClosedError",
    "StepOutOfRangeError",
    "TypeMismatchError",
    "UnknownFieldError",
    "Choice",
    "FieldClass",
    "FieldDef",
    "FieldRegistry",
    "FieldType",
    "TriState",
    "YesNoChecking",
    "YesNoMaybe",
    "get_field_registry",
    "FormState",
    "FormStateStore",
    "VisibilityResolver",
    "VisibilityRule",
    "get_visibility_resolver",
    "visible_fields",
    "CompletionScorer",
    "PresenceMode",
    "ScoreBreakdown",
    "Step",
    "StepNavigator",
    "start_session",
]


def start_session(**kwargs):
    """
    Open a new intake session.

    Returns:
        IntakeSession: A fresh session on the FROI schema.
    """
    from intake.session import IntakeSession
    return IntakeSession(**kwargs)
