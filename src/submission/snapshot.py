"""
Claim Snapshot

Serializable copy of a finished form, restricted to the field registry's
shape, plus the submitter-contact gate checked before dispatch.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from intake.errors import IntakeError
from intake.field_registry import Choice, FieldDef, FieldRegistry, FieldType, get_field_registry
from intake.form_state import FormState


SUBMITTER_CONTACT_FIELDS = ("submitterName", "submitterPhone", "submitterEmail")


class IncompleteSubmissionError(IntakeError):
    """Raised when a claim is dispatched without the submitter's contact details."""

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Submitter contact details missing: {', '.join(self.missing_fields)}"
        )


def require_submitter_contact(state: Union[FormState, Mapping[str, Any]]) -> None:
    """
    Check the submitter's name, phone and email are filled in.

    Raises:
        IncompleteSubmissionError: Listing every empty contact field
    """
    missing = [
        fid for fid in SUBMITTER_CONTACT_FIELDS
        if not str(state.get(fid) or "").strip()
    ]
    if missing:
        raise IncompleteSubmissionError(missing)


def serialize_value(definition: FieldDef, value: Any) -> Any:
    """JSON-ready form of a stored value."""
    if definition.value_type is FieldType.TRISTATE:
        return value.value if isinstance(value, Choice) else None
    if definition.value_type is FieldType.STRING_SET:
        return sorted(value or ())
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def display_value(definition: FieldDef, value: Any) -> str:
    """Human-readable form of a stored value; empty string when unanswered."""
    if definition.value_type is FieldType.TRISTATE:
        return value.label if isinstance(value, Choice) else ""
    if definition.value_type is FieldType.STRING_SET:
        return ", ".join(sorted(value or ()))
    if isinstance(value, time):
        return value.strftime("%I:%M %p").lstrip("0")
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    return value or ""


class ClaimSnapshot(BaseModel):
    """
    Frozen, serializable copy of a form at submission time.

    ``values`` holds every registered field, visible or not; ``hidden_fields``
    lists the ones the operator could not see when submitting so a reader can
    discount stale answers.
    """
    session_id: str
    values: Dict[str, Any] = Field(default_factory=dict)
    hidden_fields: List[str] = Field(default_factory=list)
    completion_score: int = Field(default=0, ge=0, le=100)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def value(self, field_id: str, default: Any = "") -> Any:
        v = self.values.get(field_id)
        return default if v in (None, "", []) else v

    @property
    def employee_name(self) -> str:
        return f"{self.value('firstName')} {self.value('lastName')}".strip()

    @property
    def submitter_email(self) -> Optional[str]:
        return self.value("submitterEmail", None)


def build_snapshot(
    state: FormState,
    session_id: str,
    hidden_fields: Optional[List[str]] = None,
    completion_score: int = 0,
    registry: Optional[FieldRegistry] = None,
) -> ClaimSnapshot:
    """Serialize a form state into a ClaimSnapshot."""
    registry = registry or get_field_registry()
    values = {
        definition.id: serialize_value(definition, state.get(definition.id))
        for definition in registry
    }
    return ClaimSnapshot(
        session_id=session_id,
        values=values,
        hidden_fields=sorted(hidden_fields or []),
        completion_score=completion_score,
    )
