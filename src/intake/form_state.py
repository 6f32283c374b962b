"""Form State Store.

Owns the current value of every field for one intake session. All writes go
through :class:`FormStateStore`, which type-checks the value against the
field registry and pushes every successful change to its subscribers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from intake.errors import TypeMismatchError
from intake.field_registry import FieldDef, FieldRegistry, FieldType, get_field_registry

logger = logging.getLogger(__name__)


@dataclass
class FormState:
    """Field id to value mapping for a single session."""
    values: Dict[str, Any] = field(default_factory=dict)
    version: int = 0

    def __getitem__(self, field_id: str) -> Any:
        return self.values[field_id]

    def get(self, field_id: str, default: Any = None) -> Any:
        return self.values.get(field_id, default)


Listener = Callable[[FormState, str], None]


def validate_value(definition: FieldDef, value: Any) -> Any:
    """
    Check a value against a field definition.

    Returns the value in its stored form (sets become frozensets).

    Raises:
        TypeMismatchError: If the value does not fit the field's value type
    """
    vt = definition.value_type

    if vt is FieldType.TEXT:
        if not isinstance(value, str):
            raise TypeMismatchError(definition.id, "text", value)
        return value

    if vt is FieldType.DATE:
        # datetime is a date subclass but carries a time component
        if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
            return value
        raise TypeMismatchError(definition.id, "date", value)

    if vt is FieldType.TIME:
        if value is None or isinstance(value, time):
            return value
        raise TypeMismatchError(definition.id, "time", value)

    if vt is FieldType.TRISTATE:
        if not isinstance(value, definition.choices):
            raise TypeMismatchError(definition.id, definition.choices.__name__, value)
        return value

    if vt is FieldType.ENUM:
        if not isinstance(value, str):
            raise TypeMismatchError(definition.id, "enum", value)
        if value and value not in definition.options:
            raise TypeMismatchError(definition.id, "enum", value, reason="not an allowed option")
        return value

    if vt is FieldType.STRING_SET:
        if isinstance(value, (str, bytes)) or not isinstance(value, (set, frozenset, list, tuple)):
            raise TypeMismatchError(definition.id, "set of strings", value)
        members = frozenset(value)
        if not all(isinstance(m, str) for m in members):
            raise TypeMismatchError(definition.id, "set of strings", value, reason="non-string member")
        return members

    raise TypeMismatchError(definition.id, str(vt), value)


class FormStateStore:
    """
    Read/write access to a session's form values.

    Every successful mutation synchronously notifies subscribers with the
    updated state and the id of the field that changed. Failed writes leave
    the state untouched and notify nobody.
    """

    def __init__(self, registry: Optional[FieldRegistry] = None):
        self._registry = registry or get_field_registry()
        self._state = FormState(values=self._registry.defaults())
        self._listeners: List[Listener] = []

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    @property
    def state(self) -> FormState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked after every change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> bool:
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    def get(self, field_id: str) -> Any:
        """Get a field's stored value, visible or not."""
        self._registry.lookup(field_id)
        return self._state.values[field_id]

    def set(self, field_id: str, value: Any) -> None:
        """
        Replace a field's value.

        Raises:
            UnknownFieldError: If the field is not registered
            TypeMismatchError: If the value does not match the field's type
        """
        definition = self._registry.lookup(field_id)
        stored = validate_value(definition, value)
        self._state.values[field_id] = stored
        self._changed(field_id)

    def toggle_member(self, field_id: str, member: str) -> bool:
        """
        Add member to a set field if absent, remove it if present.

        Returns:
            True if the member is in the set after the toggle
        """
        definition = self._registry.lookup(field_id)
        if definition.value_type is not FieldType.STRING_SET:
            raise TypeMismatchError(field_id, "set of strings", member, reason="toggle on non-set field")
        if not isinstance(member, str):
            raise TypeMismatchError(field_id, "set of strings", member, reason="non-string member")

        current: frozenset = self._state.values[field_id]
        if member in current:
            updated = current - {member}
        else:
            updated = current | {member}
        self._state.values[field_id] = updated
        self._changed(field_id)
        return member in updated

    def update(self, values: Mapping[str, Any]) -> None:
        """
        Set several fields, all or nothing.

        Every value is validated before any is written; subscribers are
        notified once per field, in the order given.
        """
        staged = {
            field_id: validate_value(self._registry.lookup(field_id), value)
            for field_id, value in values.items()
        }
        for field_id, stored in staged.items():
            self._state.values[field_id] = stored
            self._changed(field_id)

    def reset(self) -> None:
        """Restore every field to its default."""
        self._state.values = self._registry.defaults()
        self._changed("*")

    def snapshot(self) -> Mapping[str, Any]:
        """Read-only copy of the current values."""
        return MappingProxyType(dict(self._state.values))

    def filled_fields(self, field_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Ids of fields holding something other than their default."""
        ids = field_ids if field_ids is not None else self._registry.field_ids
        return [
            fid for fid in ids
            if self._state.values[fid] != self._registry.lookup(fid).default()
        ]

    def _changed(self, field_id: str) -> None:
        self._state.version += 1
        logger.debug(f"Field changed: {field_id} (version {self._state.version})")
        for listener in list(self._listeners):
            listener(self._state, field_id)
