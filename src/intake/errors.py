"""
Intake Errors

Exceptions raised by the intake wizard engine.
"""

from typing import Any, Optional


class IntakeError(Exception):
    """Base class for intake wizard errors."""
    pass


class UnknownFieldError(IntakeError, KeyError):
    """Raised when a field id is not in the field registry."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Unknown field: {field_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class TypeMismatchError(IntakeError, TypeError):
    """Raised when a value does not match the field's declared value type."""

    def __init__(self, field_id: str, expected: str, value: Any = None, reason: Optional[str] = None):
        self.field_id = field_id
        self.expected = expected
        self.value = value
        message = f"Field {field_id!r} expects {expected}, got {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class RuleGraphError(IntakeError):
    """Raised when the visibility rule table is invalid (unknown ids, cycles)."""
    pass


class StepOutOfRangeError(IntakeError, IndexError):
    """Raised when jumping to a step index that does not exist."""

    def __init__(self, index: int, last_index: int):
        self.index = index
        self.last_index = last_index
        super().__init__(f"Step {index} is outside 0..{last_index}")


class SessionClosedError(IntakeError):
    """Raised when a finished intake session receives another edit."""
    pass
