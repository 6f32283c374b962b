"""Step Navigator.

Finite state machine over the wizard's ordered steps. Navigation is never
gated on field completeness: the completion score is advisory only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from intake.errors import StepOutOfRangeError
from intake.field_registry import FieldRegistry, get_field_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """A wizard step and the fields it presents."""
    index: int
    key: str
    title: str
    field_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "key": self.key,
            "title": self.title,
            "field_ids": list(self.field_ids),
        }


STEP_DEFINITIONS: Tuple[Tuple[str, str], ...] = (
    ("employee", "Employee"),
    ("claim", "Claim"),
    ("incident", "Incident"),
    ("medical", "Medical"),
    ("evidence", "Evidence"),
    ("work_status", "Work Status"),
    ("root_cause", "Root Cause"),
    ("investigation", "Investigation"),
    ("submit", "Submit"),
)


def build_steps(registry: Optional[FieldRegistry] = None) -> Tuple[Step, ...]:
    """Attach each step definition to the registry fields that name it."""
    registry = registry or get_field_registry()
    if registry.step_count > len(STEP_DEFINITIONS):
        raise ValueError(
            f"Registry uses {registry.step_count} steps, only {len(STEP_DEFINITIONS)} defined"
        )
    return tuple(
        Step(
            index=i,
            key=key,
            title=title,
            field_ids=tuple(f.id for f in registry.fields_for_step(i)),
        )
        for i, (key, title) in enumerate(STEP_DEFINITIONS)
    )


class StepNavigator:
    """
    Tracks which step is active.

    States are step indices 0..N-1, starting at 0. ``next`` and ``back``
    saturate at the ends; ``jump_to`` moves anywhere in range. There is no
    terminal state: submitting happens from the last step as a side effect
    outside the navigator.
    """

    def __init__(self, steps: Optional[Tuple[Step, ...]] = None):
        self._steps = steps if steps is not None else build_steps()
        if not self._steps:
            raise ValueError("StepNavigator needs at least one step")
        self._index = 0
        self._visited: Set[int] = {0}

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    @property
    def index(self) -> int:
        return self._index

    @property
    def last_index(self) -> int:
        return len(self._steps) - 1

    @property
    def current_step(self) -> Step:
        return self._steps[self._index]

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == self.last_index

    def next(self) -> Step:
        return self._move(min(self._index + 1, self.last_index))

    def back(self) -> Step:
        return self._move(max(self._index - 1, 0))

    def jump_to(self, index: int) -> Step:
        if not 0 <= index <= self.last_index:
            raise StepOutOfRangeError(index, self.last_index)
        return self._move(index)

    def reset(self) -> Step:
        """Back to the first step with no visit history."""
        self._index = 0
        self._visited = {0}
        return self.current_step

    def step_of(self, field_id: str) -> Optional[Step]:
        for step in self._steps:
            if field_id in step.field_ids:
                return step
        return None

    def progress(self) -> List[Dict[str, Any]]:
        """Per-step status for a progress bar."""
        return [
            {
                "index": step.index,
                "key": step.key,
                "title": step.title,
                "is_current": step.index == self._index,
                "is_visited": step.index in self._visited,
            }
            for step in self._steps
        ]

    def _move(self, index: int) -> Step:
        if index != self._index:
            logger.debug(f"Step {self._index} -> {index}")
        self._index = index
        self._visited.add(index)
        return self.current_step
