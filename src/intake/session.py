"""Intake Session.

One operator filling in one report. The session owns a form store and a
step navigator, shares the stateless registry, resolver and scorer, and
pushes a fresh :class:`WizardView` to its subscribers after every edit or
step change.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple
from uuid import uuid4

from config.settings import Settings, get_settings
from intake.completion import CompletionScorer, PresenceMode, ScoreBreakdown
from intake.errors import SessionClosedError, StepOutOfRangeError
from intake.field_registry import FieldRegistry, get_field_registry
from intake.form_state import FormState, FormStateStore
from intake.step_navigator import Step, StepNavigator, build_steps
from intake.visibility import VisibilityResolver, get_visibility_resolver
from services.logging_config import get_logger, session_context
from submission.attachments import (
    AttachmentCategory,
    AttachmentRef,
    AttachmentStore,
    InMemoryAttachmentStore,
    make_attachment_ref,
)
from submission.snapshot import ClaimSnapshot, build_snapshot, require_submitter_contact


@dataclass(frozen=True)
class WizardView:
    """Everything the rendering surface needs after a change."""
    visible_fields: FrozenSet[str]
    score: int
    step_index: int
    step_key: str
    version: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visible_fields": sorted(self.visible_fields),
            "score": self.score,
            "step_index": self.step_index,
            "step_key": self.step_key,
            "version": self.version,
        }


ViewListener = Callable[[WizardView], None]



def _in_session_context(method):
    """Run a session method with its id bound for every logger it reaches."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with session_context(self.session_id):
            return method(self, *args, **kwargs)
    return wrapper


class IntakeSession:
    """
    Per-session context for the FROI wizard.

    Edits go through the session so that closed sessions can refuse them;
    reads are always allowed. Sessions share nothing mutable, so any number
    can run side by side.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        registry: Optional[FieldRegistry] = None,
        resolver: Optional[VisibilityResolver] = None,
        scorer: Optional[CompletionScorer] = None,
        attachment_store: Optional[AttachmentStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_id = session_id or uuid4().hex
        self.settings = settings or get_settings()
        self.registry = registry or get_field_registry()

        if resolver is None:
            resolver = get_visibility_resolver() if registry is None else VisibilityResolver(registry=registry)
        self.resolver = resolver
        self.scorer = scorer or CompletionScorer(
            self.registry, PresenceMode(self.settings.scoring_presence_mode)
        )

        self.store = FormStateStore(self.registry)
        self.navigator = StepNavigator(build_steps(self.registry))
        self.attachment_store = attachment_store or InMemoryAttachmentStore()

        self._attachments: List[AttachmentRef] = []
        self._listeners: List[ViewListener] = []
        self._closed = False
        self.last_result = None
        self.logger = get_logger(__name__, session_id=self.session_id)

        self.store.subscribe(self._on_state_changed)
        self._view = self._compute_view()
        self.logger.info(f"Intake session {self.session_id} started")

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, listener: ViewListener) -> None:
        """Register a callback receiving each recomputed view."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: ViewListener) -> bool:
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    # =========================================================================
    # FORM VALUES
    # =========================================================================

    @property
    def state(self) -> FormState:
        return self.store.state

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get(self, field_id: str) -> Any:
        return self.store.get(field_id)

    @_in_session_context
    def set(self, field_id: str, value: Any) -> None:
        self._ensure_open()
        self.store.set(field_id, value)

    @_in_session_context
    def toggle_member(self, field_id: str, member: str) -> bool:
        self._ensure_open()
        return self.store.toggle_member(field_id, member)

    @_in_session_context
    def update(self, values: Mapping[str, Any]) -> None:
        self._ensure_open()
        self.store.update(values)

    @_in_session_context
    def reset(self) -> None:
        """Start the report over: defaults, first step, no attachments."""
        self._ensure_open()
        for ref in self._attachments:
            self.attachment_store.delete(ref)
        self._attachments.clear()
        self.navigator.reset()
        self.store.reset()
        self.logger.info("Intake session reset")

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    @property
    def current_step(self) -> Step:
        return self.navigator.current_step

    @_in_session_context
    def next(self) -> Step:
        return self._navigate(self.navigator.next)

    @_in_session_context
    def back(self) -> Step:
        return self._navigate(self.navigator.back)

    @_in_session_context
    def jump_to(self, index: int) -> Step:
        return self._navigate(lambda: self.navigator.jump_to(index))

    def progress(self) -> List[Dict[str, Any]]:
        return self.navigator.progress()

    # =========================================================================
    # DERIVED VIEW
    # =========================================================================

    def visible_fields(self) -> FrozenSet[str]:
        return self._view.visible_fields

    def visible_step_fields(self, index: Optional[int] = None) -> Tuple[str, ...]:
        """Visible field ids of a step (the current one by default), in schema order."""
        step = self.navigator.current_step if index is None else self._step_at(index)
        visible = self._view.visible_fields
        return tuple(fid for fid in step.field_ids if fid in visible)

    def visible_notices(self) -> FrozenSet[str]:
        return frozenset(n for n in self.registry.notices if n in self._view.visible_fields)

    def score(self) -> int:
        return self._view.score

    def breakdown(self) -> ScoreBreakdown:
        return self.scorer.breakdown(self.store.state)

    def view(self) -> WizardView:
        return self._view

    # =========================================================================
    # ATTACHMENTS
    # =========================================================================

    @_in_session_context
    def attach(self, category: AttachmentCategory, filename: str, content: bytes) -> AttachmentRef:
        """
        Store an uploaded document and keep a reference to it.

        Raises:
            AttachmentRejectedError: For disallowed file types or unusable names
        """
        self._ensure_open()
        ref = make_attachment_ref(
            category, filename, len(content), max_size_bytes=self.settings.attachment_max_bytes
        )
        self.attachment_store.put(ref, content)
        self._attachments.append(ref)
        self.logger.info(f"Attached {ref.filename} as {ref.category.value}")
        return ref

    @_in_session_context
    def detach(self, storage_key: str) -> bool:
        self._ensure_open()
        for ref in self._attachments:
            if ref.storage_key == storage_key:
                self._attachments.remove(ref)
                self.attachment_store.delete(ref)
                self.logger.info(f"Detached {ref.filename}")
                return True
        return False

    def attachments(self, category: Optional[AttachmentCategory] = None) -> List[AttachmentRef]:
        if category is None:
            return list(self._attachments)
        category = AttachmentCategory(category)
        return [ref for ref in self._attachments if ref.category is category]

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def snapshot(self) -> ClaimSnapshot:
        """Serialized copy of the form as it stands."""
        state = self.store.state
        return build_snapshot(
            state,
            self.session_id,
            hidden_fields=list(self.resolver.hidden_fields(state)),
            completion_score=self._view.score,
            registry=self.registry,
        )

    @_in_session_context
    def submit(self, service) -> Any:
        """
        Hand the claim to a submission service.

        The session closes when the service reports success. A failed
        delivery leaves it open so the operator can try again.

        Raises:
            SessionClosedError: If the session is already finished
            IncompleteSubmissionError: If submitter contact details are missing
        """
        self._ensure_open()
        require_submitter_contact(self.store.state)

        result = service.submit(
            self.snapshot(),
            list(self._attachments),
            attachment_store=self.attachment_store,
        )
        self.last_result = result

        if result.success:
            self._closed = True
            self.logger.info(f"Claim submitted as {result.reference_number}")
        else:
            self.logger.warning(f"Claim submission failed: {result.error}")
        return result

    @_in_session_context
    def close(self) -> None:
        """Finish the session without submitting."""
        if not self._closed:
            self._closed = True
            self.logger.info("Intake session closed")

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Intake session {self.session_id} is closed")

    def _step_at(self, index: int) -> Step:
        steps = self.navigator.steps
        if not 0 <= index < len(steps):
            raise StepOutOfRangeError(index, len(steps) - 1)
        return steps[index]

    def _navigate(self, move: Callable[[], Step]) -> Step:
        before = self.navigator.index
        step = move()
        if step.index != before:
            self._publish(self._compute_view())
        return step

    def _on_state_changed(self, state: FormState, field_id: str) -> None:
        self._publish(self._compute_view())

    def _compute_view(self) -> WizardView:
        state = self.store.state
        step = self.navigator.current_step
        return WizardView(
            visible_fields=self.resolver.visible_fields(state),
            score=self.scorer.score(state),
            step_index=step.index,
            step_key=step.key,
            version=state.version,
        )

    def _publish(self, view: WizardView) -> None:
        self._view = view
        for listener in list(self._listeners):
            listener(view)
