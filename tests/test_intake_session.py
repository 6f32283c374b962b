"""
Tests for the Intake Session

Verifies:
1. Push-model view recomputation
2. Navigation independent of completeness
3. Attachments
4. Submission and closing
5. Session independence
"""

import pytest
from datetime import date

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from intake.errors import SessionClosedError, StepOutOfRangeError, TypeMismatchError
from intake.field_registry import REFUSAL_FORM_REMINDER, TriState
from intake.session import IntakeSession, WizardView
from services.logging_config import session_id_var
from submission.attachments import AttachmentCategory, AttachmentRejectedError
from submission.email_provider import DeliveryResult, DeliveryStatus, NullEmailProvider
from submission.service import ClaimSubmissionService
from submission.snapshot import IncompleteSubmissionError


class FailingProvider(NullEmailProvider):
    """Provider whose deliveries always fail."""

    @property
    def provider_name(self) -> str:
        return "failing"

    def send(self, message):
        return DeliveryResult(
            success=False,
            status=DeliveryStatus.FAILED,
            provider=self.provider_name,
            error_message="relay unavailable",
            error_code="CONNECTION_ERROR",
        )


# =============================================================================
# VIEW TESTS
# =============================================================================

class TestView:
    """Every edit produces a fresh view."""

    def test_initial_view(self, session):
        view = session.view()
        assert isinstance(view, WizardView)
        assert view.score == 0
        assert view.step_index == 0
        assert view.step_key == "employee"
        assert "facilityName" not in view.visible_fields

    def test_edit_pushes_view(self, session):
        views = []
        session.subscribe(views.append)
        session.set("firstName", "Jane")
        session.set("lastName", "Doe")
        assert [v.score for v in views] == [7, 14]
        assert views[-1].version == 2

    def test_visibility_recomputed(self, session):
        session.set("soughtMedicalTreatment", TriState.YES)
        assert "facilityName" in session.visible_fields()
        session.set("soughtMedicalTreatment", TriState.NO)
        assert "facilityName" not in session.visible_fields()
        assert "refusedTreatment" in session.visible_fields()

    def test_navigation_pushes_view(self, session):
        views = []
        session.subscribe(views.append)
        session.next()
        session.back()
        session.back()  # saturated, no change
        assert [v.step_index for v in views] == [1, 0]

    def test_failed_edit_pushes_nothing(self, session):
        views = []
        session.subscribe(views.append)
        with pytest.raises(TypeMismatchError):
            session.set("dateOfInjury", "last tuesday")
        assert views == []

    def test_unsubscribe(self, session):
        views = []
        session.subscribe(views.append)
        assert session.unsubscribe(views.append)
        session.set("firstName", "Jane")
        assert views == []

    def test_view_to_dict(self, session):
        data = session.view().to_dict()
        assert data["step_key"] == "employee"
        assert data["visible_fields"] == sorted(data["visible_fields"])


# =============================================================================
# WIZARD BEHAVIOUR TESTS
# =============================================================================

class TestWizard:
    """End-to-end wizard properties."""

    def test_toggle_twice_unchanged(self, session):
        session.set("bodyParts", {"Knee"})
        session.toggle_member("bodyParts", "Head")
        session.toggle_member("bodyParts", "Head")
        assert session.get("bodyParts") == frozenset({"Knee"})

    def test_facility_name_persists(self, session):
        session.set("soughtMedicalTreatment", TriState.YES)
        session.set("facilityName", "Mercy Clinic")
        session.set("soughtMedicalTreatment", TriState.NO)
        session.set("soughtMedicalTreatment", TriState.YES)
        assert session.get("facilityName") == "Mercy Clinic"
        assert "facilityName" in session.visible_step_fields(3)

    def test_jump_to_last_step_on_empty_form(self, session):
        step = session.jump_to(8)
        assert step.key == "submit"
        assert session.visible_step_fields() == (
            "submitterName", "submitterPhone", "submitterEmail", "additionalComments",
        )

    def test_jump_out_of_range(self, session):
        with pytest.raises(StepOutOfRangeError):
            session.jump_to(9)
        with pytest.raises(StepOutOfRangeError):
            session.visible_step_fields(12)

    def test_visible_step_fields_follow_rules(self, session):
        fields = session.visible_step_fields(6)
        assert "proceduresInPlace" in fields
        assert "proceduresFollowed" not in fields
        session.set("proceduresInPlace", TriState.YES)
        assert "proceduresFollowed" in session.visible_step_fields(6)

    def test_visible_notices(self, session):
        assert session.visible_notices() == frozenset()
        session.set("soughtMedicalTreatment", TriState.NO)
        session.set("refusedTreatment", TriState.YES)
        assert session.visible_notices() == {REFUSAL_FORM_REMINDER}

    def test_breakdown(self, session):
        session.set("firstName", "Jane")
        assert session.breakdown().present_required == ["firstName"]

    def test_reset(self, session):
        session.set("firstName", "Jane")
        session.attach(AttachmentCategory.PHOTOS, "scene.jpg", b"jpeg")
        session.jump_to(4)
        session.reset()
        assert session.get("firstName") == ""
        assert session.current_step.index == 0
        assert session.attachments() == []
        assert session.view().step_index == 0
        assert len(session.attachment_store) == 0
        assert [p["index"] for p in session.progress() if p["is_visited"]] == [0]

    def test_sessions_independent(self):
        a = IntakeSession(session_id="a")
        b = IntakeSession(session_id="b")
        a.set("firstName", "Jane")
        a.next()
        assert b.get("firstName") == ""
        assert b.current_step.index == 0
        assert a.session_id != b.session_id

    def test_presence_mode_from_settings(self, monkeypatch):
        from config.settings import get_settings
        monkeypatch.setenv("APP_SCORING_PRESENCE_MODE", "truthy")
        get_settings.cache_clear()
        session = IntakeSession()
        session.set("validityConcerns", TriState.NO)
        assert session.score() == 0


# =============================================================================
# ATTACHMENT TESTS
# =============================================================================

class TestAttachments:
    """Uploaded documents."""

    def test_attach(self, session):
        ref = session.attach(AttachmentCategory.MEDICAL_RECORDS, "er_note.pdf", b"%PDF-1.4")
        assert ref.size_bytes == 8
        assert ref.content_type == "application/pdf"
        assert session.attachment_store.load(ref) == b"%PDF-1.4"
        assert session.attachments() == [ref]

    def test_attachments_by_category(self, session):
        photo = session.attach("photos", "scene.png", b"png")
        session.attach("otherDocs", "policy.docx", b"doc")
        assert session.attachments(AttachmentCategory.PHOTOS) == [photo]

    def test_rejected_extension(self, session):
        with pytest.raises(AttachmentRejectedError):
            session.attach(AttachmentCategory.PHOTOS, "payload.exe", b"MZ")
        assert session.attachments() == []

    def test_detach(self, session):
        ref = session.attach(AttachmentCategory.PHOTOS, "scene.jpg", b"jpeg")
        assert session.detach(ref.storage_key) is True
        assert session.attachments() == []
        assert session.detach(ref.storage_key) is False


# =============================================================================
# SUBMISSION TESTS
# =============================================================================

class TestSubmit:
    """Handing the claim to the submission service."""

    def test_submit_requires_contact(self, session, submission_service, email_provider):
        session.set("firstName", "Jane")
        with pytest.raises(IncompleteSubmissionError) as exc_info:
            session.submit(submission_service)
        assert set(exc_info.value.missing_fields) == {
            "submitterName", "submitterPhone", "submitterEmail",
        }
        assert email_provider.sent_messages == []
        assert not session.is_closed

    def test_submit_not_gated_on_step(self, session, submission_service, minimal_claim):
        """Submission works from any step."""
        session.update(minimal_claim)
        assert session.current_step.index == 0
        result = session.submit(submission_service)
        assert result.success

    def test_successful_submit_closes(self, session, submission_service, minimal_claim, email_provider):
        session.update(minimal_claim)
        session.attach(AttachmentCategory.PHOTOS, "scene.jpg", b"jpeg")
        result = session.submit(submission_service)

        assert result.success
        assert result.reference_number.startswith("FROI-")
        assert session.is_closed
        assert session.last_result is result

        claim = email_provider.sent_messages[0]
        filenames = [a.filename for a in claim.attachments]
        assert filenames == [f"{result.reference_number}-Summary.pdf", "scene.jpg"]

    def test_edits_after_submit_rejected(self, session, submission_service, minimal_claim):
        session.update(minimal_claim)
        session.submit(submission_service)
        with pytest.raises(SessionClosedError):
            session.set("firstName", "John")
        with pytest.raises(SessionClosedError):
            session.submit(submission_service)
        assert session.get("firstName") == "Jane"

    def test_failed_delivery_keeps_session_open(self, session, minimal_claim):
        service = ClaimSubmissionService(provider=FailingProvider())
        session.update(minimal_claim)
        result = session.submit(service)
        assert not result.success
        assert result.error == "relay unavailable"
        assert not session.is_closed
        session.set("additionalComments", "Retrying")

    def test_snapshot_reports_hidden_fields(self, session, minimal_claim):
        session.update(minimal_claim)
        session.set("soughtMedicalTreatment", TriState.YES)
        session.set("facilityName", "Mercy Clinic")
        session.set("soughtMedicalTreatment", TriState.NO)
        snap = session.snapshot()
        assert "facilityName" in snap.hidden_fields
        assert snap.values["facilityName"] == "Mercy Clinic"
        assert snap.values["dateOfInjury"] == "2024-03-14"
        assert snap.completion_score == session.score()

    def test_close(self, session):
        session.close()
        session.close()
        assert session.is_closed
        with pytest.raises(SessionClosedError):
            session.toggle_member("bodyParts", "Head")
        with pytest.raises(SessionClosedError):
            session.attach(AttachmentCategory.PHOTOS, "a.jpg", b"x")

    def test_reads_allowed_after_close(self, session):
        session.set("dateOfInjury", date(2024, 3, 14))
        session.close()
        assert session.get("dateOfInjury") == date(2024, 3, 14)
        assert session.score() == 7
        session.next()
        assert session.current_step.index == 1


# =============================================================================
# LOGGING CONTEXT TESTS
# =============================================================================

class RecordingProvider(NullEmailProvider):
    """Provider noting which session was bound while it sent."""

    def __init__(self):
        super().__init__()
        self.bound_sessions = []

    def send(self, message):
        self.bound_sessions.append(session_id_var.get())
        return super().send(message)


class TestLoggingContext:
    """Session id bound for collaborators while the session works."""

    def test_edits_run_with_session_id(self, session):
        seen = []
        session.subscribe(lambda view: seen.append(session_id_var.get()))
        session.set("firstName", "Jane")
        session.next()
        assert seen == ["test-session", "test-session"]

    def test_session_id_unbound_afterwards(self, session):
        session.set("firstName", "Jane")
        assert session_id_var.get() is None

    def test_submission_runs_with_session_id(self, session, minimal_claim):
        provider = RecordingProvider()
        session.update(minimal_claim)
        session.submit(ClaimSubmissionService(provider=provider))
        assert provider.bound_sessions == ["test-session", "test-session"]
