"""
Claim Submission Service

Turns a finished claim snapshot into the two e-mails the claims desk expects:

1. The claim itself, sent to the claims inbox with a PDF summary and every
   uploaded document attached.
2. A confirmation to the submitter, carrying the reference number.

Delivery failures are reported through ``SubmissionResult``; nothing is
retried here.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, List, Optional, Sequence

from config.settings import ClaimsSettings, Settings, get_settings

from .attachments import AttachmentRef, AttachmentStore, InMemoryAttachmentStore
from .email_provider import (
    DeliveryResult,
    EmailAttachment,
    EmailMessage,
    EmailProvider,
    get_email_provider,
)
from .pdf_summary import ClaimSummaryPDFGenerator
from .snapshot import ClaimSnapshot, require_submitter_contact

logger = logging.getLogger(__name__)


def generate_reference_number(prefix: str = "FROI", now_ms: Optional[int] = None) -> str:
    """Claim reference: prefix plus the last 8 digits of a millisecond timestamp."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}-{str(now_ms)[-8:]}"


@dataclass
class SubmissionResult:
    """Outcome of handing a claim to the service."""
    success: bool
    reference_number: Optional[str] = None
    error: Optional[str] = None
    claim_delivery: Optional[DeliveryResult] = None
    confirmation_delivery: Optional[DeliveryResult] = None
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "reference_number": self.reference_number,
            "error": self.error,
            "claim_delivery": self.claim_delivery.to_dict() if self.claim_delivery else None,
            "confirmation_delivery": (
                self.confirmation_delivery.to_dict() if self.confirmation_delivery else None
            ),
            "submitted_at": self.submitted_at.isoformat(),
        }


class ClaimSubmissionService:
    """
    Dispatches claims by e-mail.

    Usage:
        service = ClaimSubmissionService()
        result = service.submit(snapshot, attachments)
        if result.success:
            print(result.reference_number)
    """

    def __init__(
        self,
        provider: Optional[EmailProvider] = None,
        settings: Optional[Settings] = None,
        attachment_store: Optional[AttachmentStore] = None,
        pdf_generator: Optional[ClaimSummaryPDFGenerator] = None,
    ):
        self.settings = settings or get_settings()
        self.claims: ClaimsSettings = self.settings.claims
        self.provider = provider or get_email_provider(self.settings)
        self.attachment_store = attachment_store or InMemoryAttachmentStore()
        self.pdf_generator = pdf_generator or ClaimSummaryPDFGenerator(self.claims.company_name)

    def submit(
        self,
        snapshot: ClaimSnapshot,
        attachments: Sequence[AttachmentRef] = (),
        attachment_store: Optional[AttachmentStore] = None,
    ) -> SubmissionResult:
        """
        Send a claim to the claims inbox and confirm to the submitter.

        Args:
            snapshot: Serialized claim
            attachments: References to documents held in the attachment store
            attachment_store: Store to read them from, defaulting to the service's own

        Returns:
            SubmissionResult; ``success`` reflects delivery of the claim e-mail

        Raises:
            IncompleteSubmissionError: If submitter contact details are missing
        """
        require_submitter_contact(snapshot.values)

        reference_number = generate_reference_number(self.claims.reference_prefix)
        logger.info(
            f"Submitting claim {reference_number} for session {snapshot.session_id} "
            f"({len(attachments)} attachment(s), {snapshot.completion_score}% complete)"
        )

        try:
            files = self._load_attachments(attachments, attachment_store or self.attachment_store)
        except KeyError as e:
            logger.error(f"Claim {reference_number}: attachment missing from store: {e}")
            return SubmissionResult(
                success=False,
                reference_number=reference_number,
                error=f"Attachment not found in store: {e}",
            )

        try:
            pdf_bytes = self.pdf_generator.generate_pdf(snapshot, reference_number)
        except Exception as e:
            logger.exception(f"Claim {reference_number}: summary PDF failed: {e}")
            return SubmissionResult(
                success=False,
                reference_number=reference_number,
                error=f"Claim summary could not be generated: {e}",
            )
        files.insert(0, EmailAttachment(
            filename=f"{reference_number}-Summary.pdf",
            content=pdf_bytes,
            content_type="application/pdf",
        ))

        try:
            claim_delivery = self.provider.send(
                self.build_claim_message(snapshot, reference_number, files)
            )
        except ValueError as e:
            logger.error(f"Claim {reference_number}: invalid claim e-mail: {e}")
            return SubmissionResult(
                success=False,
                reference_number=reference_number,
                error=f"Invalid claim e-mail: {e}",
            )
        if not claim_delivery.success:
            logger.error(
                f"Claim {reference_number} not delivered: "
                f"{claim_delivery.error_code} {claim_delivery.error_message}"
            )
            return SubmissionResult(
                success=False,
                reference_number=reference_number,
                error=claim_delivery.error_message or "Claim e-mail delivery failed",
                claim_delivery=claim_delivery,
            )

        confirmation_delivery = None
        if self.claims.send_confirmation and snapshot.submitter_email:
            try:
                confirmation_delivery = self.provider.send(
                    self.build_confirmation_message(snapshot, reference_number)
                )
            except ValueError as e:
                logger.warning(f"Confirmation for {reference_number} not sent: {e}")
            else:
                if not confirmation_delivery.success:
                    logger.warning(
                        f"Confirmation for {reference_number} not delivered to "
                        f"{snapshot.submitter_email}: {confirmation_delivery.error_message}"
                    )

        logger.info(f"Claim {reference_number} submitted")
        return SubmissionResult(
            success=True,
            reference_number=reference_number,
            claim_delivery=claim_delivery,
            confirmation_delivery=confirmation_delivery,
        )

    def _load_attachments(
        self,
        attachments: Sequence[AttachmentRef],
        store: AttachmentStore,
    ) -> List[EmailAttachment]:
        return [
            EmailAttachment(
                filename=ref.filename,
                content=store.load(ref),
                content_type=ref.content_type,
            )
            for ref in attachments
        ]

    def build_claim_message(
        self,
        snapshot: ClaimSnapshot,
        reference_number: str,
        files: List[EmailAttachment],
    ) -> EmailMessage:
        """The e-mail sent to the claims inbox."""
        name = snapshot.employee_name
        date_of_injury = snapshot.value("dateOfInjury")
        submitter = snapshot.value("submitterName")
        red_flags = snapshot.value("priorInjuries")

        rows = [
            ("Reference Number", reference_number),
            ("Employee", name),
            ("Employing Entity", snapshot.value("entity")),
            ("Date of Injury", date_of_injury),
            ("Nature of Injury", snapshot.value("injuryType")),
            ("Body Parts", ", ".join(snapshot.value("bodyParts", [])) or "Not specified"),
            ("Submitted By", f"{submitter} ({snapshot.value('submitterEmail')})"),
            ("Completion", f"{snapshot.completion_score}%"),
        ]
        body_text = "New First Report of Injury\n\n" + "\n".join(
            f"{label}: {value}" for label, value in rows
        ) + "\n"
        if red_flags:
            body_text += f"\nRED FLAGS: {red_flags}\n"
        body_text += f"\nAttachments: {len(files)} file(s)\n"

        body_html = (
            "<h2>New First Report of Injury</h2><table>"
            + "".join(
                f"<tr><td><strong>{escape(label)}:</strong></td><td>{escape(str(value))}</td></tr>"
                for label, value in rows
            )
            + "</table>"
        )
        if red_flags:
            body_html += (
                f'<p style="color: #c0392b;"><strong>Red Flags:</strong> {escape(red_flags)}</p>'
            )
        body_html += f"<p>Attachments: {len(files)} file(s)</p>"

        return EmailMessage(
            to=self.claims.inbox_email,
            subject=f"New FROI Claim - {name} - {date_of_injury}",
            body_html=body_html,
            body_text=body_text,
            reply_to=snapshot.submitter_email,
            attachments=files,
            metadata={"reference_number": reference_number, "session_id": snapshot.session_id},
        )

    def build_confirmation_message(self, snapshot: ClaimSnapshot, reference_number: str) -> EmailMessage:
        """The receipt sent back to whoever filed the claim."""
        submitter = snapshot.value("submitterName")
        company = self.claims.company_name
        body_text = (
            f"Dear {submitter},\n\n"
            f"Thank you for submitting the First Report of Injury for {snapshot.employee_name}.\n"
            f"Your reference number is {reference_number}.\n\n"
            f"Questions? Contact {company} at {self.claims.company_email} "
            f"or {self.claims.company_phone}.\n"
        )
        body_html = (
            f"<p>Dear {escape(submitter)},</p>"
            f"<p>Thank you for submitting the First Report of Injury for "
            f"{escape(snapshot.employee_name)}.</p>"
            f"<p>Your reference number is <strong>{escape(reference_number)}</strong>.</p>"
            f"<p>Questions? Contact {escape(company)} at {escape(self.claims.company_email)} "
            f"or {escape(self.claims.company_phone)}.</p>"
        )
        return EmailMessage(
            to=snapshot.submitter_email,
            subject=f"Claim Confirmation - {reference_number}",
            body_html=body_html,
            body_text=body_text,
            reply_to=self.claims.company_email,
            metadata={"reference_number": reference_number, "session_id": snapshot.session_id},
        )
